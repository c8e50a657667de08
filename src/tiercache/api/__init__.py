"""HTTP API for tiercache."""
