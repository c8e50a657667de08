"""Sources of record for tiercache."""

from tiercache.source.base import CallableSourceLoader, SourceLoader
from tiercache.source.http import HttpSourceLoader, create_http_client

__all__ = [
    "SourceLoader",
    "CallableSourceLoader",
    "HttpSourceLoader",
    "create_http_client",
]
