"""Prometheus metrics for tiercache.

Provides metrics collection and exposure:
- Cache metrics (hits, misses, store errors, operation latency)
- Source metrics (loads, load failures)

Usage:
    from tiercache.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cache_hits_total.labels(cache="post").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from tiercache.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_store_errors_total: Any = None
    cache_operation_duration_seconds: Any = None
    source_loads_total: Any = None
    source_load_failures_total: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = CollectorRegistry()

        self.cache_hits_total = Counter(
            "tiercache_cache_hits_total",
            "Fast store hits",
            ["cache"],
            registry=self._registry,
        )

        self.cache_misses_total = Counter(
            "tiercache_cache_misses_total",
            "Fast store misses",
            ["cache"],
            registry=self._registry,
        )

        self.cache_store_errors_total = Counter(
            "tiercache_cache_store_errors_total",
            "Fast store failures absorbed by the orchestrator",
            ["cache", "operation"],
            registry=self._registry,
        )

        self.cache_operation_duration_seconds = Histogram(
            "tiercache_cache_operation_duration_seconds",
            "Fast store and source operation latency in seconds",
            ["cache", "operation"],
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5, 1.0, 2.5),
            registry=self._registry,
        )

        self.source_loads_total = Counter(
            "tiercache_source_loads_total",
            "Source of record loads",
            ["cache"],
            registry=self._registry,
        )

        self.source_load_failures_total = Counter(
            "tiercache_source_load_failures_total",
            "Source of record load failures",
            ["cache", "error"],
            registry=self._registry,
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def record_cache_hit(cache: str) -> None:
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(cache=cache).inc()


def record_cache_miss(cache: str) -> None:
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(cache=cache).inc()


def record_store_error(cache: str, operation: str) -> None:
    metrics = get_metrics()
    if metrics.cache_store_errors_total:
        metrics.cache_store_errors_total.labels(cache=cache, operation=operation).inc()


def record_source_load(cache: str, error: str | None = None) -> None:
    """Record a source load, successful when ``error`` is None."""
    metrics = get_metrics()
    if metrics.source_loads_total:
        metrics.source_loads_total.labels(cache=cache).inc()
    if error is not None and metrics.source_load_failures_total:
        metrics.source_load_failures_total.labels(cache=cache, error=error).inc()


def record_operation(cache: str, operation: str, duration: float) -> None:
    """Record operation duration.

    Args:
        cache: Cache name
        operation: get, put, invalidate or load
        duration: Duration in seconds
    """
    metrics = get_metrics()
    if metrics.cache_operation_duration_seconds:
        metrics.cache_operation_duration_seconds.labels(
            cache=cache,
            operation=operation,
        ).observe(duration)
