"""
Metrics for cassandra-cql sessions.

Sessions record one ``QueryMetrics`` per query and one
``ConnectionMetrics`` per health check, fanned out to collectors by
``MetricsMiddleware``.
"""

import hashlib
import logging
import re
import threading
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QueryMetrics:
    """Metrics for individual query execution."""

    query_hash: str
    duration: float
    success: bool
    error_type: Optional[str] = None
    protocol_mode: Optional[str] = None
    consistency_level: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class ConnectionMetrics:
    """Result of one connection health check."""

    host: str
    is_healthy: bool
    response_time: float
    last_check: datetime = field(default_factory=_utcnow)


class MetricsCollector(ABC):
    """Abstract base class for metrics collection backends."""

    @abstractmethod
    def record_query(self, metrics: QueryMetrics) -> None:
        pass

    @abstractmethod
    def record_connection_health(self, metrics: ConnectionMetrics) -> None:
        pass


class InMemoryMetricsCollector(MetricsCollector):
    """In-memory metrics collector for development and testing."""

    def __init__(self, max_entries: int = 10000):
        self.query_metrics: deque = deque(maxlen=max_entries)
        self.connection_metrics: Dict[str, ConnectionMetrics] = {}
        self.error_counts: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def record_query(self, metrics: QueryMetrics) -> None:
        with self._lock:
            self.query_metrics.append(metrics)
            if not metrics.success and metrics.error_type:
                self.error_counts[metrics.error_type] += 1

    def record_connection_health(self, metrics: ConnectionMetrics) -> None:
        with self._lock:
            self.connection_metrics[metrics.host] = metrics

    def get_stats(self) -> Dict[str, Any]:
        """Summarize the recorded queries."""
        with self._lock:
            if not self.query_metrics:
                return {"message": "No metrics available"}

            durations = [q.duration for q in self.query_metrics]
            return {
                "total_queries": len(durations),
                "avg_duration_ms": sum(durations) / len(durations) * 1000,
                "success_rate": sum(1 for q in self.query_metrics if q.success) / len(durations),
                "error_summary": dict(self.error_counts),
            }


class PrometheusMetricsCollector(MetricsCollector):
    """Prometheus metrics collector for production monitoring."""

    def __init__(self, registry: Any = None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter, Gauge, Histogram
        except ImportError:
            logger.warning("prometheus_client not available, metrics disabled")
            self._available = False
            return

        registry = registry if registry is not None else REGISTRY
        self.query_duration = Histogram(
            "cassandra_cql_query_duration_seconds",
            "Time spent executing CQL queries",
            ["protocol_mode", "success"],
            registry=registry,
        )
        self.error_total = Counter(
            "cassandra_cql_errors_total",
            "Total number of CQL query errors",
            ["error_type"],
            registry=registry,
        )
        self.connection_health = Gauge(
            "cassandra_cql_connection_healthy",
            "Whether the Cassandra connection is healthy",
            ["host"],
            registry=registry,
        )
        self._available = True

    def record_query(self, metrics: QueryMetrics) -> None:
        if not self._available:
            return

        success_label = "success" if metrics.success else "failure"
        self.query_duration.labels(
            protocol_mode=metrics.protocol_mode or "unknown", success=success_label
        ).observe(metrics.duration)

        if not metrics.success and metrics.error_type:
            self.error_total.labels(error_type=metrics.error_type).inc()

    def record_connection_health(self, metrics: ConnectionMetrics) -> None:
        if not self._available:
            return

        self.connection_health.labels(host=metrics.host).set(1 if metrics.is_healthy else 0)


class MetricsMiddleware:
    """Fans session metrics out to a list of collectors."""

    def __init__(self, collectors: List[MetricsCollector]):
        self.collectors = collectors

    def record_query_metrics(
        self,
        query: str,
        duration: float,
        success: bool,
        error_type: Optional[str] = None,
        protocol_mode: Optional[str] = None,
        consistency_level: Optional[str] = None,
    ) -> None:
        """Record metrics for a query execution."""
        metrics = QueryMetrics(
            query_hash=self._normalize_query(query),
            duration=duration,
            success=success,
            error_type=error_type,
            protocol_mode=protocol_mode,
            consistency_level=consistency_level,
        )

        for collector in self.collectors:
            try:
                collector.record_query(metrics)
            except Exception as e:
                logger.warning(f"Failed to record metrics: {e}")

    def record_connection_metrics(self, host: str, is_healthy: bool, response_time: float) -> None:
        """Record the result of a health check."""
        metrics = ConnectionMetrics(host=host, is_healthy=is_healthy, response_time=response_time)

        for collector in self.collectors:
            try:
                collector.record_connection_health(metrics)
            except Exception as e:
                logger.warning(f"Failed to record connection metrics: {e}")

    def _normalize_query(self, query: str) -> str:
        """Group queries that differ only in literal values."""
        normalized = re.sub(r"\s+", " ", query.strip().upper())
        normalized = re.sub(r"'[^']*'", "'?'", normalized)  # String literals
        normalized = re.sub(r"\b\d+\b", "?", normalized)  # Numbers

        return hashlib.md5(normalized.encode()).hexdigest()[:12]
