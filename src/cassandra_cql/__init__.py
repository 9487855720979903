"""
cassandra-cql: synchronous CQL session driver for Cassandra.

This package manages a session against a Cassandra cluster: protocol
negotiation between the legacy and CQL 3 query RPCs, consistency level
state, statement execution with server error translation, and
reconnects that replay credentials and keyspace selection.
"""

__version__ = "0.1.0"

from .consistency import resolve as resolve_consistency
from .exceptions import CassandraCQLError, ConnectionError, InvalidArgument, InvalidRequestException
from .metrics import (
    ConnectionMetrics,
    InMemoryMetricsCollector,
    MetricsCollector,
    MetricsMiddleware,
    PrometheusMetricsCollector,
    QueryMetrics,
)
from .protocol import ProtocolMode, compare_versions, negotiate
from .session import Session, SessionState
from .statement import Statement
from .transport import AuthRequest, Compression, DriverTransport, Transport

__all__ = [
    "Session",
    "SessionState",
    "Statement",
    "Transport",
    "DriverTransport",
    "AuthRequest",
    "Compression",
    "ProtocolMode",
    "compare_versions",
    "negotiate",
    "resolve_consistency",
    "CassandraCQLError",
    "ConnectionError",
    "InvalidArgument",
    "InvalidRequestException",
    "MetricsMiddleware",
    "MetricsCollector",
    "InMemoryMetricsCollector",
    "PrometheusMetricsCollector",
    "QueryMetrics",
    "ConnectionMetrics",
]
