"""
Transport contract and the default cassandra-driver based transport.

A transport is a single-use RPC client: it is connected once, fires its
post-connect callbacks, serves requests and is closed for good by
``disconnect``. Sessions build a fresh transport for every connect.
"""

import enum
import logging
from abc import abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from cassandra import InvalidRequest, OperationTimedOut
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, NoHostAvailable, Session
from cassandra.connection import ConnectionException
from cassandra.metadata import KeyspaceMetadata
from cassandra.policies import DCAwareRoundRobinPolicy, ExponentialReconnectionPolicy, TokenAwarePolicy
from cassandra.query import SimpleStatement

from .base import Closeable
from .constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_CONTACT_POINTS,
    DEFAULT_PORT,
    FINAL_THRIFT_API_VERSION,
)
from .exceptions import ConnectionError

logger = logging.getLogger(__name__)

PostConnectCallback = Callable[["Transport"], None]


class Compression(enum.IntEnum):
    """Query body compression, using the Thrift wire values."""

    GZIP = 1
    NONE = 2


@dataclass(frozen=True)
class AuthRequest:
    """Opaque login credentials handed to ``Transport.login``."""

    credentials: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "credentials", MappingProxyType(dict(self.credentials)))

    @classmethod
    def from_password(cls, username: str, password: str) -> "AuthRequest":
        return cls({"username": username, "password": password})


def invalid_request_classes(overrides: Any) -> Tuple[Type[BaseException], ...]:
    """Normalize the ``exception_class_overrides`` option to a tuple of classes."""
    if overrides is None:
        return (InvalidRequest,)
    if isinstance(overrides, type):
        return (overrides,)
    return tuple(overrides)


class Transport(Closeable):
    """
    Pooled RPC client consumed by a session.

    Subclasses implement the physical connect and the RPC surface. The
    versioned query RPC, ``execute_cql3_query(cql, compression,
    consistency)``, is optional: a transport that does not define it can
    only be used in legacy mode.
    """

    # Failures that mean the server could not be reached
    network_errors: Tuple[Type[BaseException], ...] = (ConnectionError, OSError)

    def __init__(self, servers: Sequence[str], options: Optional[Dict[str, Any]] = None):
        super().__init__()
        options = dict(options or {})
        self.servers = list(servers)
        self.connect_timeout = options.pop("connect_timeout", DEFAULT_CONNECT_TIMEOUT)
        self.invalid_request_errors = invalid_request_classes(
            options.pop("exception_class_overrides", None)
        )
        self.options = options
        self._connected = False
        self._post_connect_callbacks: List[PostConnectCallback] = []

    def add_post_connect_callback(self, callback: PostConnectCallback) -> None:
        """
        Register a callback fired after every successful physical connect.

        Callbacks receive the transport and run synchronously, in
        registration order, before ``connect`` returns.
        """
        self._post_connect_callbacks.append(callback)

    def connect(self) -> None:
        """
        Open the physical connection and fire the post-connect callbacks.

        If a callback raises, the transport is closed and the error re-raised.

        Raises:
            ConnectionError: If the transport has already been disconnected.
        """
        self._check_not_closed()
        self._do_connect()
        self._connected = True
        try:
            for callback in list(self._post_connect_callbacks):
                callback(self)
        except Exception:
            # A failed callback leaves nothing half-connected behind
            self._abort()
            raise

    def _abort(self) -> None:
        try:
            self.disconnect()
        except Exception as e:
            logger.warning("Error while closing %s: %s", self.__class__.__name__, e)

    def disconnect(self) -> None:
        """Close the transport. A disconnected transport cannot be reused."""
        self.close()

    def _do_close(self) -> None:
        was_connected = self._connected
        self._connected = False
        if was_connected:
            self._do_disconnect()

    @property
    def is_connected(self) -> bool:
        return self._connected and not self.is_closed

    def _check_connected(self) -> None:
        self._check_not_closed()
        if not self._connected:
            raise ConnectionError(f"{self.__class__.__name__} is not connected")

    @abstractmethod
    def _do_connect(self) -> None:
        """Open the physical connection."""

    @abstractmethod
    def _do_disconnect(self) -> None:
        """Close the physical connection."""

    @abstractmethod
    def describe_version(self) -> str:
        """Return the API version reported by the server."""

    @abstractmethod
    def login(self, auth_request: AuthRequest) -> Any:
        """Authenticate with opaque credentials."""

    @abstractmethod
    def set_cql_version(self, version: str) -> None:
        """Ask the server to speak the given CQL version."""

    @abstractmethod
    def execute_cql_query(self, cql: str, compression: Compression) -> Any:
        """Execute a query over the legacy RPC, without a consistency level."""

    @abstractmethod
    def describe_keyspace(self, name: str) -> Any:
        """Return the definition of one keyspace."""

    @abstractmethod
    def describe_keyspaces(self) -> List[Any]:
        """Return the definitions of all keyspaces."""


def parse_server(server: str, default_port: Optional[int] = None) -> Tuple[str, Optional[int]]:
    """Split ``"host"`` or ``"host:port"`` into a (host, port) tuple."""
    server = str(server)
    if server.startswith("["):
        host, _, rest = server[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    elif server.count(":") == 1:
        host, _, port = server.partition(":")
    else:
        host, port = server, ""
    return host, int(port) if port.isdigit() else default_port


class DriverTransport(Transport):
    """
    Transport backed by the DataStax cassandra-driver.

    The native protocol always speaks CQL 3 with a per-request consistency
    level, so ``execute_cql3_query`` maps onto ``Session.execute`` with a
    ``SimpleStatement``. Compression is negotiated per connection by the
    driver; the per-request flag is accepted and ignored.
    """

    network_errors = Transport.network_errors + (
        NoHostAvailable,
        OperationTimedOut,
        ConnectionException,
    )

    def __init__(self, servers: Sequence[str], options: Optional[Dict[str, Any]] = None):
        super().__init__(servers or DEFAULT_CONTACT_POINTS, options)

        port = self.options.pop("port", None)
        endpoints = [parse_server(server) for server in self.servers]
        explicit_ports = sorted({p for _, p in endpoints if p is not None})
        if port is None:
            port = explicit_ports[0] if explicit_ports else DEFAULT_PORT
        if len(explicit_ports) > 1:
            logger.warning("Servers use different ports %s; connecting on port %d", explicit_ports, port)

        self.contact_points = [host for host, _ in endpoints]
        self.port = port
        self._auth_provider: Optional[PlainTextAuthProvider] = None
        self._cql_version: Optional[str] = None
        self._cluster: Optional[Cluster] = None
        self._session: Optional[Session] = None

    def _cluster_kwargs(self) -> Dict[str, Any]:
        cluster_kwargs: Dict[str, Any] = {
            "contact_points": self.contact_points,
            "port": self.port,
            "connect_timeout": self.connect_timeout,
            "load_balancing_policy": TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            "reconnection_policy": ExponentialReconnectionPolicy(base_delay=1.0, max_delay=60.0),
        }

        # Add optional parameters only if they're set
        if self._auth_provider is not None:
            cluster_kwargs["auth_provider"] = self._auth_provider
        if self._cql_version is not None:
            cluster_kwargs["cql_version"] = self._cql_version

        cluster_kwargs.update(self.options)
        return cluster_kwargs

    def _do_connect(self) -> None:
        self._cluster = Cluster(**self._cluster_kwargs())
        try:
            self._session = self._cluster.connect()
        except Exception:
            self._cluster.shutdown()
            self._cluster = None
            raise
        logger.info("Connected to %s on port %d", ", ".join(self.contact_points), self.port)

    def _do_disconnect(self) -> None:
        cluster, self._cluster, self._session = self._cluster, None, None
        if cluster is not None:
            cluster.shutdown()

    def _require_session(self) -> Session:
        self._check_connected()
        assert self._session is not None
        return self._session

    def describe_version(self) -> str:
        row = self._require_session().execute("SELECT * FROM system.local").one()
        version = getattr(row, "thrift_version", None)
        return version or FINAL_THRIFT_API_VERSION

    def login(self, auth_request: AuthRequest) -> None:
        credentials = auth_request.credentials
        self._auth_provider = PlainTextAuthProvider(
            username=credentials.get("username"), password=credentials.get("password")
        )
        # New pool connections authenticate with the latest credentials
        if self._cluster is not None:
            self._cluster.auth_provider = self._auth_provider

    def set_cql_version(self, version: str) -> None:
        self._cql_version = version
        if self._cluster is not None:
            self._cluster.cql_version = version
            logger.info("CQL version %s applies to new connections", version)

    def execute_cql_query(self, cql: str, compression: Compression) -> Any:
        return self._require_session().execute(cql)

    def execute_cql3_query(self, cql: str, compression: Compression, consistency: int) -> Any:
        statement = SimpleStatement(cql, consistency_level=consistency)
        return self._require_session().execute(statement)

    def describe_keyspace(self, name: str) -> KeyspaceMetadata:
        self._check_connected()
        assert self._cluster is not None
        keyspace = self._cluster.metadata.keyspaces.get(name)
        if keyspace is None:
            raise InvalidRequest(f"Keyspace '{name}' does not exist")
        return keyspace

    def describe_keyspaces(self) -> List[KeyspaceMetadata]:
        self._check_connected()
        assert self._cluster is not None
        return list(self._cluster.metadata.keyspaces.values())
