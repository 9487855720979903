"""
Session management for Cassandra connections.

A session owns one transport at a time together with the state that must
survive reconnects: the selected keyspace, the consistency level, the
negotiated protocol mode and the credentials of the last successful login.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Type

from .base import ContextManageable
from .constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_CONSISTENCY, DEFAULT_KEYSPACE
from .consistency import canonical_name, resolve
from .exceptions import ConnectionError, InvalidArgument, translate_invalid_request
from .metrics import MetricsMiddleware
from .protocol import ProtocolMode, negotiate, provisional_mode, supports_versioned_query
from .statement import Statement
from .transport import AuthRequest, Compression, DriverTransport, Transport, invalid_request_classes

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Mutable per-session settings, replayed on every physical connect."""

    keyspace: Optional[str]
    protocol_mode: ProtocolMode
    consistency_level: Optional[int] = None
    consistency_name: Optional[str] = None


class Session(ContextManageable):
    """
    Synchronous CQL session over a pluggable transport.

    Example:
        with Session(["127.0.0.1:9042"], {"keyspace": "app", "consistency": "one"}) as db:
            db.execute("INSERT INTO users (id, name) VALUES (%s, %s)", 1, "ada")
    """

    def __init__(
        self,
        servers: Sequence[str],
        options: Optional[Dict[str, Any]] = None,
        transport_options: Optional[Dict[str, Any]] = None,
        *,
        transport_class: Type[Transport] = DriverTransport,
        metrics: Optional[MetricsMiddleware] = None,
        lazy_connect: bool = False,
    ):
        """
        Initialize the session and, unless ``lazy_connect`` is set, connect.

        Args:
            servers: Server endpoints as ``"host"`` or ``"host:port"``.
            options: Session options: ``keyspace`` (default ``"system"``),
                ``cql_version``, ``consistency`` (used in versioned mode only,
                default ``"quorum"``), ``username`` and ``password``.
            transport_options: Transport options: ``exception_class_overrides``
                and ``connect_timeout`` (default 5 seconds). Other keys are
                passed through to the transport.
            transport_class: Transport implementation to build on connect.
            metrics: Optional metrics middleware for observability.
            lazy_connect: Defer the first connect to an explicit ``connect()``.
        """
        self._options: Dict[str, Any] = {"keyspace": DEFAULT_KEYSPACE}
        self._options.update(options or {})
        self._transport_options: Dict[str, Any] = {"connect_timeout": DEFAULT_CONNECT_TIMEOUT}
        self._transport_options.update(transport_options or {})

        self._servers = list(servers)
        self._transport_class = transport_class
        self._metrics = metrics
        self._cql_version: Optional[str] = self._options.get("cql_version")
        self._invalid_request_errors = invalid_request_classes(
            self._transport_options.get("exception_class_overrides")
        )

        self._transport: Optional[Transport] = None
        self._auth_request: Optional[AuthRequest] = None
        self._replay_auth = True
        self._state = SessionState(
            keyspace=None, protocol_mode=provisional_mode(self._cql_version, transport_class)
        )
        self.keyspace = self._options["keyspace"]

        if self._state.protocol_mode is ProtocolMode.VERSIONED:
            self.consistency = self._options.get("consistency") or DEFAULT_CONSISTENCY

        if not lazy_connect:
            self.connect()

    @property
    def connection(self) -> Optional[Transport]:
        """The current transport, if one has been created."""
        return self._transport

    def _connection(self) -> Transport:
        if self._transport is None:
            raise ConnectionError("Session is not connected")
        return self._transport

    def connect(self) -> None:
        """
        Build a fresh transport and connect it.

        Configured credentials are sent before the physical connect; the
        post-connect hook then negotiates the protocol, replays cached
        credentials and selects the keyspace before this method returns.
        Transport failures propagate unmodified.
        """
        if self._transport is not None:
            self._release(self._transport)

        transport = self._transport_class(self._servers, dict(self._transport_options))
        self._transport = transport

        username = self._options.get("username")
        password = self._options.get("password")
        if username and password:
            self.login(username, password)
            # The login above already covers the next physical connect
            self._replay_auth = False

        transport.add_post_connect_callback(self._on_post_connect)
        logger.debug("Connecting to %s", ", ".join(self._servers))
        transport.connect()

    def _release(self, transport: Transport) -> None:
        try:
            transport.disconnect()
        except Exception as e:
            logger.warning("Error while closing previous transport: %s", e)

    def _on_post_connect(self, transport: Transport) -> None:
        mode, switch_to = negotiate(transport.describe_version(), self._cql_version)
        if mode is ProtocolMode.VERSIONED and not supports_versioned_query(type(transport)):
            logger.debug("%s has no versioned query RPC, using legacy mode", type(transport).__name__)
            mode = ProtocolMode.LEGACY
        self._state.protocol_mode = mode
        if switch_to is not None:
            transport.set_cql_version(switch_to)

        if self._auth_request is not None and self._replay_auth:
            logger.debug("Re-sending cached credentials after connect")
            transport.login(self._auth_request)
        self._replay_auth = True

        if self._state.keyspace:
            self.execute(f"USE {self._state.keyspace}")
        logger.info("Session connected in %s mode", mode.value)

    def disconnect(self) -> None:
        """Disconnect the transport if the session is active. Never raises."""
        transport = self._transport
        if transport is None:
            return

        try:
            if not self.is_active():
                return
            transport.disconnect()
        except Exception as e:
            logger.warning("Error while disconnecting: %s", e)

    def close(self) -> None:
        self.disconnect()

    def is_active(self) -> bool:
        """
        Check the connection with a lightweight round-trip.

        Returns False when there is no transport or it fails with one of
        its network errors. Any other failure propagates.
        """
        # TODO: switch to a dedicated ping RPC once the server offers one
        transport = self._transport
        if transport is None:
            return False

        start_time = time.perf_counter()
        try:
            transport.describe_version()
            healthy = True
        except transport.network_errors as e:
            logger.debug("Health check failed: %s", e)
            healthy = False

        if self._metrics:
            self._metrics.record_connection_metrics(
                host=",".join(self._servers),
                is_healthy=healthy,
                response_time=time.perf_counter() - start_time,
            )
        return healthy

    ping = is_active

    def reset(self) -> None:
        """Disconnect and connect again."""
        logger.info("Resetting session")
        self.disconnect()
        self.connect()

    reconnect = reset

    def login(self, username: str, password: str) -> Any:
        """
        Authenticate and cache the credentials for later reconnects.

        Returns:
            The transport's acknowledgement.
        """
        request = AuthRequest.from_password(username, password)
        ack = self._connection().login(request)
        self._auth_request = request
        return ack

    @property
    def protocol_mode(self) -> ProtocolMode:
        return self._state.protocol_mode

    def use_cql3_query(self) -> bool:
        """Whether queries go through the versioned RPC."""
        return self._state.protocol_mode is ProtocolMode.VERSIONED

    @property
    def keyspace(self) -> Optional[str]:
        return self._state.keyspace

    @keyspace.setter
    def keyspace(self, keyspace: Optional[str]) -> None:
        """
        Set the keyspace selected on the next physical connect.

        Raises:
            InvalidArgument: If the keyspace name is invalid.
        """
        if keyspace is None:
            self._state.keyspace = None
            return

        keyspace = str(keyspace)
        if not keyspace or not all(c.isalnum() or c == "_" for c in keyspace):
            raise InvalidArgument(
                f"Invalid keyspace name: '{keyspace}'. "
                "Keyspace names must contain only alphanumeric characters and underscores."
            )
        self._state.keyspace = keyspace

    def keyspaces(self) -> List[Any]:
        """Describe every keyspace in the cluster."""
        return self._connection().describe_keyspaces()

    def schema(self) -> Any:
        """Describe the current keyspace."""
        with translate_invalid_request(self._invalid_request_errors):
            return self._connection().describe_keyspace(self._state.keyspace)

    @property
    def consistency(self) -> int:
        """The numeric consistency level, ``quorum`` unless set."""
        if self._state.consistency_level is None:
            self._set_consistency(DEFAULT_CONSISTENCY)
        return self._state.consistency_level  # type: ignore[return-value]

    @consistency.setter
    def consistency(self, name: Any) -> None:
        self._set_consistency(name)

    @property
    def consistency_name(self) -> str:
        if self._state.consistency_name is None:
            self._set_consistency(DEFAULT_CONSISTENCY)
        return self._state.consistency_name  # type: ignore[return-value]

    def _set_consistency(self, name: Any) -> None:
        level = resolve(name)
        self._state.consistency_level = level
        self._state.consistency_name = canonical_name(name)

    @contextmanager
    def with_consistency(self, name: Any) -> Iterator["Session"]:
        """
        Use another consistency level for the duration of a block.

        Example:
            with session.with_consistency("all"):
                session.execute("SELECT * FROM users")
        """
        previous = self.consistency_name
        self.consistency = name
        try:
            yield self
        finally:
            self.consistency = previous

    def prepare(self, statement: str, callback: Optional[Callable[[Statement], Any]] = None) -> Any:
        """
        Build a statement without executing it.

        Returns:
            The statement, or the callback's return value if one is given.
        """
        with translate_invalid_request(self._invalid_request_errors):
            stmt = Statement(self, statement)
        if callback is not None:
            return callback(stmt)
        return stmt

    def execute(
        self, statement: str, *bind_values: Any, callback: Optional[Callable[[Any], Any]] = None
    ) -> Any:
        """
        Execute a CQL statement with positional bind values.

        Returns:
            The raw result, or the callback's return value if one is given.

        Raises:
            InvalidRequestException: If the server rejects the statement.
        """
        with translate_invalid_request(self._invalid_request_errors):
            result = Statement(self, statement).execute(bind_values)
        if callback is not None:
            return callback(result)
        return result

    def execute_cql_query(self, cql: str, compression: Compression = Compression.NONE) -> Any:
        """
        Send CQL text over the RPC selected by the protocol mode.

        Raises:
            InvalidRequestException: If the server rejects the query.
        """
        transport = self._connection()
        versioned = self._state.protocol_mode is ProtocolMode.VERSIONED

        start_time = time.perf_counter()
        success = False
        error_type = None

        try:
            with translate_invalid_request(self._invalid_request_errors):
                if versioned:
                    result = transport.execute_cql3_query(  # type: ignore[attr-defined]
                        cql, compression, self.consistency
                    )
                else:
                    result = transport.execute_cql_query(cql, compression)
            success = True
            return result
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            if self._metrics:
                self._metrics.record_query_metrics(
                    query=cql,
                    duration=time.perf_counter() - start_time,
                    success=success,
                    error_type=error_type,
                    protocol_mode=self._state.protocol_mode.value,
                    consistency_level=self._state.consistency_name if versioned else None,
                )
