"""In-memory transports recording every RPC a session sends.

Sessions build their transport inside ``connect()``, so behaviour is
configured on a generated subclass (see ``fake_transport_class``) rather
than on an instance.
"""

from typing import Any, Dict, List, Optional, Tuple

from cassandra import InvalidRequest

from cassandra_cql.transport import AuthRequest, Compression, Transport


class LegacyFakeTransport(Transport):
    """Fake transport without the versioned query RPC."""

    server_version = "19.20.0"
    connect_error: Optional[BaseException] = None
    login_error: Optional[BaseException] = None
    query_errors: Dict[str, BaseException] = {}
    keyspace_names: Tuple[str, ...] = ("system", "ks1")
    created: List["LegacyFakeTransport"] = []

    def __init__(self, servers, options=None):
        super().__init__(servers, options)
        self.calls: List[Tuple[Any, ...]] = []
        self.version_error: Optional[BaseException] = None
        self.disconnect_error: Optional[BaseException] = None
        type(self).created.append(self)

    def _do_connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.calls.append(("connect",))

    def _do_disconnect(self) -> None:
        self.calls.append(("disconnect",))
        if self.disconnect_error is not None:
            raise self.disconnect_error

    def describe_version(self) -> str:
        self._check_connected()
        if self.version_error is not None:
            raise self.version_error
        self.calls.append(("describe_version",))
        return self.server_version

    def login(self, auth_request: AuthRequest) -> Any:
        if self.login_error is not None:
            raise self.login_error
        self.calls.append(("login", dict(auth_request.credentials)))
        return True

    def set_cql_version(self, version: str) -> None:
        self.calls.append(("set_cql_version", version))

    def _raise_for(self, cql: str) -> None:
        error = self.query_errors.get(cql)
        if error is not None:
            raise error

    def execute_cql_query(self, cql: str, compression: Compression) -> Any:
        self._check_connected()
        self.calls.append(("execute_cql_query", cql, compression))
        self._raise_for(cql)
        return ["legacy", cql]

    def describe_keyspace(self, name: str) -> Any:
        self._check_connected()
        if name not in self.keyspace_names:
            raise InvalidRequest(f"Keyspace '{name}' does not exist")
        return {"name": name}

    def describe_keyspaces(self) -> List[Any]:
        self._check_connected()
        return [{"name": name} for name in self.keyspace_names]

    # Helpers for assertions

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def logins(self) -> List[Dict[str, str]]:
        return [call[1] for call in self.calls if call[0] == "login"]

    def queries(self) -> List[str]:
        return [call[1] for call in self.calls if call[0].startswith("execute_")]


class FakeTransport(LegacyFakeTransport):
    """Fake transport that also speaks the versioned query RPC."""

    server_version = "19.36.0"

    def execute_cql3_query(self, cql: str, compression: Compression, consistency: int) -> Any:
        self._check_connected()
        self.calls.append(("execute_cql3_query", cql, compression, consistency))
        self._raise_for(cql)
        return ["versioned", cql, consistency]


def fake_transport_class(base: type = FakeTransport, **config: Any) -> type:
    """Build a fake transport subclass with its own settings and instance list."""
    attrs = {"created": [], "query_errors": {}}
    attrs.update(config)
    return type(base.__name__, (base,), attrs)
