"""
Session-bound CQL statements.
"""

from typing import TYPE_CHECKING, Any, Sequence

from cassandra.encoder import Encoder
from cassandra.query import bind_params

from .transport import Compression

if TYPE_CHECKING:
    from .session import Session

_encoder = Encoder()


class Statement:
    """
    A CQL statement bound to the session that created it.

    Positional bind values use the driver's ``%s`` placeholders and are
    encoded with the driver's CQL literal encoder.
    """

    def __init__(self, handle: "Session", statement: str):
        self._handle = handle
        self._statement = statement

    @property
    def statement(self) -> str:
        return self._statement

    def bind(self, bind_values: Sequence[Any] = ()) -> str:
        """Render the statement text with the given positional values."""
        if not bind_values:
            return self._statement
        return bind_params(self._statement, tuple(bind_values), _encoder)

    def execute(self, bind_values: Sequence[Any] = (), compression: Compression = Compression.NONE) -> Any:
        """
        Execute the statement on its session.

        Args:
            bind_values: Positional values for the statement's placeholders.
            compression: Query body compression.

        Returns:
            The transport's raw result.
        """
        return self._handle.execute_cql_query(self.bind(bind_values), compression)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self._statement!r}>"
