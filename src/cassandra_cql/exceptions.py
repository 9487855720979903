"""
Exception classes for cassandra-cql.
"""

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple, Type


class CassandraCQLError(Exception):
    """Base exception for all cassandra-cql errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ConnectionError(CassandraCQLError):
    """Raised when the transport is used while not connected."""


class InvalidRequestException(CassandraCQLError):
    """
    Raised when the server rejects a statement or query.

    The ``why`` attribute carries the server's explanation.
    """

    def __init__(self, why: str, cause: Optional[Exception] = None):
        super().__init__(why, cause)
        self.why = why


class InvalidArgument(CassandraCQLError, ValueError):
    """Raised when the caller supplies an unrecognized argument value."""


def fault_message(fault: BaseException) -> str:
    """Extract the server's explanation from a transport fault."""
    why = getattr(fault, "why", None)
    if why:
        return str(why)
    return str(fault)


@contextmanager
def translate_invalid_request(fault_classes: Tuple[Type[BaseException], ...]) -> Iterator[None]:
    """
    Re-raise transport invalid-request faults as InvalidRequestException.

    Args:
        fault_classes: Exception classes the transport raises when a
            request is rejected by the server.

    Raises:
        InvalidRequestException: If the body raises one of ``fault_classes``.
    """
    try:
        yield
    except fault_classes as e:
        raise InvalidRequestException(fault_message(e), e) from e
