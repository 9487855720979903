"""
Base classes and mixins for cassandra-cql.

This module provides common lifecycle functionality shared by the
transport and the session.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from .exceptions import ConnectionError

T = TypeVar("T")


class Closeable(ABC):
    """
    Base class for single-use resources that can be closed.

    Provides idempotent close functionality with proper locking.
    """

    def __init__(self) -> None:
        self._closed = False
        self._close_lock = threading.Lock()

    @abstractmethod
    def _do_close(self) -> None:
        """
        Perform the actual close operation.

        Subclasses must implement this method.
        """
        pass

    def close(self) -> None:
        """
        Close the resource idempotently.

        The resource is only closed once, even if called from several
        threads at the same time.
        """
        with self._close_lock:
            if not self._closed:
                self._closed = True
                self._do_close()

    @property
    def is_closed(self) -> bool:
        """Check if the resource is closed."""
        return self._closed

    def _check_not_closed(self) -> None:
        """
        Check that the resource is not closed.

        Raises:
            ConnectionError: If the resource is closed.
        """
        if self._closed:
            raise ConnectionError(f"{self.__class__.__name__} is closed")


class ContextManageable:
    """
    Mixin to add context manager support.

    Classes using this mixin must implement a close() method.
    """

    def __enter__(self: T) -> T:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()  # type: ignore
