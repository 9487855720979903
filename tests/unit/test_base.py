"""
Unit tests for base module lifecycle helpers.
"""

import threading

import pytest

from cassandra_cql.base import Closeable, ContextManageable
from cassandra_cql.exceptions import ConnectionError


class TestCloseable:
    """Test Closeable base class."""

    def test_close_idempotent(self):
        """Test that close can be called multiple times safely."""

        class TestResource(Closeable):
            close_count = 0

            def _do_close(self):
                self.close_count += 1

        resource = TestResource()
        assert not resource.is_closed

        resource.close()
        assert resource.is_closed
        assert resource.close_count == 1

        # Second close should not call _do_close again
        resource.close()
        assert resource.close_count == 1

    def test_concurrent_close(self):
        """Test that close from several threads only closes once."""

        class TestResource(Closeable):
            close_count = 0

            def _do_close(self):
                self.close_count += 1

        resource = TestResource()
        threads = [threading.Thread(target=resource.close) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert resource.is_closed
        assert resource.close_count == 1

    def test_check_not_closed(self):
        class TestResource(Closeable):
            def _do_close(self):
                pass

            def use_resource(self):
                self._check_not_closed()
                return "success"

        resource = TestResource()
        assert resource.use_resource() == "success"

        resource.close()

        with pytest.raises(ConnectionError) as exc_info:
            resource.use_resource()

        assert "TestResource is closed" in str(exc_info.value)


class TestContextManageable:
    """Test ContextManageable mixin."""

    def test_context_manager(self):
        class TestResource(Closeable, ContextManageable):
            def _do_close(self):
                pass

        with TestResource() as resource:
            assert not resource.is_closed

        assert resource.is_closed

    def test_context_manager_with_exception(self):
        """Test context manager closes resource on exception."""

        class TestResource(Closeable, ContextManageable):
            def _do_close(self):
                pass

        resource = None
        with pytest.raises(ValueError):
            with TestResource() as res:
                resource = res
                raise ValueError("Test error")

        assert resource is not None
        assert resource.is_closed
