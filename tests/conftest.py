"""
Pytest configuration and shared fixtures.
"""

import pytest

from tests._fixtures.transport import FakeTransport, LegacyFakeTransport, fake_transport_class


@pytest.fixture
def transport_class():
    """A fresh fake transport class speaking both query RPCs."""
    return fake_transport_class(FakeTransport)


@pytest.fixture
def legacy_transport_class():
    """A fresh fake transport class that only speaks the legacy RPC."""
    return fake_transport_class(LegacyFakeTransport)


@pytest.fixture
def make_session(transport_class):
    """Factory building sessions against the fake transport."""
    from cassandra_cql import Session

    def _make(options=None, transport_options=None, **kwargs):
        kwargs.setdefault("transport_class", transport_class)
        return Session(["127.0.0.1:9160"], options, transport_options, **kwargs)

    return _make
