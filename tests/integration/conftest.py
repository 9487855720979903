"""
Pytest configuration for integration tests.

Integration tests talk to a real Cassandra node and only run when
CASSANDRA_CONTACT_POINTS is set, e.g. ``CASSANDRA_CONTACT_POINTS=127.0.0.1:9042``.
"""

import os

import pytest

from cassandra_cql import Session

KEYSPACE = "test_cassandra_cql"


def pytest_collection_modifyitems(config, items):
    if os.environ.get("CASSANDRA_CONTACT_POINTS"):
        return
    skip = pytest.mark.skip(reason="CASSANDRA_CONTACT_POINTS not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def contact_points():
    return os.environ["CASSANDRA_CONTACT_POINTS"].split(",")


@pytest.fixture(scope="session")
def test_keyspace(contact_points):
    """Create the test keyspace once per test run."""
    with Session(contact_points) as admin:
        admin.execute(
            f"""
            CREATE KEYSPACE IF NOT EXISTS {KEYSPACE}
            WITH REPLICATION = {{
                'class': 'SimpleStrategy',
                'replication_factor': 1
            }}
            """
        )
    yield KEYSPACE

    with Session(contact_points) as admin:
        admin.execute(f"DROP KEYSPACE IF EXISTS {KEYSPACE}")


@pytest.fixture
def cassandra_session(contact_points, test_keyspace):
    """Create a session bound to the test keyspace with a users table."""
    session = Session(contact_points, {"keyspace": test_keyspace})
    session.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id int PRIMARY KEY,
            name text
        )
        """
    )
    yield session

    if session.is_active():
        session.execute("TRUNCATE users")
    session.disconnect()
