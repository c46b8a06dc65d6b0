"""
Integration Fixtures
Provides testcontainers for Cassandra and Postgres dead letter backends
"""

from typing import AsyncGenerator, Generator
from uuid import uuid4

import pytest
from cassandra.cluster import Cluster, Session
from psycopg import AsyncConnection
from testcontainers.cassandra import CassandraContainer
from testcontainers.postgres import PostgresContainer

from event_dead_letters.dlq.cassandra import (
    EVENT_DEAD_LETTERS_TABLE,
    GROUPS_TABLE,
    SCHEMA_STATEMENTS,
    CassandraEventDeadLetters,
)
from event_dead_letters.dlq.postgres import PostgresEventDeadLetters

TEST_KEYSPACE = "dead_letters_test"


def pytest_collection_modifyitems(items):
    for item in items:
        if "tests/integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


# ============================================================================
# Cassandra Testcontainer
# ============================================================================


@pytest.fixture(scope="session")
def cassandra_container() -> Generator[CassandraContainer, None, None]:
    """
    Start a Cassandra testcontainer for the test session

    Yields:
        Running CassandraContainer instance
    """
    container = CassandraContainer("cassandra:4.1")
    container.start()
    yield container
    container.stop()


@pytest.fixture(scope="session")
def cassandra_session(cassandra_container: CassandraContainer) -> Generator[Session, None, None]:
    """
    Create a Cassandra session bound to a keyspace holding the dead letter tables

    Args:
        cassandra_container: Running Cassandra container

    Yields:
        Cassandra Session instance
    """
    cluster = Cluster(
        [cassandra_container.get_container_host_ip()],
        port=int(cassandra_container.get_exposed_port(9042)),
    )
    session = cluster.connect()

    session.execute(
        f"""
        CREATE KEYSPACE IF NOT EXISTS {TEST_KEYSPACE}
        WITH replication = {{'class': 'SimpleStrategy', 'replication_factor': 1}}
        """
    )
    session.set_keyspace(TEST_KEYSPACE)
    for statement in SCHEMA_STATEMENTS:
        session.execute(statement)

    yield session

    session.shutdown()
    cluster.shutdown()


@pytest.fixture
def cassandra_dead_letters(cassandra_session: Session) -> CassandraEventDeadLetters:
    """Empty Cassandra dead letter store"""
    cassandra_session.execute(f"TRUNCATE {EVENT_DEAD_LETTERS_TABLE}")
    cassandra_session.execute(f"TRUNCATE {GROUPS_TABLE}")
    return CassandraEventDeadLetters(cassandra_session)


# ============================================================================
# Postgres Testcontainer
# ============================================================================


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start a Postgres testcontainer for the test session

    Yields:
        Running PostgresContainer instance
    """
    container = PostgresContainer("postgres:15", driver=None)
    container.start()
    yield container
    container.stop()


@pytest.fixture
async def postgres_connection(postgres_container: PostgresContainer) -> AsyncGenerator[AsyncConnection, None]:
    """
    Create an autocommit async Postgres connection to the testcontainer

    Args:
        postgres_container: Running Postgres container

    Yields:
        Async Postgres connection
    """
    conn = await AsyncConnection.connect(postgres_container.get_connection_url(), autocommit=True)
    yield conn
    await conn.close()


@pytest.fixture
async def postgres_dead_letters(
    postgres_connection: AsyncConnection,
) -> AsyncGenerator[PostgresEventDeadLetters, None]:
    """Empty Postgres dead letter store in a throwaway schema"""
    schema = f"dead_letters_{uuid4().hex[:12]}"
    await postgres_connection.execute(f"CREATE SCHEMA {schema}")

    dead_letters = PostgresEventDeadLetters(postgres_connection, schema=schema)
    await dead_letters.create_tables()

    yield dead_letters

    await postgres_connection.execute(f"DROP SCHEMA {schema} CASCADE")
