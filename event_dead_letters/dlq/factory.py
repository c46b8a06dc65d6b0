"""
Dead Letters Backend Factory
Acquires the backend handle once and guarantees its release on shutdown
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog

from event_dead_letters.codec.serializer import EventSerializer
from event_dead_letters.config.settings import CassandraSettings, DeadLettersSettings, PostgresSettings
from event_dead_letters.dlq.base import DeadLettersBackendError, EventDeadLetters
from event_dead_letters.dlq.memory import MemoryEventDeadLetters

logger = structlog.get_logger(__name__)


def build_cassandra_cluster(settings: CassandraSettings):
    """
    Build a Cassandra Cluster from settings

    Args:
        settings: Cassandra configuration

    Returns:
        Unconnected cassandra.cluster.Cluster
    """
    from cassandra.auth import PlainTextAuthProvider
    from cassandra.cluster import Cluster

    auth_provider = None
    if settings.username:
        auth_provider = PlainTextAuthProvider(username=settings.username, password=settings.password)

    ssl_context = None
    if settings.ssl_enabled:
        ssl_context = ssl.create_default_context(cafile=settings.ssl_ca_cert)

    return Cluster(
        settings.hosts,
        port=settings.port,
        auth_provider=auth_provider,
        ssl_context=ssl_context,
    )


@asynccontextmanager
async def _open_cassandra(
    settings: CassandraSettings,
    serializer: Optional[EventSerializer],
) -> AsyncIterator[EventDeadLetters]:
    from event_dead_letters.dlq.cassandra import CassandraEventDeadLetters, create_tables, execute

    loop = asyncio.get_running_loop()
    cluster = build_cassandra_cluster(settings)

    try:
        # Cluster.connect blocks while discovering the ring
        session = await loop.run_in_executor(None, cluster.connect)
        session.default_timeout = settings.request_timeout_seconds

        if settings.create_keyspace:
            await execute(
                session,
                f"""
                CREATE KEYSPACE IF NOT EXISTS {settings.keyspace}
                WITH replication = {{'class': 'SimpleStrategy', 'replication_factor': {settings.replication_factor}}}
                """,
            )

        session.set_keyspace(settings.keyspace)

        if settings.create_keyspace:
            await create_tables(session)

        logger.info("Connected to Cassandra", hosts=settings.hosts, keyspace=settings.keyspace)
        yield CassandraEventDeadLetters(session, serializer=serializer)

    finally:
        await loop.run_in_executor(None, cluster.shutdown)
        logger.info("Disconnected from Cassandra")


@asynccontextmanager
async def _open_postgres(
    settings: PostgresSettings,
    serializer: Optional[EventSerializer],
) -> AsyncIterator[EventDeadLetters]:
    from psycopg import AsyncConnection

    from event_dead_letters.dlq.postgres import PostgresEventDeadLetters

    conn = await AsyncConnection.connect(settings.connection_url, autocommit=True)

    try:
        dead_letters = PostgresEventDeadLetters(
            conn,
            schema=settings.schema_name,
            serializer=serializer,
        )
        if settings.create_tables:
            await dead_letters.create_tables()

        logger.info("Connected to Postgres", host=settings.host, database=settings.database)
        yield dead_letters

    finally:
        await conn.close()
        logger.info("Disconnected from Postgres")


@asynccontextmanager
async def open_event_dead_letters(
    settings: DeadLettersSettings,
    serializer: Optional[EventSerializer] = None,
) -> AsyncIterator[EventDeadLetters]:
    """
    Open the configured dead letter store for the duration of a block

    Args:
        settings: Complete configuration; settings.backend selects the store
        serializer: Event codec (built-in mailbox events if None)

    Yields:
        Ready-to-use EventDeadLetters

    Raises:
        DeadLettersBackendError: If settings.backend is unknown
    """
    logger.info("Opening dead letters backend", backend=settings.backend)

    if settings.backend == "memory":
        async with MemoryEventDeadLetters(serializer=serializer) as dead_letters:
            yield dead_letters

    elif settings.backend == "cassandra":
        async with _open_cassandra(settings.cassandra, serializer) as dead_letters:
            yield dead_letters

    elif settings.backend == "postgres":
        async with _open_postgres(settings.postgres, serializer) as dead_letters:
            yield dead_letters

    else:
        raise DeadLettersBackendError(f"Unknown dead letters backend: {settings.backend}")
