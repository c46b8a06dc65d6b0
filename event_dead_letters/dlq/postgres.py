"""
PostgreSQL Event Dead Letters
Stores dead letters in a table keyed by (group_name, insertion_id)
"""

from typing import AsyncIterator, Optional

import structlog
from psycopg import AsyncConnection

from event_dead_letters.codec.serializer import EventSerializer
from event_dead_letters.dlq.base import EventDeadLetters
from event_dead_letters.models.group import Group
from event_dead_letters.models.insertion_id import InsertionId

logger = structlog.get_logger(__name__)


class PostgresEventDeadLetters(EventDeadLetters):
    """
    Postgres-backed dead letters using INSERT ... ON CONFLICT upserts

    The composite primary key serves both point lookups and per-group
    listings; a separate groups table drives existence queries. The
    connection must be in autocommit mode and is owned by the caller.
    """

    backend_name = "postgres"

    def __init__(
        self,
        connection: AsyncConnection,
        schema: str = "public",
        serializer: Optional[EventSerializer] = None,
    ):
        """
        Initialize Postgres dead letters

        Args:
            connection: Shared async connection (autocommit)
            schema: Database schema holding the tables
            serializer: Event codec
        """
        super().__init__(serializer)
        self._conn = connection
        self.schema = schema
        self.table = f"{schema}.event_dead_letters"
        self.groups_table = f"{schema}.event_dead_letters_groups"

        logger.info("Postgres dead letters initialized", schema=schema)

    async def create_tables(self) -> None:
        """Create dead letter tables if missing"""
        async with self._conn.cursor() as cur:
            await cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    group_name TEXT NOT NULL,
                    insertion_id UUID NOT NULL,
                    event TEXT NOT NULL,
                    PRIMARY KEY (group_name, insertion_id)
                )
                """
            )
            await cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.groups_table} (
                    group_name TEXT PRIMARY KEY
                )
                """
            )

        logger.info("Dead letter tables ready", schema=self.schema)

    async def _store(self, group: Group, insertion_id: InsertionId, payload: str) -> None:
        async with self._conn.cursor() as cur:
            # Index first: a record must never exist for an unindexed group
            await cur.execute(
                f"INSERT INTO {self.groups_table} (group_name) VALUES (%s) ON CONFLICT DO NOTHING",
                (group.name,),
            )
            await cur.execute(
                f"""
                INSERT INTO {self.table} (group_name, insertion_id, event)
                VALUES (%s, %s, %s)
                ON CONFLICT (group_name, insertion_id) DO UPDATE SET event = EXCLUDED.event
                """,
                (group.name, insertion_id.value, payload),
            )

    async def _remove(self, group: Group, insertion_id: InsertionId) -> None:
        async with self._conn.cursor() as cur:
            await cur.execute(
                f"DELETE FROM {self.table} WHERE group_name = %s AND insertion_id = %s",
                (group.name, insertion_id.value),
            )

    async def _remove_group(self, group: Group) -> None:
        async with self._conn.cursor() as cur:
            await cur.execute(f"DELETE FROM {self.table} WHERE group_name = %s", (group.name,))

    async def _read(self, group: Group, insertion_id: InsertionId) -> Optional[str]:
        async with self._conn.cursor() as cur:
            await cur.execute(
                f"SELECT event FROM {self.table} WHERE group_name = %s AND insertion_id = %s",
                (group.name, insertion_id.value),
            )
            row = await cur.fetchone()

        return row[0] if row else None

    async def _read_ids(self, group: Group) -> AsyncIterator[InsertionId]:
        async with self._conn.cursor() as cur:
            await cur.execute(
                f"SELECT insertion_id FROM {self.table} WHERE group_name = %s", (group.name,)
            )
            async for row in cur:
                yield InsertionId.of(row[0])

    async def _known_groups(self) -> AsyncIterator[Group]:
        async with self._conn.cursor() as cur:
            await cur.execute(f"SELECT group_name FROM {self.groups_table}")
            async for row in cur:
                yield Group.of(row[0])

    async def _has_events(self, group: Group) -> bool:
        async with self._conn.cursor() as cur:
            await cur.execute(
                f"SELECT 1 FROM {self.table} WHERE group_name = %s LIMIT 1", (group.name,)
            )
            return await cur.fetchone() is not None
