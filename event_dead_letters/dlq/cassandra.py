"""
Cassandra Event Dead Letters
Stores dead letters in a group-partitioned table plus a known-groups table
"""

import asyncio
from typing import Any, AsyncIterator, Callable, List, Optional, Sequence

import structlog
from cassandra.cluster import ResponseFuture, Session

from event_dead_letters.codec.serializer import EventSerializer
from event_dead_letters.dlq.base import EventDeadLetters
from event_dead_letters.models.group import Group
from event_dead_letters.models.insertion_id import InsertionId

logger = structlog.get_logger(__name__)

EVENT_DEAD_LETTERS_TABLE = "event_dead_letters"
GROUPS_TABLE = "event_dead_letters_groups"

SCHEMA_STATEMENTS = (
    f"""
    CREATE TABLE IF NOT EXISTS {EVENT_DEAD_LETTERS_TABLE} (
        group_name text,
        insertion_id uuid,
        event text,
        PRIMARY KEY ((group_name), insertion_id)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {GROUPS_TABLE} (
        group_name text PRIMARY KEY
    )
    """,
)


def _await_page(
    response_future: ResponseFuture,
    fetch: Optional[Callable[[], None]] = None,
) -> "asyncio.Future[List[Any]]":
    """
    Bridge one page of a driver ResponseFuture to an asyncio future

    Driver callbacks run on the driver's IO thread and are handed back to
    the running loop. fetch() must run before add_callbacks: the driver
    calls back at once with whatever result is already set.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def set_result(rows: List[Any]) -> None:
        if not future.done():
            future.set_result(rows)

    def set_exception(exc: BaseException) -> None:
        if not future.done():
            future.set_exception(exc)

    response_future.clear_callbacks()
    if fetch is not None:
        fetch()
    response_future.add_callbacks(
        callback=lambda rows: loop.call_soon_threadsafe(set_result, rows),
        errback=lambda exc: loop.call_soon_threadsafe(set_exception, exc),
    )

    return future


async def execute(session: Session, statement: Any, parameters: Sequence[Any] = ()) -> List[Any]:
    """Run one statement without blocking the loop and return its first page"""
    return await _await_page(session.execute_async(statement, parameters))


async def execute_paged(
    session: Session,
    statement: Any,
    parameters: Sequence[Any] = (),
) -> AsyncIterator[Any]:
    """Lazily yield every row of a statement, fetching pages on demand"""
    response_future = session.execute_async(statement, parameters)
    rows = await _await_page(response_future)

    while True:
        for row in rows:
            yield row

        if not response_future.has_more_pages:
            break

        rows = await _await_page(response_future, fetch=response_future.start_fetching_next_page)


async def create_tables(session: Session) -> None:
    """
    Create dead letter tables in the session's keyspace

    Args:
        session: Session bound to the target keyspace
    """
    for statement in SCHEMA_STATEMENTS:
        await execute(session, statement)

    logger.info("Dead letter tables ready", tables=[EVENT_DEAD_LETTERS_TABLE, GROUPS_TABLE])


class CassandraEventDeadLettersDAO:
    """
    Primary table: one partition per group, clustered by insertion id

    Point lookups use the full key; listings and existence probes stay
    inside one partition.
    """

    def __init__(self, session: Session):
        """
        Prepare statements against an existing table

        Args:
            session: Shared session bound to the keyspace
        """
        self.session = session
        self._insert = session.prepare(
            f"INSERT INTO {EVENT_DEAD_LETTERS_TABLE} (group_name, insertion_id, event) VALUES (?, ?, ?)"
        )
        self._delete = session.prepare(
            f"DELETE FROM {EVENT_DEAD_LETTERS_TABLE} WHERE group_name = ? AND insertion_id = ?"
        )
        self._delete_group = session.prepare(
            f"DELETE FROM {EVENT_DEAD_LETTERS_TABLE} WHERE group_name = ?"
        )
        self._select_event = session.prepare(
            f"SELECT event FROM {EVENT_DEAD_LETTERS_TABLE} WHERE group_name = ? AND insertion_id = ?"
        )
        self._select_ids = session.prepare(
            f"SELECT insertion_id FROM {EVENT_DEAD_LETTERS_TABLE} WHERE group_name = ?"
        )
        self._probe = session.prepare(
            f"SELECT insertion_id FROM {EVENT_DEAD_LETTERS_TABLE} WHERE group_name = ? LIMIT 1"
        )

    async def store(self, group: Group, insertion_id: InsertionId, payload: str) -> None:
        await execute(self.session, self._insert, (group.name, insertion_id.value, payload))

    async def remove(self, group: Group, insertion_id: InsertionId) -> None:
        await execute(self.session, self._delete, (group.name, insertion_id.value))

    async def remove_group(self, group: Group) -> None:
        await execute(self.session, self._delete_group, (group.name,))

    async def retrieve_payload(self, group: Group, insertion_id: InsertionId) -> Optional[str]:
        rows = await execute(self.session, self._select_event, (group.name, insertion_id.value))
        for row in rows:
            return row.event
        return None

    async def retrieve_insertion_ids(self, group: Group) -> AsyncIterator[InsertionId]:
        async for row in execute_paged(self.session, self._select_ids, (group.name,)):
            yield InsertionId.of(row.insertion_id)

    async def contains_events(self, group: Group) -> bool:
        rows = await execute(self.session, self._probe, (group.name,))
        return len(list(rows)) > 0


class CassandraEventDeadLettersGroupDAO:
    """Known-groups side table; entries are added on store and never removed"""

    def __init__(self, session: Session):
        self.session = session
        self._insert = session.prepare(f"INSERT INTO {GROUPS_TABLE} (group_name) VALUES (?)")
        self._select_all = session.prepare(f"SELECT group_name FROM {GROUPS_TABLE}")

    async def store(self, group: Group) -> None:
        await execute(self.session, self._insert, (group.name,))

    async def retrieve_all_groups(self) -> AsyncIterator[Group]:
        async for row in execute_paged(self.session, self._select_all):
            yield Group.of(row.group_name)


class CassandraEventDeadLetters(EventDeadLetters):
    """
    Cassandra-backed dead letters

    The session is owned by the caller (see open_event_dead_letters); this
    class never shuts it down.
    """

    backend_name = "cassandra"

    def __init__(self, session: Session, serializer: Optional[EventSerializer] = None):
        """
        Initialize Cassandra dead letters

        Args:
            session: Shared session bound to a keyspace holding the tables
            serializer: Event codec
        """
        super().__init__(serializer)
        self.dao = CassandraEventDeadLettersDAO(session)
        self.group_dao = CassandraEventDeadLettersGroupDAO(session)

        logger.info("Cassandra dead letters initialized", keyspace=session.keyspace)

    async def _store(self, group: Group, insertion_id: InsertionId, payload: str) -> None:
        # Index first: a record must never exist for an unindexed group
        await self.group_dao.store(group)
        await self.dao.store(group, insertion_id, payload)

    async def _remove(self, group: Group, insertion_id: InsertionId) -> None:
        await self.dao.remove(group, insertion_id)

    async def _remove_group(self, group: Group) -> None:
        await self.dao.remove_group(group)

    async def _read(self, group: Group, insertion_id: InsertionId) -> Optional[str]:
        return await self.dao.retrieve_payload(group, insertion_id)

    def _read_ids(self, group: Group) -> AsyncIterator[InsertionId]:
        return self.dao.retrieve_insertion_ids(group)

    def _known_groups(self) -> AsyncIterator[Group]:
        return self.group_dao.retrieve_all_groups()

    async def _has_events(self, group: Group) -> bool:
        return await self.dao.contains_events(group)
