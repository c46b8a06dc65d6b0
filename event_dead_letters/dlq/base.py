"""
Event Dead Letters Interface
Abstract base class for all dead letter store backends
"""

import time
from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

import structlog

from event_dead_letters.codec.serializer import EventSerializer
from event_dead_letters.models.dead_letter_event import DeadLetter
from event_dead_letters.models.event import Event
from event_dead_letters.models.group import Group
from event_dead_letters.models.insertion_id import InsertionId
from event_dead_letters.observability.metrics import (
    increment_remove_requests,
    increment_stored,
    observe_backend_operation,
    set_groups_with_failed_events,
)
from event_dead_letters.observability.tracing import trace_dead_letter_operation

logger = structlog.get_logger(__name__)


class DeadLettersError(Exception):
    """Base exception for dead letter store errors"""

    pass


class DeadLettersBackendError(DeadLettersError):
    """Raised when a dead letter backend cannot be built from configuration"""

    pass


def _require(**arguments: object) -> None:
    for name, value in arguments.items():
        if value is None:
            raise ValueError(f"'{name}' is mandatory")


class EventDeadLetters(ABC):
    """
    Durable registry of event deliveries that failed for a listener group

    Records are keyed by (group, insertion id). Public methods validate
    arguments, serialize events and record logs, metrics and spans; backends
    implement the underscore-prefixed storage primitives:
    - _store(): Upsert one serialized record and index its group
    - _remove() / _remove_group(): Delete records, silently when absent
    - _read() / _read_ids(): Point and per-group lookups
    - _known_groups() / _has_events(): Known-groups index and LIMIT 1 probe

    Backend errors are logged and propagated unchanged.
    """

    backend_name = "abstract"

    def __init__(self, serializer: Optional[EventSerializer] = None):
        """
        Initialize dead letter store

        Args:
            serializer: Event codec (built-in mailbox events if None)
        """
        self.serializer = serializer or EventSerializer()

    async def store(self, group: Group, event: Event) -> InsertionId:
        """
        Record a failed delivery under a freshly minted insertion id

        Args:
            group: Listener group that failed to process the event
            event: Event that could not be delivered

        Returns:
            The minted InsertionId

        Raises:
            ValueError: If group or event is None
        """
        _require(group=group, event=event)

        insertion_id = InsertionId.random()
        await self.store_with_id(group, insertion_id, event)
        return insertion_id

    async def store_with_id(self, group: Group, insertion_id: InsertionId, event: Event) -> None:
        """
        Record a failed delivery under a caller-provided insertion id

        An existing record with the same key is overwritten.

        Raises:
            ValueError: If any argument is None
        """
        _require(group=group, insertion_id=insertion_id, event=event)

        payload = self.serializer.to_json(event)
        span = trace_dead_letter_operation("store", group.name, insertion_id.as_string())
        start_time = time.perf_counter()

        try:
            await self._store(group, insertion_id, payload)
        except Exception as e:
            logger.error(
                "Failed to store dead letter",
                group=group.name,
                insertion_id=insertion_id.as_string(),
                error=str(e),
            )
            raise
        finally:
            span.end()
            self._observe("store", start_time)

        increment_stored(group.name)
        logger.info(
            "Dead letter stored",
            group=group.name,
            insertion_id=insertion_id.as_string(),
            event_type=event.event_type.value,
        )

    async def remove(self, group: Group, insertion_id: InsertionId) -> None:
        """
        Delete one dead letter; removing a missing record is a no-op

        Raises:
            ValueError: If group or insertion_id is None
        """
        _require(group=group, insertion_id=insertion_id)

        span = trace_dead_letter_operation("remove", group.name, insertion_id.as_string())
        start_time = time.perf_counter()

        try:
            await self._remove(group, insertion_id)
        except Exception as e:
            logger.error(
                "Failed to remove dead letter",
                group=group.name,
                insertion_id=insertion_id.as_string(),
                error=str(e),
            )
            raise
        finally:
            span.end()
            self._observe("remove", start_time)

        increment_remove_requests(group.name)
        logger.info("Dead letter removed", group=group.name, insertion_id=insertion_id.as_string())

    async def remove_group(self, group: Group) -> None:
        """
        Delete every dead letter of one group; no-op for an unknown group

        Raises:
            ValueError: If group is None
        """
        _require(group=group)

        span = trace_dead_letter_operation("remove_group", group.name)
        start_time = time.perf_counter()

        try:
            await self._remove_group(group)
        except Exception as e:
            logger.error("Failed to remove dead letters of group", group=group.name, error=str(e))
            raise
        finally:
            span.end()
            self._observe("remove_group", start_time)

        logger.info("Dead letters of group removed", group=group.name)

    async def failed_event(self, group: Group, insertion_id: InsertionId) -> Optional[Event]:
        """
        Point lookup of one dead letter

        Args:
            group: Listener group
            insertion_id: Insertion id returned by store()

        Returns:
            The stored event, or None when the record is missing or its
            payload cannot be decoded by this build

        Raises:
            ValueError: If group or insertion_id is None
        """
        _require(group=group, insertion_id=insertion_id)

        start_time = time.perf_counter()
        try:
            payload = await self._read(group, insertion_id)
        finally:
            self._observe("read", start_time)

        if payload is None:
            logger.debug("Dead letter not found", group=group.name, insertion_id=insertion_id.as_string())
            return None

        return self.serializer.from_json(payload)

    def failed_ids(self, group: Group) -> AsyncIterator[InsertionId]:
        """
        Enumerate insertion ids currently stored for one group

        The iterator is lazy, consumed once and may be re-issued. Records
        written during iteration may or may not be observed.

        Raises:
            ValueError: If group is None (raised on call, not on iteration)
        """
        _require(group=group)
        return self._read_ids(group)

    async def failed_delivery(self, group: Group, insertion_id: InsertionId) -> Optional[DeadLetter]:
        """
        Point lookup returning the record itself

        Unlike failed_event(), this tells a missing record (None) apart from
        an undecodable one (a DeadLetter whose event is None).

        Raises:
            ValueError: If group or insertion_id is None
        """
        _require(group=group, insertion_id=insertion_id)

        payload = await self._read(group, insertion_id)
        if payload is None:
            return None

        return DeadLetter(group=group, insertion_id=insertion_id, event=self.serializer.from_json(payload))

    async def failed_deliveries(self, group: Group) -> AsyncIterator[DeadLetter]:
        """
        Enumerate the dead letters of one group with their decoded events

        Records whose payload cannot be decoded are yielded with event=None,
        so they remain visible and removable.
        """
        async for insertion_id in self.failed_ids(group):
            dead_letter = await self.failed_delivery(group, insertion_id)
            if dead_letter is None:
                # Removed while iterating
                continue
            yield dead_letter

    async def contain_events(self) -> bool:
        """
        Whether any group currently holds at least one dead letter

        Every group of the known-groups index is probed until one has a
        record; the primary table is never scanned.
        """
        start_time = time.perf_counter()
        try:
            async for group in self._known_groups():
                if await self._has_events(group):
                    return True
            return False
        finally:
            self._observe("contain_events", start_time)

    def groups_with_failed_events(self) -> AsyncIterator[Group]:
        """Enumerate, without duplicates, the groups holding at least one dead letter"""
        return self._groups_with_failed_events()

    async def _groups_with_failed_events(self) -> AsyncIterator[Group]:
        seen = set()
        with_events = 0

        async for group in self._known_groups():
            if group in seen:
                continue
            seen.add(group)
            if await self._has_events(group):
                with_events += 1
                yield group

        # Only reached when the caller drains the iterator
        set_groups_with_failed_events(with_events)

    async def close(self) -> None:
        """Release backend resources owned by this store (none by default)"""
        pass

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    def _observe(self, operation: str, start_time: float) -> None:
        observe_backend_operation(self.backend_name, operation, time.perf_counter() - start_time)

    @abstractmethod
    async def _store(self, group: Group, insertion_id: InsertionId, payload: str) -> None:
        """Upsert one serialized record and add its group to the known-groups index"""
        pass

    @abstractmethod
    async def _remove(self, group: Group, insertion_id: InsertionId) -> None:
        """Delete one record if present"""
        pass

    @abstractmethod
    async def _remove_group(self, group: Group) -> None:
        """Delete every record of one group"""
        pass

    @abstractmethod
    async def _read(self, group: Group, insertion_id: InsertionId) -> Optional[str]:
        """Return the serialized payload of one record, or None"""
        pass

    @abstractmethod
    def _read_ids(self, group: Group) -> AsyncIterator[InsertionId]:
        """Lazily yield the insertion ids of one group"""
        pass

    @abstractmethod
    def _known_groups(self) -> AsyncIterator[Group]:
        """Lazily yield every group that ever held a record"""
        pass

    @abstractmethod
    async def _has_events(self, group: Group) -> bool:
        """Bounded probe: does at least one record exist for this group"""
        pass
