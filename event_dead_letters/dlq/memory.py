"""
In-Memory Event Dead Letters
Single-process backend used by tests and embedded deployments
"""

import threading
from typing import AsyncIterator, Dict, List, Optional

import structlog

from event_dead_letters.codec.serializer import EventSerializer
from event_dead_letters.dlq.base import EventDeadLetters
from event_dead_letters.models.group import Group
from event_dead_letters.models.insertion_id import InsertionId

logger = structlog.get_logger(__name__)


class MemoryEventDeadLetters(EventDeadLetters):
    """
    Dead letters kept in process memory

    Records are partitioned per group the same way the persistent backends
    lay them out. A lock keeps the store safe when shared between threads
    running their own event loops.
    """

    backend_name = "memory"

    def __init__(self, serializer: Optional[EventSerializer] = None):
        super().__init__(serializer)
        self._partitions: Dict[Group, Dict[InsertionId, str]] = {}
        self._known: List[Group] = []
        self._lock = threading.Lock()

        logger.info("In-memory dead letters initialized")

    async def _store(self, group: Group, insertion_id: InsertionId, payload: str) -> None:
        with self._lock:
            if group not in self._partitions:
                self._partitions[group] = {}
                if group not in self._known:
                    self._known.append(group)
            self._partitions[group][insertion_id] = payload

    async def _remove(self, group: Group, insertion_id: InsertionId) -> None:
        with self._lock:
            partition = self._partitions.get(group)
            if partition is not None:
                partition.pop(insertion_id, None)

    async def _remove_group(self, group: Group) -> None:
        with self._lock:
            self._partitions.pop(group, None)

    async def _read(self, group: Group, insertion_id: InsertionId) -> Optional[str]:
        with self._lock:
            return self._partitions.get(group, {}).get(insertion_id)

    async def _read_ids(self, group: Group) -> AsyncIterator[InsertionId]:
        with self._lock:
            snapshot = list(self._partitions.get(group, {}))

        for insertion_id in snapshot:
            yield insertion_id

    async def _known_groups(self) -> AsyncIterator[Group]:
        with self._lock:
            snapshot = list(self._known)

        for group in snapshot:
            yield group

    async def _has_events(self, group: Group) -> bool:
        with self._lock:
            return bool(self._partitions.get(group))
