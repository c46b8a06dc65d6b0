"""
Dead Letters Redelivery
Replays dead letters to their group's listener and removes those that succeed
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

import structlog

from event_dead_letters.dlq.base import EventDeadLetters
from event_dead_letters.models.dead_letter_event import DeadLetter
from event_dead_letters.models.event import Event
from event_dead_letters.models.group import Group
from event_dead_letters.models.insertion_id import InsertionId
from event_dead_letters.observability.logging import log_redelivery
from event_dead_letters.observability.metrics import increment_redelivery

logger = structlog.get_logger(__name__)

Listener = Callable[[Event], Awaitable[None]]


@dataclass
class RedeliveryReport:
    """
    Outcome of one redelivery run

    Attributes:
        successful_redeliveries: Dead letters processed and removed
        failed_redeliveries: Dead letters left in place
    """

    successful_redeliveries: int = 0
    failed_redeliveries: int = 0

    def merge(self, other: "RedeliveryReport") -> "RedeliveryReport":
        return RedeliveryReport(
            successful_redeliveries=self.successful_redeliveries + other.successful_redeliveries,
            failed_redeliveries=self.failed_redeliveries + other.failed_redeliveries,
        )


class EventDeadLettersRedeliverService:
    """
    Operator-side replay of dead letters

    Each dead letter gets one delivery attempt per run; there is no retry or
    backoff. A record is removed only once its listener returned without
    raising. Undecodable payloads and groups without a registered listener
    are counted as failures and kept.
    """

    def __init__(self, dead_letters: EventDeadLetters, listeners: Dict[Group, Listener]):
        """
        Initialize redelivery service

        Args:
            dead_letters: Store to replay from
            listeners: Async listener per group
        """
        self.dead_letters = dead_letters
        self.listeners = dict(listeners)

    async def redeliver_all(self) -> RedeliveryReport:
        """Redeliver the dead letters of every group holding some"""
        groups: List[Group] = [group async for group in self.dead_letters.groups_with_failed_events()]

        report = RedeliveryReport()
        for group in groups:
            report = report.merge(await self.redeliver_group(group))

        logger.info(
            "Redelivery of all groups completed",
            groups=len(groups),
            successful=report.successful_redeliveries,
            failed=report.failed_redeliveries,
        )
        return report

    async def redeliver_group(self, group: Group) -> RedeliveryReport:
        """Redeliver every dead letter of one group"""
        # Snapshot first: records are removed while redelivering
        dead_letters = [dead_letter async for dead_letter in self.dead_letters.failed_deliveries(group)]

        report = RedeliveryReport()
        for dead_letter in dead_letters:
            report = report.merge(await self._redeliver(dead_letter))
        return report

    async def redeliver_one(self, group: Group, insertion_id: InsertionId) -> RedeliveryReport:
        """
        Redeliver a single dead letter

        Returns:
            Empty report if the dead letter does not exist
        """
        dead_letter = await self.dead_letters.failed_delivery(group, insertion_id)
        if dead_letter is None:
            logger.info(
                "Nothing to redeliver",
                group=group.name,
                insertion_id=insertion_id.as_string(),
            )
            return RedeliveryReport()

        return await self._redeliver(dead_letter)

    async def _redeliver(self, dead_letter: DeadLetter) -> RedeliveryReport:
        group = dead_letter.group
        insertion_id = dead_letter.insertion_id

        listener = self.listeners.get(group)
        error: Optional[str] = None

        if listener is None:
            error = "no listener registered for group"
        elif not dead_letter.is_decodable:
            error = "stored event cannot be decoded"
        else:
            try:
                await listener(dead_letter.event)
            except Exception as e:
                error = str(e) or type(e).__name__

        if error is None:
            await self.dead_letters.remove(group, insertion_id)

        success = error is None
        increment_redelivery(group.name, success)
        log_redelivery(logger, group.name, insertion_id.as_string(), success, error)

        if success:
            return RedeliveryReport(successful_redeliveries=1)
        return RedeliveryReport(failed_redeliveries=1)
