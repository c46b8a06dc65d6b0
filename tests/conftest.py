"""
Pytest Fixtures and Test Configuration
Database containers live in tests/integration/conftest.py
"""

from typing import AsyncGenerator
from uuid import uuid4

import pytest

from event_dead_letters.codec.serializer import EventSerializer
from event_dead_letters.dlq.memory import MemoryEventDeadLetters
from event_dead_letters.models.event import FlagsUpdated, MailboxRenamed, QuotaUsageUpdated
from event_dead_letters.models.group import Group


@pytest.fixture
def serializer() -> EventSerializer:
    """Serializer knowing the built-in mailbox events"""
    return EventSerializer()


@pytest.fixture
async def memory_dead_letters(serializer: EventSerializer) -> AsyncGenerator[MemoryEventDeadLetters, None]:
    """Empty in-memory dead letter store"""
    async with MemoryEventDeadLetters(serializer=serializer) as dead_letters:
        yield dead_letters


@pytest.fixture
def indexing_group() -> Group:
    return Group("mailbox-indexing")


@pytest.fixture
def quota_group() -> Group:
    return Group("quota-recompute")


@pytest.fixture
def renamed_event() -> MailboxRenamed:
    return MailboxRenamed.create(
        username="bob@domain.tld",
        mailbox_id="42",
        old_path="#private:bob@domain.tld:Drafts",
        new_path="#private:bob@domain.tld:Archive",
    )


@pytest.fixture
def flags_event() -> FlagsUpdated:
    return FlagsUpdated(
        event_id=uuid4(),
        username="bob@domain.tld",
        mailbox_id="42",
        uids=(7, 8),
        flags=("\\Seen", "\\Flagged"),
    )


@pytest.fixture
def quota_event() -> QuotaUsageUpdated:
    return QuotaUsageUpdated.create(
        username="bob@domain.tld",
        quota_root="#private&bob@domain.tld",
        count_used=12,
        size_used=4096,
    )
