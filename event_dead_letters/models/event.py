"""
Mailbox Event Data Model - Events published on the mailbox event bus
Only the identifiers dead letters need are modelled here.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Tuple
from uuid import UUID, uuid4


class EventType(str, Enum):
    """Discriminator written next to every serialized event"""

    MAILBOX_ADDED = "MailboxAdded"
    MAILBOX_DELETION = "MailboxDeletion"
    MAILBOX_RENAMED = "MailboxRenamed"
    MESSAGE_ADDED = "MessageAdded"
    FLAGS_UPDATED = "FlagsUpdated"
    EXPUNGED = "Expunged"
    QUOTA_USAGE_UPDATED = "QuotaUsageUpdated"


@dataclass(frozen=True)
class Event:
    """
    One occurrence on the mailbox event bus

    Attributes:
        event_id: Unique identifier of the published event
        username: Owner of the mailbox the event relates to
    """

    event_type: ClassVar[EventType]
    # Fields holding tuples; JSON brings them back as lists
    sequence_fields: ClassVar[Tuple[str, ...]] = ()

    event_id: UUID
    username: str

    def __post_init__(self) -> None:
        """Validate Event after initialization"""
        if not isinstance(self.event_id, UUID):
            raise ValueError("event_id must be a UUID")

        if not self.username:
            raise ValueError("username must be non-empty")

    @classmethod
    def create(cls, **kwargs: Any) -> "Event":
        """Factory method generating a fresh event_id"""
        return cls(event_id=uuid4(), **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary (for serialization)"""
        data: Dict[str, Any] = {"type": self.event_type.value}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, UUID):
                value = str(value)
            elif isinstance(value, tuple):
                value = list(value)
            data[f.name] = value
        return data


@dataclass(frozen=True)
class MailboxAdded(Event):
    event_type: ClassVar[EventType] = EventType.MAILBOX_ADDED

    mailbox_id: str
    mailbox_path: str


@dataclass(frozen=True)
class MailboxDeletion(Event):
    event_type: ClassVar[EventType] = EventType.MAILBOX_DELETION

    mailbox_id: str
    mailbox_path: str
    total_deleted_messages: int = 0


@dataclass(frozen=True)
class MailboxRenamed(Event):
    event_type: ClassVar[EventType] = EventType.MAILBOX_RENAMED

    mailbox_id: str
    old_path: str
    new_path: str


@dataclass(frozen=True)
class MessageAdded(Event):
    event_type: ClassVar[EventType] = EventType.MESSAGE_ADDED
    sequence_fields: ClassVar[Tuple[str, ...]] = ("uids",)

    mailbox_id: str
    uids: Tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FlagsUpdated(Event):
    event_type: ClassVar[EventType] = EventType.FLAGS_UPDATED
    sequence_fields: ClassVar[Tuple[str, ...]] = ("uids", "flags")

    mailbox_id: str
    uids: Tuple[int, ...] = field(default_factory=tuple)
    flags: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Expunged(Event):
    event_type: ClassVar[EventType] = EventType.EXPUNGED
    sequence_fields: ClassVar[Tuple[str, ...]] = ("uids",)

    mailbox_id: str
    uids: Tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class QuotaUsageUpdated(Event):
    """Quota usage of a quota root after a mailbox mutation"""

    event_type: ClassVar[EventType] = EventType.QUOTA_USAGE_UPDATED

    quota_root: str
    count_used: int
    size_used: int

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.count_used < 0 or self.size_used < 0:
            raise ValueError("quota usage must be non-negative")


BUILTIN_EVENTS = (
    MailboxAdded,
    MailboxDeletion,
    MailboxRenamed,
    MessageAdded,
    FlagsUpdated,
    Expunged,
    QuotaUsageUpdated,
)
