"""
Dead Letter Data Model
Represents one failed delivery of an event to a listener group
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from event_dead_letters.models.event import Event
from event_dead_letters.models.group import Group
from event_dead_letters.models.insertion_id import InsertionId


@dataclass(frozen=True)
class DeadLetter:
    """
    Failed delivery record stored in the dead letter store

    Several groups may each hold their own record for the same published
    event; records are never shared between groups.

    Attributes:
        group: Listener group that failed to process the event
        insertion_id: Id minted when the failure was recorded
        event: Failed event, or None when the stored payload cannot be decoded
    """

    group: Group
    insertion_id: InsertionId
    event: Optional[Event]

    @property
    def is_decodable(self) -> bool:
        """Whether the stored payload could be decoded by this build"""
        return self.event is not None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for operator views

        Returns:
            Dict representation
        """
        return {
            "group": self.group.name,
            "insertion_id": self.insertion_id.as_string(),
            "event": self.event.to_dict() if self.event is not None else None,
        }
