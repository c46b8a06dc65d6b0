"""
Group Data Model - Identity of one event bus listener group
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Group:
    """
    Stable name of one independently-failing consumer of the event bus

    Groups are persisted alongside dead letters, so the name must not
    change across process restarts.

    Attributes:
        name: Human-assigned group name (e.g., "mailbox-indexing")
    """

    name: str

    def __post_init__(self) -> None:
        """Validate Group after initialization"""
        if not isinstance(self.name, str):
            raise ValueError("Group name must be a string")

        if not self.name:
            raise ValueError("Group name must be non-empty")

    @classmethod
    def of(cls, name: str) -> "Group":
        """Build a Group from its persisted name"""
        return cls(name=name)

    def __str__(self) -> str:
        return self.name
