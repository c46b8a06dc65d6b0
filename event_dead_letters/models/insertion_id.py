"""
InsertionId Data Model - Key of one failed delivery within a group
"""

from dataclasses import dataclass
from typing import Union
from uuid import UUID, uuid1


@dataclass(frozen=True, order=True)
class InsertionId:
    """
    Identifier minted once per recorded delivery failure

    Ids are time-based UUIDs generated locally: no coordination with other
    processes is needed and ids are never reused. Ordering approximates
    insertion order only.

    Attributes:
        value: Underlying UUID
    """

    value: UUID

    def __post_init__(self) -> None:
        """Validate InsertionId after initialization"""
        if not isinstance(self.value, UUID):
            raise ValueError("InsertionId value must be a UUID")

    @classmethod
    def random(cls) -> "InsertionId":
        """Mint a fresh time-based insertion id"""
        return cls(value=uuid1())

    @classmethod
    def of(cls, value: Union[str, UUID]) -> "InsertionId":
        """
        Parse an insertion id

        Args:
            value: UUID or its string form

        Returns:
            InsertionId instance

        Raises:
            ValueError: If value is not a valid UUID
        """
        if isinstance(value, UUID):
            return cls(value=value)
        return cls(value=UUID(str(value)))

    def as_string(self) -> str:
        """String form used in logs and serialized views"""
        return str(self.value)

    def __str__(self) -> str:
        return self.as_string()
