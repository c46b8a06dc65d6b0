"""
Event Serializer
Converts mailbox events to JSON text and back for dead letter storage
"""

import json
from dataclasses import fields
from typing import Any, Dict, Iterable, Optional, Type
from uuid import UUID

import structlog

from event_dead_letters.models.event import BUILTIN_EVENTS, Event
from event_dead_letters.observability.metrics import increment_undecodable

logger = structlog.get_logger(__name__)

TYPE_FIELD = "type"


class EventSerializer:
    """
    JSON codec for mailbox events

    Each serialized event carries a "type" discriminator. Decoding looks the
    discriminator up in a registry of event classes. Payloads that cannot be
    decoded (unknown type, malformed JSON, missing fields) yield None so that
    one bad record never aborts a bulk read.
    """

    def __init__(self, event_classes: Optional[Iterable[Type[Event]]] = None):
        """
        Initialize serializer

        Args:
            event_classes: Event classes to register (built-in mailbox events if None)
        """
        self._registry: Dict[str, Type[Event]] = {}

        for event_class in event_classes if event_classes is not None else BUILTIN_EVENTS:
            self.register(event_class)

    def register(self, event_class: Type[Event], type_name: Optional[str] = None) -> None:
        """
        Register an event class under its discriminator

        Args:
            event_class: Event dataclass to register
            type_name: Discriminator override (defaults to event_class.event_type)
        """
        name = type_name or event_class.event_type.value
        self._registry[name] = event_class
        logger.debug("Event type registered", type=name, event_class=event_class.__name__)

    def known_types(self) -> list[str]:
        """Discriminators this serializer can decode"""
        return sorted(self._registry)

    def to_json(self, event: Event) -> str:
        """
        Serialize an event

        Args:
            event: Event to serialize

        Returns:
            JSON text

        Raises:
            ValueError: If the event type is not registered
        """
        data = event.to_dict()
        if data[TYPE_FIELD] not in self._registry:
            raise ValueError(f"Unregistered event type: {data[TYPE_FIELD]}")

        return json.dumps(data, sort_keys=True)

    def from_json(self, payload: str) -> Optional[Event]:
        """
        Deserialize an event, never raising

        Args:
            payload: JSON text as stored

        Returns:
            Decoded event, or None when the payload is not usable by this build
        """
        try:
            data = json.loads(payload)
        except (RecursionError, TypeError, ValueError) as e:
            return self._undecodable("malformed_json", error=str(e))

        if not isinstance(data, dict):
            return self._undecodable("not_an_object")

        type_name = data.get(TYPE_FIELD)
        event_class = self._registry.get(type_name) if isinstance(type_name, str) else None
        if event_class is None:
            return self._undecodable("unknown_type", type=type_name)

        try:
            return event_class(**self._constructor_arguments(event_class, data))
        except (AttributeError, RecursionError, TypeError, ValueError) as e:
            return self._undecodable("invalid_fields", type=type_name, error=str(e))

    @staticmethod
    def _constructor_arguments(event_class: Type[Event], data: Dict[str, Any]) -> Dict[str, Any]:
        """Keep known fields only and restore UUID and tuple values"""
        kwargs: Dict[str, Any] = {}

        for f in fields(event_class):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name == "event_id":
                value = UUID(value)
            elif f.name in event_class.sequence_fields:
                if not isinstance(value, list):
                    raise ValueError(f"{f.name} must be a list")
                value = tuple(value)
            kwargs[f.name] = value

        return kwargs

    @staticmethod
    def _undecodable(reason: str, **context: Any) -> None:
        logger.warning("Stored event cannot be decoded", reason=reason, **context)
        increment_undecodable(reason)
        return None
