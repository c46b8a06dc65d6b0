"""
Event Dead Letters module
Durable bookkeeping of event deliveries that failed for a listener group
"""

from event_dead_letters.dlq.base import DeadLettersBackendError, DeadLettersError, EventDeadLetters
from event_dead_letters.dlq.factory import open_event_dead_letters
from event_dead_letters.dlq.memory import MemoryEventDeadLetters
from event_dead_letters.dlq.redeliver import EventDeadLettersRedeliverService, RedeliveryReport

__all__ = [
    "DeadLettersBackendError",
    "DeadLettersError",
    "EventDeadLetters",
    "EventDeadLettersRedeliverService",
    "MemoryEventDeadLetters",
    "RedeliveryReport",
    "open_event_dead_letters",
]
