"""
Reusable test helpers for dead letter store backends
"""

from event_dead_letters.testing.contract import EventDeadLettersContract

__all__ = ["EventDeadLettersContract"]
