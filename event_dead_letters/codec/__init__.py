"""
Event codec for dead letter payloads
"""

from event_dead_letters.codec.serializer import EventSerializer

__all__ = ["EventSerializer"]
