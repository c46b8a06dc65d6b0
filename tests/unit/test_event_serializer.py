"""
Unit tests for the event serializer
Tests JSON encoding, the type registry and tolerant decoding
"""

import json
from dataclasses import dataclass
from typing import ClassVar

import pytest

from event_dead_letters.codec.serializer import EventSerializer
from event_dead_letters.models.event import (
    BUILTIN_EVENTS,
    Event,
    EventType,
    MailboxAdded,
    MailboxDeletion,
    MessageAdded,
)


class TestEventSerializer:
    """Test event serialization"""

    def test_builtin_events_are_registered(self, serializer):
        assert serializer.known_types() == sorted(event_type.value for event_type in EventType)

    def test_serialized_event_carries_type_discriminator(self, serializer, renamed_event):
        data = json.loads(serializer.to_json(renamed_event))

        assert data["type"] == "MailboxRenamed"
        assert data["event_id"] == str(renamed_event.event_id)
        assert data["old_path"] == renamed_event.old_path

    def test_decodes_what_it_encodes(self, serializer, renamed_event, flags_event, quota_event):
        for event in (renamed_event, flags_event, quota_event):
            assert serializer.from_json(serializer.to_json(event)) == event

    def test_sequence_fields_come_back_as_tuples(self, serializer, flags_event):
        decoded = serializer.from_json(serializer.to_json(flags_event))

        assert decoded.uids == (7, 8)
        assert decoded.flags == ("\\Seen", "\\Flagged")

    def test_to_json_rejects_unregistered_type(self, renamed_event):
        serializer = EventSerializer(event_classes=[MailboxAdded])

        with pytest.raises(ValueError):
            serializer.to_json(renamed_event)

    def test_register_adds_custom_event(self):
        @dataclass(frozen=True)
        class CustomEvent(Event):
            event_type: ClassVar[EventType] = EventType.MAILBOX_ADDED

            note: str = ""

        serializer = EventSerializer(event_classes=[])
        serializer.register(CustomEvent, type_name="Custom")
        event = CustomEvent.create(username="bob", note="hello")
        payload = json.dumps({**event.to_dict(), "type": "Custom"})

        assert serializer.from_json(payload) == event


class TestTolerantDecoding:
    """Undecodable payloads yield None instead of raising"""

    @pytest.mark.parametrize(
        "payload",
        [
            "",
            "{not json",
            "[]",
            "42",
            json.dumps({"event_id": "6e0dd59d-660e-4d9b-b22f-0354479f47b4", "username": "bob"}),
            json.dumps({"type": ["MailboxAdded"]}),
        ],
    )
    def test_malformed_payload_is_absent(self, serializer, payload):
        assert serializer.from_json(payload) is None

    def test_deeply_nested_payload_is_absent(self, serializer):
        payload = "[" * 100000 + "]" * 100000

        assert serializer.from_json(payload) is None

    def test_deeply_nested_field_is_absent(self, serializer):
        nested = "[" * 100000 + "]" * 100000
        payload = (
            '{"type": "MessageAdded", "event_id": "6e0dd59d-660e-4d9b-b22f-0354479f47b4",'
            ' "username": "bob", "mailbox_id": "1", "uids": ' + nested + "}"
        )

        assert serializer.from_json(payload) is None

    def test_unknown_type_is_absent(self, serializer):
        payload = json.dumps(
            {
                "type": "MailboxACLUpdated",
                "event_id": "6e0dd59d-660e-4d9b-b22f-0354479f47b4",
                "username": "bob",
            }
        )

        assert serializer.from_json(payload) is None

    def test_type_dropped_from_registry_is_absent(self, serializer, flags_event):
        payload = serializer.to_json(flags_event)
        older_build = EventSerializer(event_classes=[MailboxAdded])

        assert older_build.from_json(payload) is None

    def test_missing_required_field_is_absent(self, serializer):
        payload = json.dumps(
            {
                "type": "MailboxAdded",
                "event_id": "6e0dd59d-660e-4d9b-b22f-0354479f47b4",
                "username": "bob",
            }
        )

        assert serializer.from_json(payload) is None

    @pytest.mark.parametrize("event_id", ["not-a-uuid", 12, None])
    def test_invalid_event_id_is_absent(self, serializer, event_id):
        payload = json.dumps(
            {
                "type": "MailboxAdded",
                "event_id": event_id,
                "username": "bob",
                "mailbox_id": "1",
                "mailbox_path": "INBOX",
            }
        )

        assert serializer.from_json(payload) is None

    def test_invalid_sequence_field_is_absent(self, serializer):
        payload = json.dumps(
            {
                "type": "MessageAdded",
                "event_id": "6e0dd59d-660e-4d9b-b22f-0354479f47b4",
                "username": "bob",
                "mailbox_id": "1",
                "uids": "1,2",
            }
        )

        assert serializer.from_json(payload) is None

    def test_unknown_fields_are_ignored(self, serializer):
        payload = json.dumps(
            {
                "type": "MessageAdded",
                "event_id": "6e0dd59d-660e-4d9b-b22f-0354479f47b4",
                "username": "bob",
                "mailbox_id": "1",
                "uids": [3],
                "added_by_a_newer_build": {"size": 12},
            }
        )

        event = serializer.from_json(payload)

        assert isinstance(event, MessageAdded)
        assert event.uids == (3,)

    def test_missing_optional_fields_use_defaults(self, serializer):
        payload = json.dumps(
            {
                "type": "MailboxDeletion",
                "event_id": "6e0dd59d-660e-4d9b-b22f-0354479f47b4",
                "username": "bob",
                "mailbox_id": "1",
                "mailbox_path": "INBOX",
            }
        )

        event = serializer.from_json(payload)

        assert isinstance(event, MailboxDeletion)
        assert event.total_deleted_messages == 0

    def test_invalid_field_values_are_absent(self, serializer):
        payload = json.dumps(
            {
                "type": "QuotaUsageUpdated",
                "event_id": "6e0dd59d-660e-4d9b-b22f-0354479f47b4",
                "username": "bob",
                "quota_root": "#private&bob",
                "count_used": -1,
                "size_used": 0,
            }
        )

        assert serializer.from_json(payload) is None


def test_every_builtin_event_declares_its_type():
    """Each built-in event maps to a distinct discriminator"""
    types = [event_class.event_type for event_class in BUILTIN_EVENTS]

    assert len(set(types)) == len(BUILTIN_EVENTS)
