"""Unit tests validating Pydantic schema constraints and serialization."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.models import Message, User
from app.schemas import (
    ContactSummary,
    LatestMessagePreview,
    MessageCreate,
    MessageRead,
    PublicUser,
    SignupRequest,
)


def test_signup_request_strips_email_whitespace():
    payload = SignupRequest(email="  alice@example.com ", username="alice", password="secret123")
    assert payload.email == "alice@example.com"


@pytest.mark.parametrize("username", ["ab", "a" * 21, "bad name", "dash-ed"])
def test_signup_request_rejects_invalid_usernames(username):
    with pytest.raises(ValidationError):
        SignupRequest(email="alice@example.com", username=username, password="secret123")


def test_signup_request_enforces_password_length():
    with pytest.raises(ValidationError):
        SignupRequest(email="alice@example.com", username="alice", password="short")


def test_message_create_accepts_camel_case():
    payload = MessageCreate.model_validate({"recipientId": "u2", "content": "hi", "optimisticId": "temp-1"})

    assert payload.recipient_id == "u2"
    assert payload.optimistic_id == "temp-1"


def test_message_read_serializes_by_alias():
    message = Message(id="m1", sender_id="u1", content="hi", timestamp=1000, is_edited=True)

    assert MessageRead.from_message(message).model_dump(by_alias=True) == {
        "id": "m1",
        "senderId": "u1",
        "content": "hi",
        "timestamp": 1000,
        "isEdited": True,
    }


def test_contact_summary_aliases():
    summary = ContactSummary(
        id="u2",
        username="bob",
        room_id="u1_u2",
        latest_message=LatestMessagePreview(content="hi", timestamp=1, is_own=True),
    )

    dumped = summary.model_dump(by_alias=True)

    assert dumped["roomId"] == "u1_u2"
    assert dumped["latestMessage"] == {"content": "hi", "timestamp": 1, "isOwn": True}


def test_public_user_hides_private_fields():
    user = User(id="u1", username="alice", email="a@example.com", password_hash="hash", created_at=1)

    assert PublicUser.from_user(user).model_dump(by_alias=True) == {"id": "u1", "username": "alice", "avatar": None}


def test_message_record_payload_round_trip():
    message = Message(id="m1", sender_id="u1", content="hi", timestamp=1000)

    assert "isEdited" not in message.to_payload()
    assert Message.loads(message.dumps()) == message
    assert Message.loads(message.edited("new").dumps()).is_edited is True


def test_user_hash_round_trip():
    user = User(id="u1", username="alice", email="a@example.com", password_hash="hash", created_at=7, avatar="a.png")

    fields = user.to_hash()

    assert fields["passwordHash"] == "hash"
    assert fields["createdAt"] == "7"
    assert User.from_hash(fields) == user
