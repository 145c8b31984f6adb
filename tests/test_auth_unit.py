"""Unit tests for authentication helpers."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.api.deps import get_user_from_token, require_room_participant
from app.core.security import create_access_token, decode_access_token, get_password_hash, verify_password
from app.models import User

pytestmark = pytest.mark.anyio


@pytest.fixture()
async def user(user_store):
    db_user = User(
        id="u1",
        username="tester",
        email="tester@example.com",
        password_hash=get_password_hash("supersecret"),
        created_at=1,
    )
    await user_store.create_user(db_user)
    return db_user


def test_password_hashing_round_trip():
    hashed = get_password_hash("supersecret")

    assert hashed != "supersecret"
    assert verify_password("supersecret", hashed)
    assert not verify_password("wrong", hashed)


def test_access_token_carries_subject_and_username():
    token = create_access_token({"sub": "u1", "username": "tester"})
    payload = decode_access_token(token)

    assert payload["sub"] == "u1"
    assert payload["username"] == "tester"
    assert "exp" in payload


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "u1"}, expires_delta=timedelta(seconds=-5))

    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)
    assert exc.value.status_code == 401
    assert exc.value.detail == "Token has expired"


async def test_get_user_from_token(user, user_store):
    """Tokens should resolve to existing users."""

    resolved = await get_user_from_token(create_access_token({"sub": user.id}), user_store)

    assert resolved.id == "u1"
    assert resolved.username == "tester"


@pytest.mark.parametrize("claims", [{"sub": "ghost"}, {"username": "tester"}, {"sub": 5}])
async def test_get_user_from_token_invalid_payload(user, user_store, claims):
    """Tokens without a known subject must result in a 401 error."""

    with pytest.raises(HTTPException) as exc:
        await get_user_from_token(create_access_token(claims), user_store)
    assert exc.value.status_code == 401


async def test_get_user_from_garbage_token(user_store):
    with pytest.raises(HTTPException) as exc:
        await get_user_from_token("not-a-token", user_store)
    assert exc.value.status_code == 401


def test_require_room_participant():
    require_room_participant("u1_u2", "u1")

    with pytest.raises(HTTPException) as exc:
        require_room_participant("u1_u2", "u3")
    assert exc.value.status_code == 403
