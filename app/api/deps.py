"""FastAPI dependencies for the API layer."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from redis.asyncio import Redis

from app.core.rooms import is_participant
from app.core.security import decode_access_token
from app.database import KeySpace, get_keyspace, get_redis
from app.services import ContactStore, MessageLog, UnreadLedger, UserStore

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


@dataclass(slots=True, frozen=True)
class CurrentUser:
    """The authenticated caller as seen by request handlers."""

    id: str
    username: str


def get_user_store(redis: Redis = Depends(get_redis), keys: KeySpace = Depends(get_keyspace)) -> UserStore:
    return UserStore(redis, keys)


def get_contact_store(
    redis: Redis = Depends(get_redis), keys: KeySpace = Depends(get_keyspace)
) -> ContactStore:
    return ContactStore(redis, keys)


def get_message_log(redis: Redis = Depends(get_redis), keys: KeySpace = Depends(get_keyspace)) -> MessageLog:
    return MessageLog(redis, keys)


def get_unread_ledger(
    redis: Redis = Depends(get_redis), keys: KeySpace = Depends(get_keyspace)
) -> UnreadLedger:
    return UnreadLedger(redis, keys)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    users: UserStore = Depends(get_user_store),
) -> CurrentUser:
    """Retrieve the current user from the JWT token."""

    return await get_user_from_token(token, users)


async def get_user_from_token(token: str, users: UserStore) -> CurrentUser:
    """Resolve a user from a JWT token or raise an HTTP 401 error."""

    payload = decode_access_token(token)
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    user = await users.get_user_by_id(sub)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return CurrentUser(id=user.id, username=user.username)


def require_room_participant(room_id: str, user_id: str) -> None:
    """Ensure the user is one of the two members encoded in ``room_id``."""

    if not is_participant(room_id, user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this chat",
        )
