"""Contact list endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import (
    CurrentUser,
    get_contact_store,
    get_current_user,
    get_message_log,
    get_user_store,
)
from app.config import get_settings
from app.core import room_id_for
from app.schemas import (
    ContactAdded,
    ContactCreate,
    ContactList,
    ContactRead,
    ContactRemoved,
    ContactSummary,
    LatestMessagePreview,
)
from app.services import ContactStore, FanoutDispatcher, MessageLog, UserStore
from app.services.realtime import get_dispatcher

router = APIRouter(prefix="/contacts", tags=["contacts"])

settings = get_settings()

logger = logging.getLogger(__name__)


async def _summarize_contact(
    contact_id: str,
    current_user: CurrentUser,
    users: UserStore,
    messages: MessageLog,
) -> ContactSummary | None:
    user = await users.get_user_by_id(contact_id)
    if user is None:
        logger.warning("Contact user not found", extra={"contact": contact_id})
        return None
    room_id = room_id_for(current_user.id, contact_id)
    latest = await messages.latest(room_id)
    preview = None
    if latest is not None:
        preview = LatestMessagePreview(
            content=latest.content[: settings.contact_preview_length],
            timestamp=latest.timestamp,
            is_own=latest.sender_id == current_user.id,
        )
    return ContactSummary(
        id=user.id,
        username=user.username,
        avatar=user.avatar,
        room_id=room_id,
        latest_message=preview,
    )


@router.get("", response_model=ContactList)
async def list_contacts(
    current_user: CurrentUser = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store),
    users: UserStore = Depends(get_user_store),
    messages: MessageLog = Depends(get_message_log),
) -> ContactList:
    """Return contacts with a preview of the latest message, most recent first."""

    contact_ids = await contacts.get_contacts(current_user.id)
    summaries = await asyncio.gather(
        *(_summarize_contact(contact_id, current_user, users, messages) for contact_id in contact_ids)
    )
    entries = [summary for summary in summaries if summary is not None]
    # Contacts without messages sort last; ties fall back to username.
    entries.sort(key=lambda entry: entry.username.lower())
    entries.sort(
        key=lambda entry: entry.latest_message.timestamp if entry.latest_message else -1,
        reverse=True,
    )
    return ContactList(contacts=entries)


@router.post("", response_model=ContactAdded)
async def add_contact(
    payload: ContactCreate,
    current_user: CurrentUser = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store),
    users: UserStore = Depends(get_user_store),
    dispatcher: FanoutDispatcher = Depends(get_dispatcher),
) -> ContactAdded:
    contact_id = payload.contact_id
    if contact_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot add yourself as a contact")
    if await contacts.is_contact(current_user.id, contact_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already in contacts")
    contact_user = await users.get_user_by_id(contact_id)
    if contact_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    await contacts.add_contact(current_user.id, contact_id)
    await dispatcher.contact_added(contact_id, user_id=current_user.id, username=current_user.username)

    return ContactAdded(
        contact=ContactRead(
            id=contact_user.id,
            username=contact_user.username,
            avatar=contact_user.avatar,
            room_id=room_id_for(current_user.id, contact_id),
        )
    )


@router.delete("/{contact_id}", response_model=ContactRemoved)
async def remove_contact(
    contact_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store),
) -> ContactRemoved:
    """Drop the contact edge in both directions; the room history is kept."""

    if not await contacts.is_contact(current_user.id, contact_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not in contacts")
    await contacts.remove_contact(current_user.id, contact_id)
    return ContactRemoved(contact_id=contact_id)
