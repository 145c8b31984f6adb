"""Message history and lifecycle endpoints for two-party rooms."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import (
    CurrentUser,
    get_contact_store,
    get_current_user,
    get_message_log,
    get_unread_ledger,
    require_room_participant,
)
from app.config import get_settings
from app.core import new_id, now_ms, other_participant, room_id_for
from app.models import Message, MessageAction
from app.monitoring.metrics import chat_messages_total
from app.schemas import (
    MessageCreate,
    MessageDeleted,
    MessageEnvelope,
    MessageList,
    MessageRead,
    MessageUpdate,
    UnreadCounts,
)
from app.services import ContactStore, FanoutDispatcher, MessageLog, UnreadLedger
from app.services.realtime import get_dispatcher

router = APIRouter(prefix="/messages", tags=["messages"])

settings = get_settings()

logger = logging.getLogger(__name__)


def _clean_content(raw: str) -> str:
    content = raw.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message content is required")
    limit = settings.chat_message_max_length
    if len(content) > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Message too long (max {limit} characters)",
        )
    return content


def _clamp_limit(limit: int | None) -> int:
    if limit is None:
        return settings.chat_history_default_limit
    return max(1, min(limit, settings.chat_history_max_limit))


async def _load_own_message(
    messages: MessageLog,
    room_id: str,
    message_id: str,
    timestamp: int,
    current_user: CurrentUser,
) -> Message:
    message = await messages.get(room_id, message_id, timestamp)
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    if message.sender_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the sender can change this message",
        )
    return message


@router.get("", response_model=MessageList)
async def list_messages(
    room_id: str | None = Query(default=None, alias="roomId"),
    limit: int | None = Query(default=None),
    before: int | None = Query(default=None, description="Only return messages sent before this timestamp"),
    before_id: str | None = Query(
        default=None,
        alias="beforeId",
        description="Id of the oldest message already loaded; disambiguates messages sharing the before timestamp",
    ),
    current_user: CurrentUser = Depends(get_current_user),
    messages: MessageLog = Depends(get_message_log),
    unread: UnreadLedger = Depends(get_unread_ledger),
) -> MessageList:
    if not room_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Room ID required")
    require_room_participant(room_id, current_user.id)

    history = await messages.read(room_id, _clamp_limit(limit), before, before_id)
    await unread.reset(current_user.id, room_id)
    return MessageList(messages=[MessageRead.from_message(message) for message in history])


@router.get("/unread", response_model=UnreadCounts)
async def unread_counts(
    current_user: CurrentUser = Depends(get_current_user),
    unread: UnreadLedger = Depends(get_unread_ledger),
) -> UnreadCounts:
    return UnreadCounts(unread=await unread.get_all(current_user.id))


@router.post("", response_model=MessageEnvelope, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    current_user: CurrentUser = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store),
    messages: MessageLog = Depends(get_message_log),
    unread: UnreadLedger = Depends(get_unread_ledger),
    dispatcher: FanoutDispatcher = Depends(get_dispatcher),
) -> MessageEnvelope:
    content = _clean_content(payload.content)
    recipient_id = payload.recipient_id
    if not await contacts.is_contact(current_user.id, recipient_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Can only message contacts")

    room_id = room_id_for(current_user.id, recipient_id)
    message = Message(id=new_id(), sender_id=current_user.id, content=content, timestamp=now_ms())
    await messages.append(room_id, message)
    if recipient_id != current_user.id:
        await unread.increment(recipient_id, room_id)
    chat_messages_total.labels(MessageAction.SENT.value).inc()

    await dispatcher.message_created(
        room_id,
        message,
        sender_username=current_user.username,
        optimistic_id=payload.optimistic_id,
    )
    if recipient_id != current_user.id:
        await dispatcher.incoming_message(
            recipient_id, room_id, message, sender_username=current_user.username
        )
    return MessageEnvelope(message=MessageRead.from_message(message))


@router.patch("", response_model=MessageEnvelope)
async def edit_message(
    payload: MessageUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    messages: MessageLog = Depends(get_message_log),
    dispatcher: FanoutDispatcher = Depends(get_dispatcher),
) -> MessageEnvelope:
    content = _clean_content(payload.content)
    require_room_participant(payload.room_id, current_user.id)
    await _load_own_message(messages, payload.room_id, payload.message_id, payload.timestamp, current_user)

    updated = await messages.update(payload.room_id, payload.message_id, payload.timestamp, content)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    chat_messages_total.labels(MessageAction.EDITED.value).inc()

    await dispatcher.message_updated(payload.room_id, updated)
    return MessageEnvelope(message=MessageRead.from_message(updated))


@router.delete("", response_model=MessageDeleted)
async def delete_message(
    room_id: str | None = Query(default=None, alias="roomId"),
    message_id: str | None = Query(default=None, alias="messageId"),
    timestamp: int | None = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    messages: MessageLog = Depends(get_message_log),
    dispatcher: FanoutDispatcher = Depends(get_dispatcher),
) -> MessageDeleted:
    if not room_id or not message_id or timestamp is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Room ID, message ID and timestamp are required",
        )
    require_room_participant(room_id, current_user.id)
    await _load_own_message(messages, room_id, message_id, timestamp, current_user)

    if not await messages.remove(room_id, message_id, timestamp):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    chat_messages_total.labels(MessageAction.DELETED.value).inc()

    await dispatcher.message_deleted(room_id, message_id, timestamp)
    logger.info(
        "Deleted message",
        extra={"room": room_id, "message": message_id, "peer": other_participant(room_id, current_user.id)},
    )
    return MessageDeleted(message_id=message_id)
