"""WebSocket relay from realtime channels to connected clients."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, status
from fastapi.exceptions import HTTPException
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from pairchat.realtime import ANY_EVENT, ChannelSubscriptions, TransportUnavailableError

from app.api.deps import CurrentUser, get_user_from_token, get_user_store
from app.config import get_settings
from app.core import is_participant
from app.monitoring.metrics import realtime_connections, realtime_events_total
from app.services import UserStore
from app.services.realtime import get_subscriptions

router = APIRouter(prefix="/ws", tags=["ws"])

settings = get_settings()

logger = logging.getLogger(__name__)

CHAT_PREFIX = "chat-"
USER_PREFIX = "user-"


async def safe_send_json(websocket: WebSocket, data: dict[str, Any]) -> bool:
    """Send JSON unless the socket is gone; returns whether it was sent."""

    if websocket.application_state != WebSocketState.CONNECTED:
        return False
    try:
        await websocket.send_json(data)
        return True
    except (WebSocketDisconnect, RuntimeError) as exc:
        logger.debug("Failed to send websocket message: %s", exc)
        return False


def may_subscribe(channel: str, user_id: str) -> bool:
    if channel.startswith(CHAT_PREFIX):
        return is_participant(channel.removeprefix(CHAT_PREFIX), user_id)
    if channel.startswith(USER_PREFIX):
        return channel.removeprefix(USER_PREFIX) == user_id
    return False


async def _resolve_user(websocket: WebSocket, users: UserStore) -> CurrentUser | None:
    token = websocket.query_params.get("token")
    if not token:
        auth_header = websocket.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header.removeprefix("Bearer ").strip()
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Missing token")
        return None
    try:
        return await get_user_from_token(token, users)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return None


async def _pump(websocket: WebSocket) -> None:
    timeout = float(settings.websocket_receive_timeout_seconds) or None
    while True:
        try:
            raw = await asyncio.wait_for(websocket.receive_text(), timeout=timeout)
        except asyncio.TimeoutError:
            if not await safe_send_json(websocket, {"type": "ping"}):
                return
            continue
        except (WebSocketDisconnect, RuntimeError):
            return
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            continue
        if isinstance(message, dict) and message.get("type") == "ping":
            await safe_send_json(websocket, {"type": "pong"})


@router.websocket("/{channel}")
async def channel_socket(
    websocket: WebSocket,
    channel: str,
    users: UserStore = Depends(get_user_store),
    subscriptions: ChannelSubscriptions = Depends(get_subscriptions),
) -> None:
    user = await _resolve_user(websocket, users)
    if user is None:
        return
    if not may_subscribe(channel, user.id):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Forbidden")
        return

    try:
        handle = await subscriptions.open(channel)
    except TransportUnavailableError:
        logger.warning("Realtime backend unavailable; refusing subscription", extra={"channel": channel})
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="Realtime unavailable")
        return

    try:
        await websocket.accept()

        async def forward(event: str, data: dict[str, Any]) -> None:
            if await safe_send_json(websocket, {"type": "event", "event": event, "data": data}):
                realtime_events_total.labels(event, "in").inc()

        handle.bind(ANY_EVENT, forward)
        realtime_connections.labels("channels").inc()
        try:
            await safe_send_json(websocket, {"type": "subscribed", "channel": channel})
            await _pump(websocket)
        finally:
            realtime_connections.labels("channels").dec()
    finally:
        await handle.release()
