"""Maps domain events onto named realtime channels.

Room lifecycle events go to ``chat-<roomId>``; cross-room notifications go to
``user-<userId>``. Publishing is fire-and-forget: a failed publish is logged
and counted but never propagates, because the store write it follows is
already durable.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Protocol

from pairchat.realtime import TransportUnavailableError

from app.models import ChatEvent, Message
from app.monitoring.metrics import realtime_events_total, realtime_publish_errors_total

logger = logging.getLogger(__name__)


class PublishingTransport(Protocol):
    def publish(self, topic: str, payload: dict[str, Any]) -> Awaitable[None]: ...


def chat_channel(room_id: str) -> str:
    return f"chat-{room_id}"


def user_channel(user_id: str) -> str:
    return f"user-{user_id}"


class FanoutDispatcher:
    def __init__(self, transport: PublishingTransport) -> None:
        self._transport = transport
        self._warning_logged = False

    async def publish(self, channel: str, event: ChatEvent, payload: dict[str, Any]) -> bool:
        """Push ``payload`` as ``event`` on ``channel``; returns whether it was handed off."""

        envelope = {"channel": channel, "event": event.value, "data": payload}
        scope = channel.split("-", 1)[0]
        try:
            await self._transport.publish(channel, envelope)
        except TransportUnavailableError:
            if not self._warning_logged:
                logger.warning(
                    "Realtime backend unavailable while publishing %s on %s; clients will catch up on refresh",
                    event.value,
                    channel,
                    exc_info=logger.isEnabledFor(logging.DEBUG),
                )
                self._warning_logged = True
            realtime_publish_errors_total.labels(scope, "unavailable").inc()
            return False
        except Exception:
            realtime_publish_errors_total.labels(scope, "error").inc()
            logger.exception("Unexpected error while publishing %s on %s", event.value, channel)
            return False
        self._warning_logged = False
        realtime_events_total.labels(event.value, "out").inc()
        return True

    async def message_created(
        self,
        room_id: str,
        message: Message,
        *,
        sender_username: str,
        optimistic_id: str | None,
    ) -> bool:
        payload = {
            **message.to_payload(),
            "senderUsername": sender_username,
            "optimisticId": optimistic_id,
        }
        return await self.publish(chat_channel(room_id), ChatEvent.NEW_MESSAGE, payload)

    async def message_updated(self, room_id: str, message: Message) -> bool:
        payload = {**message.to_payload(), "roomId": room_id}
        return await self.publish(chat_channel(room_id), ChatEvent.MESSAGE_UPDATED, payload)

    async def message_deleted(self, room_id: str, message_id: str, timestamp: int) -> bool:
        payload = {"id": message_id, "timestamp": timestamp, "roomId": room_id}
        return await self.publish(chat_channel(room_id), ChatEvent.MESSAGE_DELETED, payload)

    async def incoming_message(
        self, recipient_id: str, room_id: str, message: Message, *, sender_username: str
    ) -> bool:
        payload = {
            "roomId": room_id,
            "senderId": message.sender_id,
            "username": sender_username,
            "content": message.content,
            "timestamp": message.timestamp,
        }
        return await self.publish(user_channel(recipient_id), ChatEvent.INCOMING_MESSAGE, payload)

    async def contact_added(self, contact_id: str, *, user_id: str, username: str) -> bool:
        payload = {"userId": user_id, "username": username}
        return await self.publish(user_channel(contact_id), ChatEvent.CONTACT_ADDED, payload)
