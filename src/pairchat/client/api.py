"""Async HTTP client for the pairchat REST API."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import httpx

from .timeline import MessageTimeline

logger = logging.getLogger(__name__)


class ChatAPIError(RuntimeError):
    """Raised when the API answers with an error status."""

    def __init__(self, status_code: int, detail: Any) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _raise_for_error(response: httpx.Response) -> None:
    if not response.is_error:
        return
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = response.text
    raise ChatAPIError(response.status_code, detail)


class ChatClient:
    """Thin wrapper over :class:`httpx.AsyncClient` speaking the camelCase API.

    ``transport`` is passed through to httpx so callers can mount an ASGI app
    or a mock transport.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.user: dict[str, Any] | None = None
        if token:
            self.set_token(token)

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_token(self, token: str) -> None:
        self._client.headers["Authorization"] = f"Bearer {token}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, url, **kwargs)
        _raise_for_error(response)
        return response.json()

    async def signup(self, email: str, username: str, password: str) -> str:
        body = await self._request(
            "POST", "/api/auth/signup", json={"email": email, "username": username, "password": password}
        )
        return body["userId"]

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate, remember the bearer token and fetch the caller's profile."""

        body = await self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.set_token(body["access_token"])
        self.user = await self.me()
        return self.user

    async def me(self) -> dict[str, Any]:
        return await self._request("GET", "/api/users/me")

    async def search_users(self, username: str) -> list[dict[str, Any]]:
        body = await self._request("GET", "/api/users/search", params={"username": username})
        return body["users"]

    async def list_contacts(self) -> list[dict[str, Any]]:
        body = await self._request("GET", "/api/contacts")
        return body["contacts"]

    async def add_contact(self, contact_id: str) -> dict[str, Any]:
        body = await self._request("POST", "/api/contacts", json={"contactId": contact_id})
        return body["contact"]

    async def remove_contact(self, contact_id: str) -> None:
        await self._request("DELETE", f"/api/contacts/{contact_id}")

    async def fetch_messages(
        self,
        room_id: str,
        *,
        limit: int | None = None,
        before: int | None = None,
        before_id: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"roomId": room_id}
        if limit is not None:
            params["limit"] = limit
        if before is not None:
            params["before"] = before
        if before_id is not None:
            params["beforeId"] = before_id
        body = await self._request("GET", "/api/messages", params=params)
        return body["messages"]

    async def load_timeline(self, room_id: str, timeline: MessageTimeline, *, limit: int | None = None) -> None:
        timeline.load(await self.fetch_messages(room_id, limit=limit))

    async def unread_counts(self) -> dict[str, int]:
        body = await self._request("GET", "/api/messages/unread")
        return body["unread"]

    async def send_message(
        self, recipient_id: str, content: str, timeline: MessageTimeline | None = None
    ) -> dict[str, Any]:
        """Send ``content`` to ``recipient_id``.

        With a ``timeline`` the message is shown immediately as a pending entry
        which is confirmed from the response, or withdrawn if the request fails.
        """

        if timeline is None:
            body = await self._request(
                "POST", "/api/messages", json={"recipientId": recipient_id, "content": content}
            )
            return body["message"]

        if self.user is None:
            raise RuntimeError("login() must be called before sending with a timeline")
        placeholder = timeline.add_optimistic(
            self.user["id"],
            content,
            timestamp=int(time.time() * 1000),
            sender_username=self.user.get("username"),
        )
        try:
            body = await self._request(
                "POST",
                "/api/messages",
                json={"recipientId": recipient_id, "content": content, "optimisticId": placeholder.id},
            )
        except (ChatAPIError, httpx.HTTPError):
            timeline.discard(placeholder.id)
            logger.debug("Withdrew pending message %s after failed send", placeholder.id)
            raise
        timeline.confirm(placeholder.id, body["message"])
        return body["message"]

    async def edit_message(self, room_id: str, message_id: str, timestamp: int, content: str) -> dict[str, Any]:
        body = await self._request(
            "PATCH",
            "/api/messages",
            json={"roomId": room_id, "messageId": message_id, "timestamp": timestamp, "content": content},
        )
        return body["message"]

    async def delete_message(self, room_id: str, message_id: str, timestamp: int) -> None:
        await self._request(
            "DELETE",
            "/api/messages",
            params={"roomId": room_id, "messageId": message_id, "timestamp": timestamp},
        )


def event_from_envelope(frame: Mapping[str, Any]) -> tuple[str, Mapping[str, Any]] | None:
    """Extract ``(event, data)`` from a websocket frame sent by ``/ws/{channel}``."""

    if frame.get("type") != "event":
        return None
    event = frame.get("event")
    data = frame.get("data")
    if not isinstance(event, str) or not isinstance(data, Mapping):
        return None
    return event, data
