"""Request helpers shared by the API and websocket tests."""

from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient


def signup_user(client: TestClient, email: str, username: str, password: str = "secret123") -> str:
    response = client.post(
        "/api/auth/signup",
        json={"email": email, "username": username, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()["userId"]


def login_user(client: TestClient, email: str, password: str = "secret123") -> str:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, username: str) -> tuple[str, dict[str, str]]:
    email = f"{username.lower()}@example.com"
    user_id = signup_user(client, email, username)
    return user_id, auth_headers(login_user(client, email))


def send(client: TestClient, headers: dict[str, str], recipient_id: str, content: str, **extra: Any):
    return client.post(
        "/api/messages",
        json={"recipientId": recipient_id, "content": content, **extra},
        headers=headers,
    )
