"""Identifier and clock helpers shared by the stores and handlers."""

from __future__ import annotations

import time
import uuid


def new_id() -> str:
    # Hex ids never contain the room separator.
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)
