"""Helpers for working with autoreact origin keys.

An origin key names the chat an event came from. Group chats carry the
``#group`` marker so the classifier can scope reactions without knowing
anything about the platform.
"""

from __future__ import annotations

from typing import Optional

GROUP_SUFFIX = "#group"
CHAT_ID_PREFIX = "chat_id:"


def build_origin_key(chat_id: int, is_group: bool) -> str:
    """Return the origin key, adding the group marker when needed."""

    base_key = f"{CHAT_ID_PREFIX}{chat_id}"
    if not is_group:
        return base_key
    return f"{base_key}{GROUP_SUFFIX}"


def is_group_origin(origin: Optional[str]) -> bool:
    """True when the origin key carries the group-scope marker."""

    if not origin:
        return False
    return GROUP_SUFFIX in origin

