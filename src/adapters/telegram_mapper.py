"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline.
"""

from __future__ import annotations

from typing import Any, Optional

from telethon.tl.custom import Message

from core.models import InboundEvent
from core.source_keys import build_origin_key

# Checked in order; the first media attribute present names the message type.
_MEDIA_TYPES = ("voice", "audio", "video_note", "video", "photo", "sticker", "gif")


def message_type_from_message(message: Message) -> str:
    """Return a short type tag for the message ("voice", "photo", "text", ...)."""

    for attribute in _MEDIA_TYPES:
        if getattr(message, attribute, None):
            return attribute
    if getattr(message, "media", None):
        return "document"
    return "text"


def _file_attribute(message: Message, name: str) -> Optional[Any]:
    file = getattr(message, "file", None)
    if file is None:
        return None
    return getattr(file, name, None)


def origin_from_message(message: Message) -> Optional[str]:
    chat_id = getattr(message, "chat_id", None)
    if chat_id is None:
        return None
    return build_origin_key(chat_id, bool(getattr(message, "is_group", False)))


def build_event(message: Message) -> InboundEvent:
    """Build a core InboundEvent from a Telethon Message."""

    duration = _file_attribute(message, "duration")
    # Telethon 1.x messages have no react(); forward it only when a client
    # build actually provides one.
    react = getattr(message, "react", None)

    return InboundEvent(
        origin=origin_from_message(message),
        chat_id=getattr(message, "chat_id", None),
        message_id=getattr(message, "id", None),
        from_me=bool(getattr(message, "out", False)),
        is_notification=getattr(message, "action", None) is not None,
        body=getattr(message, "raw_text", None),
        mimetype=_file_attribute(message, "mime_type"),
        has_media=getattr(message, "media", None) is not None,
        duration=duration if isinstance(duration, (int, float)) else None,
        message_type=message_type_from_message(message),
        react=react if callable(react) else None,
    )
