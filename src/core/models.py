"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

# Native "react on the message object" call, when the platform exposes one.
ReactCallable = Callable[[str], Awaitable[Any]]


class Action(str, Enum):
    """Classifier verdict for one inbound event."""

    IGNORE = "ignore"
    REACT_AUDIO = "react_audio"
    REACT_DEFAULT = "react_default"


class ClientState(str, Enum):
    """Lifecycle state of the single transport client."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    DEGRADED = "degraded"
    STOPPED = "stopped"


@dataclass(frozen=True)
class InboundEvent:
    """Minimal message record used by the dispatch pipeline.

    Every field is optional because the transport may not know all of them.
    """

    origin: Optional[str] = None
    chat_id: Optional[int] = None
    message_id: Optional[int] = None
    from_me: bool = False
    is_notification: bool = False
    body: Optional[str] = None
    mimetype: Optional[str] = None
    has_media: bool = False
    duration: Optional[float] = None
    message_type: Optional[str] = None
    react: Optional[ReactCallable] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ReactionRequest:
    """One admitted reaction attempt, discarded after dispatch."""

    chat_id: Optional[int]
    message_id: Optional[int]
    emoji: str
    origin: Optional[str] = None
    message_type: Optional[str] = None
    native_react: Optional[ReactCallable] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_event(cls, event: InboundEvent, emoji: str) -> "ReactionRequest":
        return cls(
            chat_id=event.chat_id,
            message_id=event.message_id,
            emoji=emoji,
            origin=event.origin,
            message_type=event.mimetype or event.message_type,
            native_react=event.react,
        )


@dataclass(frozen=True)
class ConversationInfo:
    """A single entry of the conversation listing."""

    chat_id: int
    title: str
    is_group: bool
