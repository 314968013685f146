"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the messaging transport and the
presentation layer so that the core can be reused with different backends.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Protocol

from core.models import ConversationInfo
from core.signals import Signal


class Capability(str, Enum):
    """Reaction channels a transport declares up front."""

    SEND_REACTION = "send_reaction"
    QUOTED_REPLY = "quoted_reply"


class TransportEvent(str, Enum):
    """Lifecycle and message events a transport reports to its handlers."""

    QR = "qr"
    AUTHENTICATED = "authenticated"
    AUTH_FAILURE = "auth_failure"
    READY = "ready"
    MESSAGE = "message"
    DISCONNECTED = "disconnected"
    ERROR = "error"


TransportHandler = Callable[..., Any]


class TransportPort(Protocol):
    """Messaging client operations required by the core."""

    capabilities: frozenset[Capability]

    @property
    def info(self) -> Optional[dict[str, Any]]:
        ...

    def on(self, event: TransportEvent, handler: TransportHandler) -> None:
        ...

    async def start(self) -> None:
        ...

    async def destroy(self) -> None:
        ...

    async def list_conversations(self) -> list[ConversationInfo]:
        ...

    async def send_reaction(self, chat_id: int, message_id: int, emoji: str) -> None:
        ...

    async def send_quoted_reply(self, chat_id: int, text: str, quoted_message_id: int) -> None:
        ...


class SignalSink(Protocol):
    """Presentation-facing signal emission."""

    def emit(self, channel: Signal, payload: Optional[dict[str, Any]] = None) -> None:
        ...
