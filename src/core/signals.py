"""One-way signals from the core to the presentation layer.

Signals are fire-and-forget: the core never waits for, or depends on, what a
subscriber does with them. A failing subscriber is logged and skipped.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Optional

LOGGER = logging.getLogger(__name__)


class Signal(str, Enum):
    """Named channels understood by the presentation layer."""

    LOADING_PROGRESS = "loading-progress"
    QR_CODE = "qr-code"
    QR_ERROR = "qr-error"
    AUTHENTICATED = "bot-authenticated"
    AUTH_FAILURE = "auth-failure"
    READY = "bot-ready"
    DISCONNECTED = "bot-disconnected"
    CLIENT_ERROR = "client-error"
    START_FAILED = "start-failed"
    CLIENT_RETRY = "client-retry"
    RETRY_FAILED = "retry-failed"
    STOPPED = "bot-stopped"
    STOP_ERROR = "stop-error"
    MESSAGE_RECEIVED = "message-received"
    MESSAGE_HANDLER_ERROR = "message-handler-error"
    REACTION_SENT = "reaction-sent"
    REACTION_ERROR = "reaction-error"
    RATE_LIMIT_REACHED = "rate-limit-reached"
    GROUPS_LOADED_PARTIAL = "groups-loaded-partial"
    GROUPS_LOADED = "groups-loaded"
    CRITICAL_ERROR = "critical-error"


SignalHandler = Callable[[Signal, dict[str, Any]], None]


class SignalBus:
    """Fan-out of signals to any number of subscribers."""

    def __init__(self) -> None:
        self._handlers: list[SignalHandler] = []

    def subscribe(self, handler: SignalHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: SignalHandler) -> None:
        self._handlers = [h for h in self._handlers if h is not handler]

    def emit(self, channel: Signal, payload: Optional[dict[str, Any]] = None) -> None:
        """Deliver a signal to every subscriber."""

        payload = payload or {}
        if not self._handlers:
            # Nobody is listening yet; keep the signal visible in the logs.
            LOGGER.info("[signal] %s %s", channel.value, payload)
            return
        for handler in list(self._handlers):
            try:
                handler(channel, payload)
            except Exception:
                LOGGER.exception("Signal subscriber failed for %s", channel.value)
