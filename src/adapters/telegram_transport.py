"""Telethon transport adapter.

Implements the core TransportPort on top of a TelegramClient: it owns the
connection and login, maps incoming messages to core events, and exposes
the reaction channels Telegram offers (native reactions and quoted replies).
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Optional

from telethon import TelegramClient, events, functions, types

from adapters.telegram_mapper import build_event
from core.models import ConversationInfo
from core.ports import Capability, TransportEvent, TransportHandler
from get_session import authorize

LOGGER = logging.getLogger(__name__)


class TelegramTransport:
    """TransportPort backed by Telethon."""

    capabilities = frozenset({Capability.SEND_REACTION, Capability.QUOTED_REPLY})

    def __init__(self, client: TelegramClient, login_method: Optional[str] = None) -> None:
        self._client = client
        self._login_method = login_method
        self._handlers: dict[TransportEvent, list[TransportHandler]] = defaultdict(list)
        self._info: Optional[dict[str, Any]] = None
        self._disconnect_task: Optional[asyncio.Task] = None
        self._destroying = False

    @property
    def info(self) -> Optional[dict[str, Any]]:
        return self._info

    def on(self, event: TransportEvent, handler: TransportHandler) -> None:
        self._handlers[event].append(handler)

    def _fire(self, event: TransportEvent, *args: Any) -> None:
        """Dispatch an event to all registered handlers."""

        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(*args)
                if asyncio.iscoroutine(result):
                    asyncio.get_running_loop().create_task(result)
            except Exception:
                LOGGER.exception("Error in transport handler for %s", event.value)

    async def start(self) -> None:
        """Connect, log in, and start delivering messages."""

        await self._client.connect()
        try:
            await authorize(
                self._client,
                on_qr=lambda url: self._fire(TransportEvent.QR, url),
                login_method=self._login_method,
            )
        except Exception as exc:
            self._fire(TransportEvent.AUTH_FAILURE, exc)
            raise
        self._fire(TransportEvent.AUTHENTICATED)

        me = await self._client.get_me()
        self._info = {
            "id": getattr(me, "id", None),
            "username": getattr(me, "username", None),
            "name": " ".join(
                part for part in [getattr(me, "first_name", None), getattr(me, "last_name", None)] if part
            ),
        }

        # A single handler keeps Telethon integration minimal; all filtering
        # happens in the core classifier.
        self._client.add_event_handler(self._on_new_message, events.NewMessage())
        self._disconnect_task = asyncio.get_running_loop().create_task(self._watch_disconnect())
        LOGGER.info("Telegram client connected as %s", self._info.get("username") or self._info.get("id"))
        self._fire(TransportEvent.READY)

    async def _on_new_message(self, event: events.NewMessage.Event) -> None:
        try:
            core_event = build_event(event.message)
        except Exception as exc:
            LOGGER.exception("Failed to map incoming message")
            self._fire(TransportEvent.ERROR, exc)
            return
        self._fire(TransportEvent.MESSAGE, core_event)

    async def _watch_disconnect(self) -> None:
        reason: Any = "connection closed"
        try:
            await self._client.disconnected
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            reason = exc
        if not self._destroying:
            LOGGER.warning("Telegram client disconnected: %s", reason)
            self._fire(TransportEvent.DISCONNECTED, reason)

    async def destroy(self) -> None:
        """Disconnect and drop all handlers."""

        self._destroying = True
        self._client.remove_event_handler(self._on_new_message)
        task, self._disconnect_task = self._disconnect_task, None
        if task is not None and not task.done():
            task.cancel()
        await self._client.disconnect()

    async def list_conversations(self) -> list[ConversationInfo]:
        conversations: list[ConversationInfo] = []
        async for dialog in self._client.iter_dialogs():
            conversations.append(
                ConversationInfo(
                    chat_id=dialog.id,
                    title=str(dialog.name or dialog.id),
                    is_group=bool(dialog.is_group),
                )
            )
        return conversations

    async def send_reaction(self, chat_id: int, message_id: int, emoji: str) -> None:
        await self._client(
            functions.messages.SendReactionRequest(
                peer=chat_id,
                msg_id=message_id,
                reaction=[types.ReactionEmoji(emoticon=emoji)],
            )
        )

    async def send_quoted_reply(self, chat_id: int, text: str, quoted_message_id: Optional[int]) -> None:
        await self._client.send_message(chat_id, text, reply_to=quoted_message_id)
