"""Core reaction dispatch pipeline.

The pipeline enforces a strict order for every inbound event:
1) Count the event
2) Classify it (ignore, audio, default)
3) Pick the emoji for the verdict
4) Ask the rate governor for admission
5) Issue the strategy chain as a background task
6) Update telemetry when that task settles

``handle`` never awaits the reaction itself, so event N+1 is classified and
admitted while event N's reaction may still be in flight. Completions can
arrive in any order relative to new events.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from core.classifier import classify
from core.config import EmojiConfig
from core.models import Action, InboundEvent, ReactionRequest
from core.ports import SignalSink, TransportPort
from core.rate_governor import RateGovernor
from core.signals import Signal
from core.strategies import ReactionStrategyChain
from core.telemetry import Stats

LOGGER = logging.getLogger(__name__)

TransportProvider = Callable[[], Optional[TransportPort]]


class ReactionDispatcher:
    """Orchestrates classification, admission, reaction and telemetry."""

    def __init__(
        self,
        stats: Stats,
        governor: RateGovernor,
        chain: ReactionStrategyChain,
        signals: SignalSink,
        emojis: EmojiConfig,
        transport_provider: TransportProvider,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stats = stats
        self._governor = governor
        self._chain = chain
        self._signals = signals
        self._emojis = emojis
        self._transport_provider = transport_provider
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Reaction tasks issued but not yet settled."""

        return len(self._pending)

    def select_emoji(self, action: Action) -> Optional[str]:
        if action is Action.REACT_AUDIO:
            return self._emojis.audio_emoji
        if action is Action.REACT_DEFAULT:
            return self._emojis.default_emoji
        return None

    def handle(self, event: Optional[InboundEvent]) -> Optional[asyncio.Task]:
        """Process one event and return the issued reaction task, if any.

        Must be called from inside the running event loop. Errors raised while
        classifying or signalling are recorded and reported, never raised.
        """

        self._stats.record_message()
        if event is None:
            return None

        try:
            action = classify(event)
            emoji = self.select_emoji(action)
            task = self._dispatch(event, emoji) if emoji else None
            self._signals.emit(
                Signal.MESSAGE_RECEIVED,
                {
                    "from": event.origin,
                    "body": event.body,
                    "mimetype": event.mimetype,
                    "has_media": event.has_media,
                    "id": event.message_id,
                    "type": event.message_type,
                    "action": action.value,
                },
            )
            return task
        except Exception as exc:
            LOGGER.exception("Error while handling message")
            self._report_handler_error(exc)
            return None

    def _dispatch(self, event: InboundEvent, emoji: str) -> Optional[asyncio.Task]:
        started = self._clock()
        # Admission records the slot immediately; a failed reaction still uses it.
        if not self._governor.admit(started):
            LOGGER.info("Rate limit reached, skipping reaction for %s", event.origin)
            self._signals.emit(Signal.RATE_LIMIT_REACHED, {"limit": self._governor.max_per_window})
            return None

        request = ReactionRequest.from_event(event, emoji)
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._chain.attempt(request, self._transport_provider()))
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._on_reaction_done, request, started))
        return task

    def _on_reaction_done(self, request: ReactionRequest, started: float, task: asyncio.Task) -> None:
        self._pending.discard(task)
        # The client may be gone by now; telemetry must not take the loop down.
        try:
            if task.cancelled():
                self._fail_reaction(request, "reaction cancelled")
                return
            error = task.exception()
            if error is not None:
                self._fail_reaction(request, error)
                return

            elapsed = self._clock() - started
            self._stats.record_reaction(elapsed)
            elapsed_ms = int(round(elapsed * 1000))
            LOGGER.info("Reaction sent to %s via %s in %sms", request.origin, task.result(), elapsed_ms)
            self._signals.emit(
                Signal.REACTION_SENT,
                {
                    "group_id": request.origin,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "reaction_time": f"{elapsed_ms}ms",
                    "message_type": request.message_type or "unknown",
                    "strategy": task.result(),
                },
            )
        except Exception:
            LOGGER.exception("Failed to record reaction outcome")

    def _fail_reaction(self, request: ReactionRequest, error: BaseException | str) -> None:
        LOGGER.warning("Reaction failed for %s: %s", request.origin, error)
        self._stats.record_error(error)
        self._signals.emit(Signal.REACTION_ERROR, {"error": str(error), "group_id": request.origin})

    def _report_handler_error(self, error: BaseException) -> None:
        self._stats.record_error(error)
        try:
            self._signals.emit(Signal.MESSAGE_HANDLER_ERROR, {"error": str(error)})
        except Exception:
            LOGGER.exception("Failed to report handler error")

    async def drain(self) -> None:
        """Wait for every in-flight reaction to settle."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
