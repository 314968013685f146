from __future__ import annotations

import asyncio
from typing import Any, Optional

from core.config import EmojiConfig, RateLimitConfig
from core.dispatcher import ReactionDispatcher
from core.models import InboundEvent
from core.ports import Capability
from core.rate_governor import RateGovernor
from core.signals import Signal
from core.strategies import ReactionStrategyChain
from core.telemetry import Stats

GROUP = "chat_id:-100123#group"


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingSignals:
    def __init__(self, fail_on: Optional[Signal] = None) -> None:
        self.emitted: list[tuple[Signal, dict[str, Any]]] = []
        self._fail_on = fail_on

    def emit(self, channel: Signal, payload: Optional[dict[str, Any]] = None) -> None:
        if channel is self._fail_on:
            raise RuntimeError("frontend went away")
        self.emitted.append((channel, payload or {}))

    def channels(self) -> list[Signal]:
        return [channel for channel, _ in self.emitted]


class FakeTransport:
    capabilities = frozenset({Capability.SEND_REACTION})

    def __init__(self, gate: Optional[asyncio.Event] = None, error: Optional[Exception] = None) -> None:
        self._gate = gate
        self._error = error
        self.reactions: list[tuple[int, int, str]] = []

    async def send_reaction(self, chat_id: int, message_id: int, emoji: str) -> None:
        if self._gate is not None:
            await self._gate.wait()
        if self._error is not None:
            raise self._error
        self.reactions.append((chat_id, message_id, emoji))


def _dispatcher(
    transport: Optional[FakeTransport],
    signals: RecordingSignals,
    stats: Stats,
    clock: FakeClock,
    max_per_window: int = 150,
) -> tuple[ReactionDispatcher, RateGovernor]:
    governor = RateGovernor(RateLimitConfig(window_seconds=60.0, max_per_window=max_per_window))
    dispatcher = ReactionDispatcher(
        stats=stats,
        governor=governor,
        chain=ReactionStrategyChain(),
        signals=signals,
        emojis=EmojiConfig(default_emoji="👍", audio_emoji="🎧"),
        transport_provider=lambda: transport,
        clock=clock,
    )
    return dispatcher, governor


def _event(message_id: int, **kwargs: Any) -> InboundEvent:
    kwargs.setdefault("origin", GROUP)
    return InboundEvent(chat_id=-100123, message_id=message_id, **kwargs)


def test_handle_does_not_wait_for_reactions() -> None:
    async def scenario() -> None:
        gate = asyncio.Event()
        transport = FakeTransport(gate=gate)
        signals = RecordingSignals()
        stats = Stats()
        clock = FakeClock()
        dispatcher, _ = _dispatcher(transport, signals, stats, clock)

        first = dispatcher.handle(_event(1, body="first"))
        second = dispatcher.handle(_event(2, mimetype="audio/ogg"))
        await asyncio.sleep(0)

        # Both events were classified while the first reaction is still pending.
        assert first is not None and not first.done()
        assert second is not None and not second.done()
        assert signals.channels().count(Signal.MESSAGE_RECEIVED) == 2
        assert dispatcher.pending == 2

        clock.now = 100.25
        gate.set()
        await dispatcher.drain()

        assert transport.reactions == [(-100123, 1, "👍"), (-100123, 2, "🎧")]
        assert stats.reactions_sent == 2
        assert stats.average_reaction_time == 0.25
        assert signals.channels().count(Signal.REACTION_SENT) == 2
        assert dispatcher.pending == 0

    asyncio.run(scenario())


def test_ignored_event_is_counted_but_not_reacted_to() -> None:
    async def scenario() -> None:
        transport = FakeTransport()
        signals = RecordingSignals()
        stats = Stats()
        dispatcher, governor = _dispatcher(transport, signals, stats, FakeClock())

        assert dispatcher.handle(_event(1, body="")) is None
        assert dispatcher.handle(None) is None

        assert stats.messages_received == 2
        assert governor.occupancy() == 0
        assert not transport.reactions
        observed = [payload for channel, payload in signals.emitted if channel is Signal.MESSAGE_RECEIVED]
        assert observed[0]["action"] == "ignore"

    asyncio.run(scenario())


def test_rate_limited_event_emits_signal_and_skips_reaction() -> None:
    async def scenario() -> None:
        transport = FakeTransport()
        signals = RecordingSignals()
        stats = Stats()
        dispatcher, _ = _dispatcher(transport, signals, stats, FakeClock(), max_per_window=2)

        tasks = [dispatcher.handle(_event(i, body="hi")) for i in range(3)]
        await dispatcher.drain()

        assert tasks[2] is None
        assert len(transport.reactions) == 2
        limited = [payload for channel, payload in signals.emitted if channel is Signal.RATE_LIMIT_REACHED]
        assert limited == [{"limit": 2}]

    asyncio.run(scenario())


def test_failed_reaction_records_error_and_keeps_slot() -> None:
    async def scenario() -> None:
        transport = FakeTransport(error=RuntimeError("REACTION_INVALID"))
        signals = RecordingSignals()
        stats = Stats()
        dispatcher, governor = _dispatcher(transport, signals, stats, FakeClock())

        dispatcher.handle(_event(1, body="hi"))
        await dispatcher.drain()

        assert stats.reactions_sent == 0
        assert stats.last_error == "REACTION_INVALID"
        assert Signal.REACTION_ERROR in signals.channels()
        assert governor.occupancy() == 1

    asyncio.run(scenario())


def test_reaction_after_client_teardown_reports_error() -> None:
    async def scenario() -> None:
        signals = RecordingSignals()
        stats = Stats()
        dispatcher, _ = _dispatcher(None, signals, stats, FakeClock())

        dispatcher.handle(_event(1, body="hi"))
        await dispatcher.drain()

        assert Signal.REACTION_ERROR in signals.channels()
        assert "no reaction channel" in (stats.last_error or "")

    asyncio.run(scenario())


def test_handler_errors_are_reported_not_raised() -> None:
    async def scenario() -> None:
        transport = FakeTransport()
        signals = RecordingSignals(fail_on=Signal.MESSAGE_RECEIVED)
        stats = Stats()
        dispatcher, _ = _dispatcher(transport, signals, stats, FakeClock())

        assert dispatcher.handle(_event(1, body="hi")) is None
        await dispatcher.drain()

        assert stats.messages_received == 1
        assert stats.last_error == "frontend went away"
        assert Signal.MESSAGE_HANDLER_ERROR in signals.channels()

        # The next event is still processed normally.
        dispatcher.handle(_event(2, body="again"))
        await dispatcher.drain()
        assert stats.messages_received == 2

    asyncio.run(scenario())
