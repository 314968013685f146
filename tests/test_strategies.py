from __future__ import annotations

import asyncio

import pytest

from core.errors import NoReactionChannelAvailable
from core.models import ReactionRequest
from core.ports import Capability
from core.strategies import (
    QuotedReplyStrategy,
    ReactionStrategyChain,
    SendReactionStrategy,
    StrategyStatus,
)


class FakeTransport:
    def __init__(self, capabilities: set[Capability], send_reaction_error: "Exception | None" = None) -> None:
        self.capabilities = frozenset(capabilities)
        self._send_reaction_error = send_reaction_error
        self.reactions: list[tuple[int, int, str]] = []
        self.replies: list[tuple[int, str, "int | None"]] = []

    def send_reaction(self, chat_id: int, message_id: int, emoji: str):
        # Raises before any awaitable exists, like a client missing the method.
        if self._send_reaction_error is not None:
            raise self._send_reaction_error
        self.reactions.append((chat_id, message_id, emoji))
        return asyncio.sleep(0)

    async def send_quoted_reply(self, chat_id: int, text: str, quoted_message_id: "int | None") -> None:
        self.replies.append((chat_id, text, quoted_message_id))


def _request(native_react=None) -> ReactionRequest:
    return ReactionRequest(chat_id=-100123, message_id=7, emoji="😂", native_react=native_react)


def test_native_react_wins_when_present() -> None:
    calls: list[str] = []

    async def react(emoji: str) -> None:
        calls.append(emoji)

    transport = FakeTransport({Capability.SEND_REACTION, Capability.QUOTED_REPLY})
    chain = ReactionStrategyChain()

    used = asyncio.run(chain.attempt(_request(native_react=react), transport))

    assert used == "native"
    assert calls == ["😂"]
    assert not transport.reactions
    assert not transport.replies


def test_send_reaction_used_without_native_react() -> None:
    transport = FakeTransport({Capability.SEND_REACTION, Capability.QUOTED_REPLY})

    used = asyncio.run(ReactionStrategyChain().attempt(_request(), transport))

    assert used == "send_reaction"
    assert transport.reactions == [(-100123, 7, "😂")]
    assert not transport.replies


def test_failing_send_reaction_falls_through_to_quoted_reply_once() -> None:
    transport = FakeTransport(
        {Capability.SEND_REACTION, Capability.QUOTED_REPLY},
        send_reaction_error=RuntimeError("method not available"),
    )

    used = asyncio.run(ReactionStrategyChain().attempt(_request(), transport))

    assert used == "quoted_reply"
    assert transport.replies == [(-100123, "😂", 7)]


def test_no_strategy_applicable_raises() -> None:
    with pytest.raises(NoReactionChannelAvailable):
        asyncio.run(ReactionStrategyChain().attempt(_request(), FakeTransport(set())))


def test_torn_down_client_leaves_only_native_react() -> None:
    with pytest.raises(NoReactionChannelAvailable):
        asyncio.run(ReactionStrategyChain().attempt(_request(), None))


def test_applicable_strategy_failure_is_not_retried() -> None:
    async def react(emoji: str) -> None:
        raise RuntimeError("message deleted")

    transport = FakeTransport({Capability.SEND_REACTION, Capability.QUOTED_REPLY})

    with pytest.raises(RuntimeError, match="message deleted"):
        asyncio.run(ReactionStrategyChain().attempt(_request(native_react=react), transport))

    assert not transport.reactions
    assert not transport.replies


def test_strategy_results_are_tagged() -> None:
    failing = FakeTransport({Capability.SEND_REACTION}, send_reaction_error=ValueError("boom"))
    result = SendReactionStrategy().issue(_request(), failing)
    assert result.status is StrategyStatus.FAILED
    assert isinstance(result.error, ValueError)

    assert QuotedReplyStrategy().issue(_request(), failing).status is StrategyStatus.NOT_APPLICABLE
