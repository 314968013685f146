"""Reaction delivery strategies (core domain).

Strategies are tried in priority order and the first applicable one wins.
This is an optimistic chain, not a retry chain: once a strategy has issued
its call, a later failure of that call is reported, not retried elsewhere.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Iterable, Optional, Protocol

from core.errors import NoReactionChannelAvailable
from core.models import ReactionRequest
from core.ports import Capability, TransportPort

LOGGER = logging.getLogger(__name__)


class StrategyStatus(str, Enum):
    APPLICABLE = "applicable"
    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"


@dataclass(frozen=True)
class StrategyResult:
    """Outcome of issuing one strategy; the chain inspects the tag."""

    status: StrategyStatus
    pending: Optional[Awaitable[Any]] = None
    error: Optional[BaseException] = None

    @classmethod
    def applicable(cls, pending: Awaitable[Any]) -> "StrategyResult":
        return cls(StrategyStatus.APPLICABLE, pending=pending)

    @classmethod
    def not_applicable(cls) -> "StrategyResult":
        return cls(StrategyStatus.NOT_APPLICABLE)

    @classmethod
    def failed(cls, error: BaseException) -> "StrategyResult":
        return cls(StrategyStatus.FAILED, error=error)


class ReactionStrategy(Protocol):
    name: str

    def issue(self, request: ReactionRequest, transport: Optional[TransportPort]) -> StrategyResult:
        ...


def _supports(transport: Optional[TransportPort], capability: Capability) -> bool:
    if transport is None:
        return False
    return capability in transport.capabilities


class NativeReactStrategy:
    """React through the message object itself."""

    name = "native"

    def issue(self, request: ReactionRequest, transport: Optional[TransportPort]) -> StrategyResult:
        if request.native_react is None:
            return StrategyResult.not_applicable()
        return StrategyResult.applicable(request.native_react(request.emoji))


class SendReactionStrategy:
    """Transport-level reaction addressed by chat id and message id."""

    name = "send_reaction"

    def issue(self, request: ReactionRequest, transport: Optional[TransportPort]) -> StrategyResult:
        if not _supports(transport, Capability.SEND_REACTION):
            return StrategyResult.not_applicable()
        if request.chat_id is None or request.message_id is None:
            return StrategyResult.not_applicable()
        try:
            pending = transport.send_reaction(request.chat_id, request.message_id, request.emoji)
        except Exception as exc:
            return StrategyResult.failed(exc)
        return StrategyResult.applicable(pending)


class QuotedReplyStrategy:
    """Send the emoji as a reply quoting the original message."""

    name = "quoted_reply"

    def issue(self, request: ReactionRequest, transport: Optional[TransportPort]) -> StrategyResult:
        if not _supports(transport, Capability.QUOTED_REPLY):
            return StrategyResult.not_applicable()
        if request.chat_id is None:
            return StrategyResult.not_applicable()
        return StrategyResult.applicable(
            transport.send_quoted_reply(request.chat_id, request.emoji, request.message_id)
        )


def default_strategies() -> list[ReactionStrategy]:
    return [NativeReactStrategy(), SendReactionStrategy(), QuotedReplyStrategy()]


class ReactionStrategyChain:
    """Ordered reaction strategies, first applicable one wins."""

    def __init__(self, strategies: Optional[Iterable[ReactionStrategy]] = None) -> None:
        self._strategies = list(strategies) if strategies is not None else default_strategies()

    async def attempt(self, request: ReactionRequest, transport: Optional[TransportPort]) -> str:
        """Deliver the reaction and return the name of the strategy that did."""

        if not request.emoji:
            raise ValueError("emoji is required to react")

        for strategy in self._strategies:
            result = strategy.issue(request, transport)
            if result.status is StrategyStatus.APPLICABLE:
                if inspect.isawaitable(result.pending):
                    await result.pending
                return strategy.name
            if result.status is StrategyStatus.FAILED:
                LOGGER.debug("Strategy %s failed, falling through: %s", strategy.name, result.error)

        raise NoReactionChannelAvailable(f"no reaction channel available for message {request.message_id}")
