"""Process-wide runtime context.

The runtime is built once at startup and passed explicitly to the frontends;
there are no module-level singletons for the client or the stats.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from core.config import EmojiConfig, RateLimitConfig, RetryConfig, StabilizationConfig
from core.control import ControlSurface
from core.dispatcher import ReactionDispatcher
from core.lifecycle import ClientLifecycleManager, QrRenderer, TransportFactory
from core.rate_governor import RateGovernor
from core.signals import SignalBus
from core.strategies import ReactionStrategyChain
from core.telemetry import Stats


@dataclass(frozen=True)
class RuntimeConfig:
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    emojis: EmojiConfig = field(default_factory=EmojiConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    stabilization: StabilizationConfig = field(default_factory=StabilizationConfig)


@dataclass
class Runtime:
    stats: Stats
    signals: SignalBus
    governor: RateGovernor
    dispatcher: ReactionDispatcher
    lifecycle: ClientLifecycleManager
    control: ControlSurface

    async def shutdown(self) -> None:
        """Stop the client and let in-flight reactions settle."""

        await self.lifecycle.stop()
        await self.dispatcher.drain()


def build_runtime(
    transport_factory: TransportFactory,
    config: RuntimeConfig,
    signals: SignalBus | None = None,
    clock: Callable[[], float] = time.monotonic,
    qr_renderer: QrRenderer | None = None,
) -> Runtime:
    """Wire the core components around one transport factory."""

    stats = Stats()
    signals = signals or SignalBus()
    governor = RateGovernor(config.rate_limit)
    lifecycle = ClientLifecycleManager(
        stats=stats,
        signals=signals,
        transport_factory=transport_factory,
        retry=config.retry,
        stabilization=config.stabilization,
        qr_renderer=qr_renderer,
        clock=clock,
    )
    dispatcher = ReactionDispatcher(
        stats=stats,
        governor=governor,
        chain=ReactionStrategyChain(),
        signals=signals,
        emojis=config.emojis,
        transport_provider=lambda: lifecycle.transport,
        clock=clock,
    )
    lifecycle.bind_message_handler(dispatcher.handle)
    control = ControlSurface(lifecycle, governor, stats, clock=clock)
    return Runtime(
        stats=stats,
        signals=signals,
        governor=governor,
        dispatcher=dispatcher,
        lifecycle=lifecycle,
        control=control,
    )
