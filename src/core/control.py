"""Control surface exposed to the presentation layer."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from core.lifecycle import ClientLifecycleManager
from core.rate_governor import RateGovernor
from core.telemetry import Stats

LOGGER = logging.getLogger(__name__)


class ControlSurface:
    """start/stop/get_stats with plain-dict results for any frontend."""

    def __init__(
        self,
        lifecycle: ClientLifecycleManager,
        governor: RateGovernor,
        stats: Stats,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lifecycle = lifecycle
        self._governor = governor
        self._stats = stats
        self._clock = clock

    async def start(self) -> dict[str, Any]:
        try:
            ready = await self._lifecycle.start()
        except Exception as exc:
            LOGGER.exception("Unexpected error while starting the client")
            self._stats.record_error(exc)
            return {"success": False, "error": str(exc)}
        result: dict[str, Any] = {"success": ready, "state": self._lifecycle.state.value}
        if not ready and not self._lifecycle.is_initializing and self._stats.last_error:
            result["error"] = self._stats.last_error
        return result

    async def stop(self) -> dict[str, Any]:
        try:
            stopped = await self._lifecycle.stop()
        except Exception as exc:
            LOGGER.exception("Unexpected error while stopping the client")
            self._stats.record_error(exc)
            return {"success": False, "error": str(exc)}
        return {"success": True, "stopped": stopped}

    def get_stats(self) -> dict[str, Any]:
        """Stats snapshot plus derived lifecycle and rate-window fields."""

        transport = self._lifecycle.transport
        snapshot = self._stats.snapshot()
        snapshot.update(
            {
                "initialized": transport is not None,
                "initializing": self._lifecycle.is_initializing,
                "state": self._lifecycle.state.value,
                "uptime_seconds": self._stats.uptime_seconds(),
                "reactions_in_window": self._governor.occupancy(self._clock()),
                "max_reactions_per_window": self._governor.max_per_window,
                "info": transport.info if transport is not None else None,
            }
        )
        return snapshot
