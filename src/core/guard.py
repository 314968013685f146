"""Top-level guard for errors that escape every other handler.

Whatever reaches here is recorded and reported; the process keeps serving
events.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from types import TracebackType
from typing import Any, Callable, Optional

from core.ports import SignalSink
from core.signals import Signal
from core.telemetry import Stats

LOGGER = logging.getLogger(__name__)

LoopExceptionHandler = Callable[[asyncio.AbstractEventLoop, dict[str, Any]], None]


def _report(stats: Stats, signals: SignalSink, kind: str, error: Any) -> None:
    stats.record_error(error if error is not None else kind)
    try:
        signals.emit(Signal.CRITICAL_ERROR, {"message": kind, "stack": str(error)})
    except Exception:
        LOGGER.exception("Failed to report %s", kind)


def build_loop_exception_handler(stats: Stats, signals: SignalSink) -> LoopExceptionHandler:
    def handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        error = context.get("exception") or context.get("message")
        LOGGER.error("Unhandled async error: %s", context.get("message"), exc_info=context.get("exception"))
        _report(stats, signals, "unhandled_async_error", error)

    return handler


def install_crash_guard(loop: asyncio.AbstractEventLoop, stats: Stats, signals: SignalSink) -> None:
    """Route uncaught loop errors and exceptions to stats and signals."""

    loop.set_exception_handler(build_loop_exception_handler(stats, signals))
    previous_hook = sys.excepthook

    def excepthook(
        exc_type: type[BaseException],
        exc: BaseException,
        tb: Optional[TracebackType],
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            previous_hook(exc_type, exc, tb)
            return
        LOGGER.error("Uncaught exception", exc_info=(exc_type, exc, tb))
        _report(stats, signals, "uncaught_exception", exc)

    sys.excepthook = excepthook
