"""Transport client lifecycle (core domain).

We explicitly manage the client's lifecycle so it is obvious when a session
is created, retried and torn down:

    UNINITIALIZED -> INITIALIZING -> READY | UNINITIALIZED (after cleanup)
    READY -> DEGRADED (disconnect) -> INITIALIZING (start() called again)
    READY | DEGRADED -> STOPPED (stop())

Only one transport instance is live at a time. ``start()`` is re-entrant:
calls while initializing or ready are no-ops.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from core.config import RetryConfig, StabilizationConfig
from core.errors import TeardownError, TransientInitError, classify_init_failure
from core.models import ClientState, InboundEvent
from core.ports import SignalSink, TransportEvent, TransportPort
from core.signals import Signal
from core.telemetry import Stats

LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[], TransportPort]
MessageHandler = Callable[[InboundEvent], Any]
QrRenderer = Callable[[str], str]


class ClientLifecycleManager:
    """Starts, retries, watches and stops the transport client."""

    def __init__(
        self,
        stats: Stats,
        signals: SignalSink,
        transport_factory: TransportFactory,
        retry: RetryConfig,
        stabilization: StabilizationConfig,
        message_handler: Optional[MessageHandler] = None,
        qr_renderer: Optional[QrRenderer] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stats = stats
        self._signals = signals
        self._transport_factory = transport_factory
        self._retry = retry
        self._stabilization = stabilization
        self._message_handler = message_handler
        self._qr_renderer = qr_renderer
        self._sleep = sleep
        self._clock = clock
        self._state = ClientState.UNINITIALIZED
        self._transport: Optional[TransportPort] = None
        self._stabilization_task: Optional[asyncio.Task] = None
        self._start_token: Optional[object] = None

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def transport(self) -> Optional[TransportPort]:
        return self._transport

    @property
    def is_live(self) -> bool:
        return self._transport is not None

    @property
    def is_initializing(self) -> bool:
        return self._state is ClientState.INITIALIZING

    def bind_message_handler(self, handler: MessageHandler) -> None:
        self._message_handler = handler

    async def start(self) -> bool:
        """Start the transport, retrying transient failures.

        Returns True once the client is ready. Failures are reported through
        signals and ``last_error``; they are never raised to the caller.
        """

        if self._state in (ClientState.READY, ClientState.INITIALIZING):
            LOGGER.debug("start() ignored while %s", self._state.value)
            return self._state is ClientState.READY

        token = object()
        self._start_token = token
        self._state = ClientState.INITIALIZING
        retries = 0
        try:
            if self._transport is not None:
                # A degraded client is replaced, not reused.
                await self._teardown()

            self._stats.mark_started()
            self._signals.emit(Signal.LOADING_PROGRESS, {"message": "Initializing client", "percent": 5})

            while True:
                transport: Optional[TransportPort] = None
                try:
                    transport = self._transport_factory()
                    self._transport = transport
                    self._register_handlers(transport)
                    await transport.start()
                except Exception as exc:
                    if transport is not None and self._transport is not transport:
                        # stop() ran while we were starting.
                        LOGGER.info("Start aborted by stop(): %s", exc)
                        return False

                    failure = classify_init_failure(exc)
                    LOGGER.warning("Client start failed (attempt %s): %s", retries + 1, failure)
                    self._stats.record_error(failure)
                    self._signals.emit(Signal.START_FAILED, {"error": str(failure), "attempt": retries + 1})
                    await self._teardown()

                    transient = isinstance(failure, TransientInitError)
                    if transient and retries < self._retry.max_retries:
                        retries += 1
                        self._signals.emit(
                            Signal.CLIENT_RETRY,
                            {"attempt": retries, "error": str(failure), "delay": self._retry.retry_delay},
                        )
                        await self._sleep(self._retry.retry_delay)
                        continue

                    if transient:
                        self._signals.emit(Signal.RETRY_FAILED, {"error": str(failure), "retries": retries})
                    self._state = ClientState.UNINITIALIZED
                    return False

                if self._transport is not transport:
                    LOGGER.info("Client started but was stopped meanwhile; discarding it")
                    return False

                self._state = ClientState.READY
                LOGGER.info("Client started after %s retries", retries)
                return True
        finally:
            if self._start_token is token and self._state is ClientState.INITIALIZING:
                # Cancelled mid-start; leave nothing half-initialized behind.
                self._state = ClientState.UNINITIALIZED

    async def stop(self) -> bool:
        """Destroy the live client; teardown errors are reported, not raised."""

        transport = self._transport
        if transport is None:
            return False

        self._transport = None
        self._cancel_stabilization()
        self._state = ClientState.STOPPED
        try:
            await transport.destroy()
        except Exception as exc:
            error = TeardownError(str(exc) or type(exc).__name__)
            LOGGER.warning("Client teardown failed: %s", error)
            self._stats.record_error(error)
            self._signals.emit(Signal.STOP_ERROR, {"error": str(error)})
            return False

        LOGGER.info("Client stopped")
        self._signals.emit(Signal.STOPPED, {"ok": True})
        return True

    async def _teardown(self) -> None:
        """Destroy a partial or stale client, swallowing teardown errors."""

        transport, self._transport = self._transport, None
        self._cancel_stabilization()
        if transport is None:
            return
        try:
            await transport.destroy()
        except Exception as exc:
            LOGGER.warning("Ignoring teardown failure: %s", TeardownError(str(exc)))

    def _cancel_stabilization(self) -> None:
        task, self._stabilization_task = self._stabilization_task, None
        if task is not None and not task.done():
            task.cancel()

    def _register_handlers(self, transport: TransportPort) -> None:
        transport.on(TransportEvent.QR, self._on_qr)
        transport.on(TransportEvent.AUTHENTICATED, self._on_authenticated)
        transport.on(TransportEvent.AUTH_FAILURE, self._on_auth_failure)
        transport.on(TransportEvent.READY, self._on_ready)
        transport.on(TransportEvent.MESSAGE, self._on_message)
        transport.on(TransportEvent.DISCONNECTED, self._on_disconnected)
        transport.on(TransportEvent.ERROR, self._on_error)

    def _on_qr(self, qr: str) -> None:
        payload: dict[str, Any] = {"qr": qr}
        if self._qr_renderer is not None:
            try:
                payload["rendered"] = self._qr_renderer(qr)
            except Exception as exc:
                # The raw login URL is still sent so the user can log in by hand.
                LOGGER.warning("Could not render QR code: %s", exc)
                self._signals.emit(Signal.QR_ERROR, {"error": str(exc)})
        self._signals.emit(Signal.QR_CODE, payload)
        self._signals.emit(Signal.LOADING_PROGRESS, {"message": "QR received", "percent": 30})

    def _on_authenticated(self, *_: Any) -> None:
        self._signals.emit(Signal.AUTHENTICATED, {"ok": True})

    def _on_auth_failure(self, message: Any = None) -> None:
        self._stats.record_error(str(message))
        self._signals.emit(Signal.AUTH_FAILURE, {"message": str(message)})

    def _on_ready(self, *_: Any) -> None:
        self._signals.emit(Signal.READY, {"message": "Client ready"})
        self._signals.emit(Signal.LOADING_PROGRESS, {"message": "Client ready", "percent": 100})
        self._cancel_stabilization()
        self._stabilization_task = asyncio.get_running_loop().create_task(self.wait_until_stable())

    def _on_message(self, event: InboundEvent) -> None:
        if self._message_handler is not None:
            self._message_handler(event)

    def _on_disconnected(self, reason: Any = None) -> None:
        self._stats.record_error(str(reason))
        if self._state is ClientState.READY:
            self._state = ClientState.DEGRADED
        self._signals.emit(Signal.DISCONNECTED, {"reason": str(reason)})

    def _on_error(self, error: Any = None) -> None:
        self._stats.record_error(str(error))
        self._signals.emit(Signal.CLIENT_ERROR, {"error": str(error)})

    async def _count_groups(self) -> int:
        transport = self._transport
        if transport is None:
            raise RuntimeError("client is not running")
        conversations = await transport.list_conversations()
        count = sum(1 for conversation in conversations or [] if conversation.is_group)
        self._stats.set_processed_groups(count)
        return count

    async def wait_until_stable(
        self,
        timeout: Optional[float] = None,
        required_stable_checks: Optional[int] = None,
        poll_interval: Optional[float] = None,
    ) -> int:
        """Poll the group listing until its size stops changing.

        The listing is considered stable once ``required_stable_checks``
        consecutive polls return the same count. Poll errors are retried on
        the next interval. When the timeout elapses a final poll decides the
        reported count (zero if that poll fails too).
        """

        timeout = self._stabilization.timeout if timeout is None else timeout
        if required_stable_checks is None:
            required_stable_checks = self._stabilization.required_stable_checks
        if poll_interval is None:
            poll_interval = self._stabilization.poll_interval

        started = self._clock()
        last_count: Optional[int] = None
        stable_checks = 0
        while self._clock() - started < timeout:
            try:
                count = await self._count_groups()
            except Exception:
                LOGGER.debug("Group listing poll failed, retrying", exc_info=True)
            else:
                self._signals.emit(Signal.GROUPS_LOADED_PARTIAL, {"count": count})
                if count == last_count:
                    stable_checks += 1
                else:
                    last_count = count
                    stable_checks = 1
                if stable_checks >= required_stable_checks:
                    LOGGER.info("Group listing stable at %s groups", count)
                    self._signals.emit(Signal.GROUPS_LOADED, {"count": count})
                    return count
            await self._sleep(poll_interval)

        try:
            count = await self._count_groups()
        except Exception as exc:
            LOGGER.warning("Final group listing poll failed: %s", exc)
            self._signals.emit(Signal.GROUPS_LOADED, {"count": 0, "note": "error"})
            return 0
        LOGGER.info("Group listing timed out at %s groups", count)
        self._signals.emit(Signal.GROUPS_LOADED, {"count": count, "note": "timeout"})
        return count
