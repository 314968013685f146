"""Main Textual app for the autoreact dashboard."""

from __future__ import annotations

import asyncio
from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, Footer, RichLog, Static

from adapters.signal_formatting import format_signal
from core.guard import install_crash_guard
from core.runtime import Runtime
from core.signals import Signal

from .constants import SIGNAL_LOG_LINES, STATS_REFRESH_SECONDS, TELEGRAM_BLUE
from .modals import QuitConfirmScreen, StopConfirmScreen
from .state import ControlState


class DashboardApp(App):
    """Live stats, start/stop controls and a signal log."""

    BINDINGS = [
        ("s", "start_client", "Start"),
        ("x", "stop_client", "Stop"),
        ("q", "request_quit", "Quit"),
        ("ctrl+c", "request_quit", "Quit"),
    ]

    CSS = """
    Screen {
        background: #0f1a21;
        color: #e8eef5;
    }

    #header {
        height: 6;
        padding: 1 4;
        border-bottom: solid #2a3a46;
    }

    #header-left, #header-right {
        width: 1fr;
    }

    #header-right {
        content-align: right top;
        text-align: right;
    }

    #title {
        text-style: bold;
    }

    .subtle {
        color: #c6d2dd;
    }

    .status-ready {
        color: #5fd38d;
    }

    .status-error {
        color: #ff6b6b;
    }

    #body {
        height: 1fr;
    }

    #stats {
        width: 42;
        padding: 1 2;
        border-right: solid #2a3a46;
    }

    #signal-log {
        width: 1fr;
        padding: 0 1;
    }

    #actions {
        height: 3;
        margin-top: 1;
    }

    .modal-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        border: solid #2a3a46;
        background: #16232c;
    }

    .modal-title {
        text-style: bold;
    }

    .modal-actions {
        height: 3;
        margin-top: 1;
    }
    """

    def __init__(self, runtime: Runtime, group_aliases: dict[str, str] | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.runtime = runtime
        self.control_state = ControlState()
        self._group_aliases = group_aliases or {}

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal():
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static("telegram group reactions", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static("", id="header-status")
                    yield Static("", id="header-error", classes="subtle")

        with Horizontal(id="body"):
            with Vertical(id="stats"):
                yield Static("", id="stats-table")
                yield Horizontal(
                    Button("Start", id="start-btn", variant="success"),
                    Button("Stop", id="stop-btn", variant="error"),
                    id="actions",
                )
            yield RichLog(id="signal-log", max_lines=SIGNAL_LOG_LINES, wrap=True)
        yield Footer()

    def on_mount(self) -> None:
        install_crash_guard(asyncio.get_running_loop(), self.runtime.stats, self.runtime.signals)
        self.runtime.signals.subscribe(self._on_signal)
        self.set_interval(STATS_REFRESH_SECONDS, self._refresh_stats)
        self._refresh_stats()

    def on_unmount(self) -> None:
        self.runtime.signals.unsubscribe(self._on_signal)

    def _on_signal(self, channel: Signal, payload: dict[str, Any]) -> None:
        log = self.query_one("#signal-log", RichLog)
        log.write(format_signal(channel, payload, self._group_aliases, mode="rich"))
        if channel is Signal.QR_CODE and payload.get("rendered"):
            log.write(payload["rendered"])

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "start-btn":
            self.action_start_client()
        elif event.button.id == "stop-btn":
            self.action_stop_client()

    def action_start_client(self) -> None:
        if self.control_state.busy:
            return
        self.run_worker(self._run_control("start"), exclusive=True)

    def action_stop_client(self) -> None:
        if self.control_state.busy or not self.runtime.lifecycle.is_live:
            return
        self.push_screen(StopConfirmScreen(), self._handle_stop_choice)

    def _handle_stop_choice(self, confirmed: bool | None) -> None:
        if confirmed:
            self.run_worker(self._run_control("stop"), exclusive=True)

    def action_request_quit(self) -> None:
        if self.runtime.lifecycle.is_live:
            self.push_screen(QuitConfirmScreen(), self._handle_quit_choice)
        else:
            self.exit()

    def _handle_quit_choice(self, confirmed: bool | None) -> None:
        if confirmed:
            self.run_worker(self._shutdown_and_exit(), exclusive=True)

    async def _shutdown_and_exit(self) -> None:
        await self.runtime.shutdown()
        self.exit()

    async def _run_control(self, action: str) -> None:
        self.control_state.busy = True
        self._refresh_stats()
        try:
            if action == "start":
                result = await self.runtime.control.start()
            else:
                result = await self.runtime.control.stop()
            self.control_state.last_result = result
            self.control_state.error = result.get("error")
        finally:
            self.control_state.busy = False
            self._refresh_stats()

    def _refresh_stats(self) -> None:
        stats = self.runtime.control.get_stats()
        table = self.query_one("#stats-table", Static)
        table.update(self._stats_text(stats))

        status = self.query_one("#header-status", Static)
        status.remove_class("status-ready", "status-error")
        status.update(f"client: {stats['state']}")
        if stats["state"] == "ready":
            status.add_class("status-ready")
        elif stats["last_error"]:
            status.add_class("status-error")

        error = self.control_state.error or stats["last_error"]
        self.query_one("#header-error", Static).update(f"last error: {error}" if error else "")

        self.query_one("#start-btn", Button).disabled = self.control_state.busy or stats["initializing"]
        self.query_one("#stop-btn", Button).disabled = self.control_state.busy or not stats["initialized"]

    @staticmethod
    def _stats_text(stats: dict[str, Any]) -> Text:
        average_ms = int(round(stats["average_reaction_time"] * 1000))
        rows = [
            ("uptime", f"{stats['uptime_seconds']}s"),
            ("messages", str(stats["messages_received"])),
            ("reactions", str(stats["reactions_sent"])),
            ("avg reaction", f"{average_ms}ms"),
            ("window", f"{stats['reactions_in_window']}/{stats['max_reactions_per_window']}"),
            ("groups", str(stats["processed_groups_count"])),
        ]
        text = Text()
        for label, value in rows:
            text.append(f"{label:<14}", style="#c6d2dd")
            text.append(f"{value}\n", style="bold")
        return text

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("AUTO", TELEGRAM_BLUE),
            ("REACT > Dashboard", "bold"),
        )
