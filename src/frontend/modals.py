"""Modal dialogs for the Textual dashboard."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class StopConfirmScreen(ModalScreen[bool]):
    """Prompt before disconnecting a live client."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Stop client?", classes="modal-title"),
            Static("Reactions stop until the client is started again.", classes="modal-body"),
            Horizontal(
                Button("Stop", id="stop-confirm", variant="error"),
                Button("Cancel", id="stop-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "stop-confirm")


class QuitConfirmScreen(ModalScreen[bool]):
    """Prompt when quitting while the client is live."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Quit autoreact?", classes="modal-title"),
            Static("The client will be disconnected.", classes="modal-body"),
            Horizontal(
                Button("Quit", id="quit-confirm", variant="error"),
                Button("Cancel", id="quit-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "quit-confirm")
