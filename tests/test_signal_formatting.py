from __future__ import annotations

from rich.text import Text

from adapters.signal_formatting import format_group_label, format_signal
from core.signals import Signal


def test_format_group_label_with_alias() -> None:
    aliases = {"chat_id:-1#group": "Family"}
    assert format_group_label("chat_id:-1#group", aliases) == "Family (chat_id:-1#group)"
    assert format_group_label("chat_id:-2#group", aliases) == "chat_id:-2#group"
    assert format_group_label(None, aliases) == "unknown"


def test_format_reaction_sent_line() -> None:
    payload = {"group_id": "chat_id:-1#group", "message_type": "audio/ogg", "reaction_time": "120ms"}
    line = format_signal(Signal.REACTION_SENT, payload, {"chat_id:-1#group": "Family"})
    assert line == "reaction-sent: reacted in Family (chat_id:-1#group) (audio/ogg, 120ms)"


def test_format_groups_loaded_with_note() -> None:
    assert format_signal(Signal.GROUPS_LOADED, {"count": 7, "note": "timeout"}) == "groups-loaded: 7 groups [timeout]"
    assert format_signal(Signal.STOPPED, {"ok": True}) == "bot-stopped"


def test_rich_mode_styles_errors() -> None:
    text = format_signal(Signal.REACTION_ERROR, {"error": "boom", "group_id": "chat_id:-1#group"}, mode="rich")
    assert isinstance(text, Text)
    assert text.style == "bold red"
    assert "boom" in text.plain
