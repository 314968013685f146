"""Shared signal formatting helpers.

Keeping formatting here prevents drift between the console runner and the
dashboard and keeps signal lines consistent regardless of frontend.
"""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text

from core.signals import Signal

ERROR_SIGNALS = frozenset(
    {
        Signal.QR_ERROR,
        Signal.AUTH_FAILURE,
        Signal.CLIENT_ERROR,
        Signal.START_FAILED,
        Signal.RETRY_FAILED,
        Signal.STOP_ERROR,
        Signal.MESSAGE_HANDLER_ERROR,
        Signal.REACTION_ERROR,
        Signal.CRITICAL_ERROR,
    }
)
WARNING_SIGNALS = frozenset({Signal.RATE_LIMIT_REACHED, Signal.CLIENT_RETRY, Signal.DISCONNECTED})


def format_group_label(origin: Optional[str], group_aliases: dict[str, str]) -> str:
    """Return a human-friendly group label, using configured aliases."""

    if not origin:
        return "unknown"
    alias = group_aliases.get(origin)
    if not alias:
        return origin
    return f"{alias} ({origin})"


def _describe(channel: Signal, payload: dict[str, Any], group_aliases: dict[str, str]) -> str:
    if channel is Signal.REACTION_SENT:
        group = format_group_label(payload.get("group_id"), group_aliases)
        return f"reacted in {group} ({payload.get('message_type')}, {payload.get('reaction_time')})"
    if channel is Signal.REACTION_ERROR:
        group = format_group_label(payload.get("group_id"), group_aliases)
        return f"reaction failed in {group}: {payload.get('error')}"
    if channel is Signal.MESSAGE_RECEIVED:
        group = format_group_label(payload.get("from"), group_aliases)
        return f"message in {group} [{payload.get('type')}] -> {payload.get('action')}"
    if channel is Signal.RATE_LIMIT_REACHED:
        return f"rate limit reached ({payload.get('limit')} per window)"
    if channel is Signal.LOADING_PROGRESS:
        return f"{payload.get('message')} ({payload.get('percent')}%)"
    if channel in (Signal.GROUPS_LOADED_PARTIAL, Signal.GROUPS_LOADED):
        note = payload.get("note")
        suffix = f" [{note}]" if note else ""
        return f"{payload.get('count')} groups{suffix}"
    if channel is Signal.CLIENT_RETRY:
        return f"retry {payload.get('attempt')} in {payload.get('delay')}s: {payload.get('error')}"
    if channel is Signal.CRITICAL_ERROR:
        return f"{payload.get('message')}: {payload.get('stack')}"
    for key in ("error", "reason", "message"):
        if payload.get(key):
            return str(payload[key])
    return ""


def format_signal(
    channel: Signal,
    payload: dict[str, Any],
    group_aliases: Optional[dict[str, str]] = None,
    mode: str = "plain",
) -> str | Text:
    """Render one signal as a log line ("plain") or a styled rich Text ("rich")."""

    description = _describe(channel, payload, group_aliases or {})
    line = f"{channel.value}: {description}" if description else channel.value
    if mode == "plain":
        return line
    if mode != "rich":
        raise ValueError(f"Unsupported mode: {mode}")

    style = ""
    if channel in ERROR_SIGNALS:
        style = "bold red"
    elif channel in WARNING_SIGNALS:
        style = "yellow"
    elif channel is Signal.REACTION_SENT:
        style = "green"
    return Text(line, style=style)
