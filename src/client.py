"""Telegram client factory for autoreact.

The lifecycle manager owns connect/disconnect explicitly, so this module only
builds the client and never starts it. Credential problems are raised as
permanent start failures: retrying cannot fix a missing API key.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv
from telethon import TelegramClient

from core.errors import PermanentInitError

DEFAULT_SESSION_NAME = "autoreact"


@dataclass(frozen=True)
class TelegramCredentials:
    api_id: int
    api_hash: str
    session_name: str = DEFAULT_SESSION_NAME


def load_credentials(environ: Optional[Mapping[str, str]] = None) -> TelegramCredentials:
    """Read API_ID, API_HASH and SESSION_NAME from the environment."""

    if environ is None:
        load_dotenv()
        environ = os.environ

    missing = [name for name in ("API_ID", "API_HASH") if not (environ.get(name) or "").strip()]
    if missing:
        raise PermanentInitError(f"Missing {', '.join(missing)} in environment")

    raw_id = environ["API_ID"].strip()
    try:
        api_id = int(raw_id)
    except ValueError as exc:
        raise PermanentInitError(f"API_ID must be numeric, got {raw_id!r}", cause=exc) from exc

    session_name = (environ.get("SESSION_NAME") or "").strip() or DEFAULT_SESSION_NAME
    return TelegramCredentials(api_id=api_id, api_hash=environ["API_HASH"].strip(), session_name=session_name)


def build_client(credentials: Optional[TelegramCredentials] = None) -> TelegramClient:
    """Create a Telethon client; one is built per start attempt."""

    credentials = credentials or load_credentials()
    logging.getLogger(__name__).info("Initializing Telegram client (session %s)", credentials.session_name)
    return TelegramClient(credentials.session_name, credentials.api_id, credentials.api_hash)
