"""Static configuration for autoreact.

User-editable settings live in an optional config.json at the project root;
environment variables (loaded from .env with python-dotenv) override them so
deployments can tune limits without touching files.
"""

import json
import os

from dotenv import load_dotenv

from core.config import EmojiConfig, RateLimitConfig, RetryConfig, StabilizationConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.getenv("AUTOREACT_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))

load_dotenv()


def _load_json_config() -> dict:
    """Load config.json; a missing file means "all defaults"."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be an object: {CONFIG_PATH}")
    return loaded


def _env(name: str, fallback, cast=str):
    """Environment value for ``name`` cast to the fallback's type."""

    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Sliding-window limit for outgoing reactions.
_rate = _CONFIG.get("rate_limit", {})
RATE_LIMIT = RateLimitConfig(
    window_seconds=_env("REACTION_WINDOW_SECONDS", float(_rate.get("window_seconds", 60.0)), float),
    max_per_window=_env("MAX_REACTIONS_PER_WINDOW", int(_rate.get("max_per_window", 150)), int),
)

_reactions = _CONFIG.get("reactions", {})
EMOJIS = EmojiConfig(
    default_emoji=_env("DEFAULT_EMOJI", _reactions.get("default_emoji", "😂")),
    audio_emoji=_env("AUDIO_EMOJI", _reactions.get("audio_emoji", "😂")),
)

# Only session/protocol failures are retried; everything else fails fast.
_init = _CONFIG.get("init", {})
RETRY = RetryConfig(
    max_retries=_env("INIT_RETRIES", int(_init.get("retries", 2)), int),
    retry_delay=_env("INIT_RETRY_DELAY_SECONDS", float(_init.get("retry_delay_seconds", 2.0)), float),
)

_stabilize = _CONFIG.get("stabilization", {})
STABILIZATION = StabilizationConfig(
    timeout=_env("STABILIZE_TIMEOUT_SECONDS", float(_stabilize.get("timeout_seconds", 30.0)), float),
    poll_interval=_env("STABILIZE_INTERVAL_SECONDS", float(_stabilize.get("interval_seconds", 1.0)), float),
    required_stable_checks=_env("STABILIZE_REQUIRED_CHECKS", int(_stabilize.get("required_stable_checks", 2)), int),
)

# Friendly names for origin keys, used only when rendering signals.
GROUP_ALIASES = {
    entry["origin"]: entry["alias"]
    for entry in _CONFIG.get("groups", [])
    if entry.get("origin") and entry.get("alias")
}

LOGIN_METHOD = os.getenv("LOGIN_METHOD", _CONFIG.get("login_method", "qr"))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {"enabled": True, "level": "INFO", "console": True})
