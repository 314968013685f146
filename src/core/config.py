"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Sliding-window admission settings."""

    window_seconds: float = 60.0
    max_per_window: int = 150


@dataclass(frozen=True)
class EmojiConfig:
    """Emoji used for each reacting classifier verdict."""

    default_emoji: str = "😂"
    audio_emoji: str = "😂"


@dataclass(frozen=True)
class RetryConfig:
    """Client initialization retry settings."""

    max_retries: int = 2
    retry_delay: float = 2.0


@dataclass(frozen=True)
class StabilizationConfig:
    """Polling settings for the group listing stabilization wait."""

    timeout: float = 30.0
    poll_interval: float = 1.0
    required_stable_checks: int = 2
