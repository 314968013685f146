"""Process-wide counters and derived reaction metrics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass
class Stats:
    """Cumulative counters; a fresh instance is created at process start."""

    started_at: Optional[datetime] = None
    messages_received: int = 0
    reactions_sent: int = 0
    total_reaction_time: float = 0.0
    average_reaction_time: float = 0.0
    last_error: Optional[str] = None
    processed_groups_count: int = 0

    def record_message(self) -> None:
        self.messages_received += 1

    def record_reaction(self, elapsed: float) -> None:
        """Count a delivered reaction and refresh the running average (seconds)."""

        self.reactions_sent += 1
        self.total_reaction_time += elapsed
        self.average_reaction_time = self.total_reaction_time / self.reactions_sent

    def record_error(self, error: BaseException | str) -> None:
        self.last_error = str(error) or type(error).__name__

    def set_processed_groups(self, count: int) -> None:
        self.processed_groups_count = count

    def mark_started(self, now: Optional[datetime] = None) -> None:
        self.started_at = now or datetime.now(timezone.utc)

    def uptime_seconds(self, now: Optional[datetime] = None) -> int:
        if self.started_at is None:
            return 0
        now = now or datetime.now(timezone.utc)
        return max(0, int((now - self.started_at).total_seconds()))

    def snapshot(self) -> dict[str, Any]:
        """Plain-dict copy for callers outside the core."""

        data = asdict(self)
        data["started_at"] = self.started_at.isoformat() if self.started_at else None
        return data
