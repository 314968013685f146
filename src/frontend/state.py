"""State container for control actions issued from the dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ControlState:
    busy: bool = False
    last_result: dict[str, Any] | None = None
    error: str | None = None
