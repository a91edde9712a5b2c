"""File-backed calendar source.

Reads raw events from a JSON file, either a bare list or a Graph-style
``{"value": [...]}`` envelope. Used for --plan dry runs and tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from bandwidth_scheduler.calendar_sources.transform import transform_events

if TYPE_CHECKING:
    from bandwidth_scheduler.core.domain.types import Interval, MonitoringWindow


@dataclass(frozen=True)
class StaticCalendarSource:
    path: Path

    def _load_raw(self) -> list[dict[str, Any]] | None:
        data = json.loads(Path(self.path).read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("value")
        if data is None:
            return None
        if not isinstance(data, list):
            raise ValueError(f"{self.path} must contain a list of events")
        return data

    def fetch_intervals(self, window: MonitoringWindow) -> list[Interval]:
        """Return intervals overlapping the window, sorted by start."""
        intervals = transform_events(self._load_raw())
        return [
            interval
            for interval in intervals
            if interval.start < window.end and interval.end > window.start
        ]
