"""Calendar boundary.

Implementations return the intervals of one monitoring window, already
transformed and sorted by start time. An absent collection is an empty list.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from bandwidth_scheduler.core.domain.types import Interval, MonitoringWindow


class CalendarSource(Protocol):
    def fetch_intervals(self, window: MonitoringWindow) -> list[Interval]:
        """Return the window's intervals sorted ascending by start."""
