from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from bandwidth_scheduler.core.domain.types import MonitoringWindow

if TYPE_CHECKING:
    from bandwidth_scheduler.runtime.action_executor import ExecutionOutcome


def floor_to_minute(moment: datetime) -> datetime:
    """Drop seconds and below; calendar entries are never finer than a minute."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.replace(second=0, microsecond=0)


def build_monitoring_window(now: datetime, minutes: float) -> MonitoringWindow:
    start = floor_to_minute(now)
    return MonitoringWindow(start=start, end=start + timedelta(minutes=minutes))


@dataclass(frozen=True, slots=True)
class RunContext:
    """
    Immutable context for a single scheduler run.

    One RunContext == one process invocation == one monitoring window.
    """

    run_id: str
    started_at: datetime
    window: MonitoringWindow
    dry_run: bool = False

    @property
    def window_seconds(self) -> float:
        return (self.window.end - self.window.start).total_seconds()


@dataclass(slots=True)
class RunSummary:
    """Outcome counts for one run, used for the final log line and metrics."""

    actions_resolved: int = 0
    intervals_skipped: int = 0
    outcomes: Counter[str] = field(default_factory=Counter)
    duration_seconds: float = 0.0

    def record(self, outcomes: list[ExecutionOutcome]) -> None:
        for outcome in outcomes:
            self.outcomes[outcome.final_state] += 1

    @property
    def failed(self) -> int:
        return self.outcomes.get("failed", 0)
