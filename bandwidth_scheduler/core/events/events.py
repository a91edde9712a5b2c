"""
Domain event models.

These events represent immutable facts observed while resolving and executing
bandwidth actions. They are consumed by loggers, recorders, and metrics.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class ActionStateTransitionEvent:
    observed_at: datetime
    resource_key: str
    scheduled_for: datetime
    prev_state: str | None
    next_state: str
    valid: bool


@dataclass(slots=True)
class ActionOutcomeEvent:
    observed_at: datetime
    resource_key: str
    scheduled_for: datetime
    bandwidth: str

    final_state: str
    reason: str | None


@dataclass(slots=True)
class ResolutionSummaryEvent:
    observed_at: datetime
    window_start: datetime
    window_end: datetime

    intervals_received: int
    intervals_skipped: int
    actions_resolved: int

    per_resource: dict[str, int]
