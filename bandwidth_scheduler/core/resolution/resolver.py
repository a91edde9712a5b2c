"""Interval resolution engine.

Turns calendar reservations into the minimal ordered list of bandwidth
changes per service. The pass is single and forward-only: it relies on the
intervals of one service being sorted ascending by start, so the last entry
of the accumulator is always the latest change seen so far.

Edge rules, applied per interval after label validation:

Start edge (never when start >= window.end)
- accumulator empty                   -> append if start >= window.start
- start == last.time                  -> replace last (back-to-back collapse)
- start >  last.time                  -> append
- otherwise (overlap from behind)     -> replace last if strictly higher priority

End edge (only when window.start <= end <= window.end)
- accumulator empty or end > last.time -> append
- otherwise                            -> replace last if strictly higher priority

Equal priority never displaces; an equal start time always does.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from bandwidth_scheduler.core.domain.errors import LabelValidationError
from bandwidth_scheduler.core.domain.types import (
    BandwidthAction,
    Interval,
    MonitoringWindow,
)
from bandwidth_scheduler.core.resolution.label_validator import LabelValidator

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ResolvedSchedule:
    """Result of resolving every service in one monitoring window."""

    actions: list[BandwidthAction] = field(default_factory=list)
    intervals_received: int = 0
    intervals_skipped: int = 0
    per_resource: dict[str, int] = field(default_factory=dict)


def _edge_action(interval: Interval, *, is_start: bool, bandwidth: str) -> BandwidthAction:
    return BandwidthAction(
        resource_key=interval.resource_key,
        time=interval.start if is_start else interval.end,
        bandwidth=bandwidth,
        priority=interval.priority,
        source_interval_id=interval.id,
    )


def _displace(actions: list[BandwidthAction], edge: BandwidthAction) -> None:
    """Replace the last action with a higher-priority edge.

    Trailing actions at or after the edge are superseded as well, so the
    accumulator stays strictly increasing in time.
    """
    actions.pop()
    while actions and actions[-1].time >= edge.time:
        actions.pop()
    actions.append(edge)


def _apply_start_edge(
    actions: list[BandwidthAction],
    edge: BandwidthAction,
    window: MonitoringWindow,
) -> None:
    if not actions:
        # No action is synthesized for a reservation already underway.
        if edge.time >= window.start:
            actions.append(edge)
        return

    last = actions[-1]
    if edge.time == last.time:
        actions[-1] = edge
    elif edge.time > last.time:
        actions.append(edge)
    elif edge.priority > last.priority:
        _displace(actions, edge)
    else:
        LOGGER.debug(
            "Dropping start edge of %s at %s: priority %d does not beat %d",
            edge.source_interval_id,
            edge.time.isoformat(),
            edge.priority,
            last.priority,
        )


def _apply_end_edge(actions: list[BandwidthAction], edge: BandwidthAction) -> None:
    if not actions or edge.time > actions[-1].time:
        actions.append(edge)
        return

    last = actions[-1]
    if edge.priority > last.priority:
        _displace(actions, edge)
    else:
        LOGGER.debug(
            "Dropping end edge of %s at %s: priority %d does not beat %d",
            edge.source_interval_id,
            edge.time.isoformat(),
            edge.priority,
            last.priority,
        )


def _resolve_group(
    intervals: Iterable[Interval] | None,
    window: MonitoringWindow,
    validator: LabelValidator,
) -> tuple[list[BandwidthAction], int]:
    actions: list[BandwidthAction] = []
    skipped = 0
    if intervals is None:
        return actions, skipped

    for interval in intervals:
        try:
            label = validator.parse(interval)
        except LabelValidationError as exc:
            skipped += 1
            LOGGER.warning(
                "Event with subject %r doesn't meet expected form: %s",
                interval.label,
                exc,
                extra={"interval_id": interval.id, "resource_key": interval.resource_key},
            )
            continue

        if interval.start < window.end:
            _apply_start_edge(
                actions,
                _edge_action(interval, is_start=True, bandwidth=label.start_value),
                window,
            )

        # Changes after the window are picked up by a later run.
        if window.start <= interval.end <= window.end:
            _apply_end_edge(
                actions,
                _edge_action(interval, is_start=False, bandwidth=label.end_value),
            )

    return actions, skipped


def resolve_actions(
    intervals: Sequence[Interval] | None,
    window: MonitoringWindow,
    validator: LabelValidator,
) -> list[BandwidthAction]:
    """Resolve one service's start-sorted intervals into bandwidth actions.

    Precondition: every interval shares a resource key and the sequence is
    sorted ascending by start. None and [] both resolve to [].
    """
    actions, _ = _resolve_group(intervals, window, validator)
    return actions


def group_by_resource_key(intervals: Iterable[Interval]) -> dict[str, list[Interval]]:
    """Group intervals by service, preserving first-appearance order."""
    groups: dict[str, list[Interval]] = {}
    for interval in intervals:
        groups.setdefault(interval.resource_key, []).append(interval)
    return groups


def resolve_schedule(
    intervals: Sequence[Interval] | None,
    window: MonitoringWindow,
    validator: LabelValidator,
) -> ResolvedSchedule:
    """Resolve every service in the window independently.

    Two reservations at the same time on different services never conflict,
    so each service gets its own accumulator. Groups are stable-sorted by
    start to establish the engine's precondition.
    """
    schedule = ResolvedSchedule()
    if not intervals:
        return schedule

    schedule.intervals_received = len(intervals)

    for resource_key, group in group_by_resource_key(intervals).items():
        ordered = sorted(group, key=lambda item: item.start)
        actions, skipped = _resolve_group(ordered, window, validator)

        schedule.actions.extend(actions)
        schedule.intervals_skipped += skipped
        schedule.per_resource[resource_key] = len(actions)

    return schedule
