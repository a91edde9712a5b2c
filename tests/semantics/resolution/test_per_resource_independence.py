"""
Semantic test: services are resolved independently.

Invariant:
Reservations on different services never arbitrate against each other, and
each service's intervals are ordered by start before resolution.
"""

from __future__ import annotations

from datetime import datetime, timezone

from bandwidth_scheduler.core.resolution.resolver import group_by_resource_key, resolve_schedule


def _utc(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 9, 12, hour, minute, tzinfo=timezone.utc)


def test_same_time_on_two_services_keeps_both(make_interval, window, validator) -> None:
    intervals = [
        make_interval("A", _utc(10), _utc(11), resource_key="SVC-1", priority=5),
        make_interval("B", _utc(10), _utc(11), resource_key="SVC-2", label="BW 300-400"),
    ]

    schedule = resolve_schedule(intervals, window, validator)

    by_service = {}
    for action in schedule.actions:
        by_service.setdefault(action.resource_key, []).append((action.time, action.bandwidth))

    assert by_service == {
        "SVC-1": [(_utc(10), "100"), (_utc(11), "200")],
        "SVC-2": [(_utc(10), "300"), (_utc(11), "400")],
    }
    assert schedule.per_resource == {"SVC-1": 2, "SVC-2": 2}
    assert schedule.intervals_received == 2
    assert schedule.intervals_skipped == 0


def test_unsorted_input_is_ordered_per_service(make_interval, window, validator) -> None:
    intervals = [
        make_interval("late", _utc(11), _utc(12), label="BW 300-400"),
        make_interval("early", _utc(10), _utc(11), label="BW 100-200"),
    ]

    schedule = resolve_schedule(intervals, window, validator)

    assert [(a.time, a.bandwidth) for a in schedule.actions] == [
        (_utc(10), "100"),
        (_utc(11), "300"),
        (_utc(12), "400"),
    ]


def test_grouping_preserves_first_appearance_order(make_interval) -> None:
    intervals = [
        make_interval("A", _utc(10), _utc(11), resource_key="SVC-2"),
        make_interval("B", _utc(10), _utc(11), resource_key="SVC-1"),
        make_interval("C", _utc(12), _utc(13), resource_key="SVC-2"),
    ]

    groups = group_by_resource_key(intervals)

    assert list(groups) == ["SVC-2", "SVC-1"]
    assert [i.id for i in groups["SVC-2"]] == ["A", "C"]


def test_empty_schedule(window, validator) -> None:
    schedule = resolve_schedule(None, window, validator)

    assert schedule.actions == []
    assert schedule.intervals_received == 0
