"""
Semantic test: back-to-back reservations collapse.

Invariant:
When one reservation starts exactly when the previous one ends, the end
change of the first is replaced by the start change of the second; the link
is never switched to the "between" value for zero time.
"""

from __future__ import annotations

from datetime import datetime, timezone

from bandwidth_scheduler.core.resolution.resolver import resolve_actions


def _utc(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 9, 12, hour, minute, tzinfo=timezone.utc)


def test_adjacent_reservations_share_one_change(make_interval, window, validator) -> None:
    intervals = [
        make_interval("A", _utc(10), _utc(11), label="BW 100-200"),
        make_interval("B", _utc(11), _utc(12), label="BW 300-400"),
    ]

    actions = resolve_actions(intervals, window, validator)

    assert [a.time for a in actions] == [_utc(10), _utc(11), _utc(12)]
    assert [a.bandwidth for a in actions] == ["100", "300", "400"]
    assert [a.source_interval_id for a in actions] == ["A", "B", "B"]


def test_equal_start_replaces_regardless_of_priority(make_interval, window, validator) -> None:
    # A higher-priority end is still replaced by a lower-priority start at the same instant.
    intervals = [
        make_interval("A", _utc(10), _utc(11), label="BW 100-200", priority=3),
        make_interval("B", _utc(11), _utc(12), label="BW 300-400", priority=0),
    ]

    actions = resolve_actions(intervals, window, validator)

    assert [(a.time, a.bandwidth) for a in actions] == [
        (_utc(10), "100"),
        (_utc(11), "300"),
        (_utc(12), "400"),
    ]
