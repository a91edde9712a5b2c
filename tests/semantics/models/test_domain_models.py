"""
Semantic test: domain models are immutable and self-validating.

Invariant:
Models reject unknown fields and naive timestamps. Pipeline stages derive new
snapshots instead of mutating in place.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from bandwidth_scheduler.core.domain.types import (
    BandwidthAction,
    InventoryRecord,
    Interval,
    MonitoringWindow,
    ServiceStatus,
)

T0 = datetime(2024, 9, 12, 10, tzinfo=timezone.utc)


def test_interval_rejects_naive_times() -> None:
    with pytest.raises(PydanticValidationError):
        Interval(id="x", start=datetime(2024, 9, 12, 10), end=T0)


def test_interval_rejects_negative_priority() -> None:
    with pytest.raises(PydanticValidationError):
        Interval(id="x", start=T0, end=T0, priority=-1)


def test_interval_rejects_extra_fields() -> None:
    with pytest.raises(PydanticValidationError):
        Interval.model_validate({"id": "x", "start": T0, "end": T0, "unexpected": 1})


def test_window_end_before_start_rejected() -> None:
    with pytest.raises(PydanticValidationError):
        MonitoringWindow(start=T0, end=T0 - timedelta(minutes=1))


def test_action_is_frozen_and_copied(make_action) -> None:
    action = make_action()

    with pytest.raises(PydanticValidationError):
        action.status = "Active"

    enriched = action.model_copy(update={"status": "Active", "site_id": "SITE-9"})
    assert action.status is None
    assert enriched.site_id == "SITE-9"
    assert enriched.time == action.time


def test_action_identifier_names_service_and_time(make_action) -> None:
    action = make_action(T0)

    assert action.identifier == "[service=SVC-1 time=2024-09-12T10:00:00+00:00]"


def test_action_requires_bandwidth() -> None:
    with pytest.raises(PydanticValidationError):
        BandwidthAction(resource_key="SVC-1", time=T0, bandwidth="", source_interval_id="c")


def test_data_center_inventory_requires_partner() -> None:
    with pytest.raises(PydanticValidationError):
        InventoryRecord(
            status="Active",
            account_number="A",
            account_name="N",
            site_id="S",
            is_data_center=True,
        )


def test_service_status_comparisons_ignore_case() -> None:
    assert ServiceStatus(status="ACTIVE").is_active()
    assert ServiceStatus(status="Change Pending").is_change_pending()
    assert not ServiceStatus(status="Suspended").is_active()
