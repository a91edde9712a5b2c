"""Core shared data models.

This module defines the canonical Pydantic models used across the system for
calendar intervals, bandwidth actions, and provisioning inventory responses.
All models are immutable: pipeline stages derive new snapshots with
``model_copy(update=...)`` instead of mutating fields in place.
"""

# pylint: disable=missing-class-docstring,missing-function-docstring
from __future__ import annotations

from typing import Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Calendar input
# ---------------------------------------------------------------------------


class Interval(BaseModel):
    """
    A reservation interval taken from the calendar.

    Notes:
    - resource_key identifies the link (IoD service id) the reservation targets.
    - label is the raw subject line; bandwidth values are extracted from it by
      the label validator and are not guaranteed to be present.
    - start < end is NOT enforced here; the resolution engine handles boundaries.
    """

    id: str = Field(..., description="External correlation identifier (calendar item id).")
    resource_key: str = Field(default="", description="Service id the reservation applies to.")
    start: AwareDatetime
    end: AwareDatetime
    priority: int = Field(default=0, ge=0)
    label: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)


class BandwidthLabel(BaseModel):
    """Bandwidth values extracted from an interval label."""

    start_value: str = Field(..., min_length=1)
    end_value: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid", frozen=True)


class MonitoringWindow(BaseModel):
    """Time range in which bandwidth changes are considered."""

    start: AwareDatetime
    end: AwareDatetime

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> MonitoringWindow:
        if self.end < self.start:
            raise ValueError("window end must not be before window start")
        return self


# ---------------------------------------------------------------------------
# Bandwidth actions
# ---------------------------------------------------------------------------


ActionState = Literal[
    "scheduled",
    "authenticated",
    "inventory_fetched",
    "quoted",
    "ordered",
    "verified",
    "applied",
    "failed",
]


class BandwidthAction(BaseModel):
    """
    A single point-in-time bandwidth change.

    The first five fields are fixed by the resolution engine. The remaining
    fields are filled in by the action executor, strictly in pipeline order
    (inventory, then quote, then order), each stage returning a new snapshot.
    """

    resource_key: str = Field(..., min_length=1)
    time: AwareDatetime
    bandwidth: str = Field(..., min_length=1)
    priority: int = Field(default=0, ge=0)
    source_interval_id: str

    # Product status reported by the inventory lookup (e.g. "Active").
    status: str | None = None
    account_number: str | None = None
    account_name: str | None = None
    site_id: str | None = None
    partner_id: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def identifier(self) -> str:
        """Correlation prefix used in every log line about this action."""
        return f"[service={self.resource_key} time={self.time.isoformat()}]"


# ---------------------------------------------------------------------------
# Provisioning responses
# ---------------------------------------------------------------------------


class InventoryRecord(BaseModel):
    """Normalized view of one ``serviceInventory`` entry."""

    status: str
    account_number: str
    account_name: str
    site_id: str
    is_data_center: bool = False
    partner_id: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_partner(self) -> InventoryRecord:
        """A data-center connection must carry the partner id of its facility."""
        if self.is_data_center and not self.partner_id:
            raise ValueError("partner_id is required for data center connections")
        return self


class ServiceStatus(BaseModel):
    """Post-order status check result."""

    status: str
    current_bandwidth: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    def is_active(self) -> bool:
        return self.status.casefold() == "active"

    def is_change_pending(self) -> bool:
        return self.status.casefold() == "change pending"
