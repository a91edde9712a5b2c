"""Shared fakes for the semantic test suite.

Nothing here touches the network or sleeps: the provisioning API and the
wall clock are replaced by in-memory doubles.
"""

# pylint: disable=missing-function-docstring,redefined-outer-name
from __future__ import annotations

import random
import threading
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from bandwidth_scheduler.core.domain.errors import AuthError
from bandwidth_scheduler.core.domain.types import (
    BandwidthAction,
    InventoryRecord,
    Interval,
    MonitoringWindow,
    ServiceStatus,
)
from bandwidth_scheduler.core.resolution.label_validator import LabelValidator
from bandwidth_scheduler.provisioning.templates import (
    ORDER_TOKENS,
    QUOTE_TOKENS,
    PayloadTemplate,
    PayloadTemplates,
)

LABEL_PATTERN = r"^BW\s+(?P<startVal>\w+)-(?P<endVal>\w+)$"

QUOTE_TEMPLATE = """
{
  "customerNumber": "{Customer Number}",
  "site": "{MasterSiteId}",
  "bandwidth": "{Bandwidth}"
}
"""

ORDER_TEMPLATE = """
{
  "quoteId": "{QuoteId}",
  "serviceId": "{ServiceId}",
  "account": {"id": "{AccountNumber}", "name": "{AccountName}"},
  "calendarItemId": "{CalendarItemId}",
  "externalId": "{ExternalId}"
}
"""


def utc(hour: int, minute: int = 0, day: int = 12) -> datetime:
    return datetime(2024, 9, day, hour, minute, tzinfo=timezone.utc)


class FakeClock:
    """Clock whose sleep() advances time instantly."""

    def __init__(self, start: datetime) -> None:
        self._now = start
        self._lock = threading.Lock()
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            if seconds > 0:
                self._now += timedelta(seconds=seconds)


class FakeProvisioningClient:
    """Scripted provisioning API double that records every call."""

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        *,
        inventory: InventoryRecord | None = None,
        quote_id: str = "Q-1",
        status: ServiceStatus | None = None,
        fail_auth: bool = False,
        inventory_error: Exception | None = None,
        order_error: Exception | None = None,
    ) -> None:
        self.inventory = inventory or InventoryRecord(
            status="Active",
            account_number="ACC-1",
            account_name="Acme Networks",
            site_id="SITE-9",
        )
        self.quote_id = quote_id
        self.status = status
        self.fail_auth = fail_auth
        self.inventory_error = inventory_error
        self.order_error = order_error

        self.calls: list[str] = []
        self.tokens_seen: list[str] = []
        self.quote_bodies: list[dict[str, Any]] = []
        self.order_bodies: list[dict[str, Any]] = []
        self.closed = False

    def authenticate(self) -> str:
        self.calls.append("authenticate")
        if self.fail_auth:
            raise AuthError("failed to get token: HTTP 401")
        return "token-abc"

    def fetch_inventory(self, token: str, service_id: str) -> InventoryRecord:
        self.calls.append("fetch_inventory")
        self.tokens_seen.append(token)
        if self.inventory_error is not None:
            raise self.inventory_error
        return self.inventory

    def create_quote(self, token: str, body: dict[str, Any]) -> str:
        self.calls.append("create_quote")
        self.tokens_seen.append(token)
        self.quote_bodies.append(body)
        return self.quote_id

    def submit_order(self, token: str, body: dict[str, Any]) -> None:
        self.calls.append("submit_order")
        self.tokens_seen.append(token)
        self.order_bodies.append(body)
        if self.order_error is not None:
            raise self.order_error

    def check_status(self, token: str, service_id: str) -> ServiceStatus:
        self.calls.append("check_status")
        self.tokens_seen.append(token)
        return self.status or ServiceStatus(status="Active", current_bandwidth="300")

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def validator() -> LabelValidator:
    return LabelValidator(LABEL_PATTERN)


@pytest.fixture
def window() -> MonitoringWindow:
    return MonitoringWindow(start=utc(9), end=utc(13))


@pytest.fixture
def make_interval():
    def _make(
        interval_id: str,
        start: datetime,
        end: datetime,
        *,
        label: str = "BW 100-200",
        priority: int = 0,
        resource_key: str = "SVC-1",
    ) -> Interval:
        return Interval(
            id=interval_id,
            resource_key=resource_key,
            start=start,
            end=end,
            priority=priority,
            label=label,
        )

    return _make


@pytest.fixture
def make_action():
    def _make(
        time: datetime | None = None,
        *,
        bandwidth: str = "300",
        resource_key: str = "SVC-1",
        priority: int = 0,
    ) -> BandwidthAction:
        return BandwidthAction(
            resource_key=resource_key,
            time=time or utc(10),
            bandwidth=bandwidth,
            priority=priority,
            source_interval_id="cal-1",
        )

    return _make


@pytest.fixture
def payload_templates() -> PayloadTemplates:
    return PayloadTemplates(
        quote=PayloadTemplate(QUOTE_TEMPLATE, name="quote", tokens=QUOTE_TOKENS),
        order=PayloadTemplate(ORDER_TEMPLATE, name="order", tokens=ORDER_TOKENS),
        customer_number="123456",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(utc(10))


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)


@pytest.fixture
def make_client():
    return FakeProvisioningClient


@pytest.fixture
def make_clock():
    return FakeClock
