"""
Semantic test: data-center connections carry a partner id in the quote.

Invariant:
The partner id is added to the quote body only when inventory reports the
service as a data-center connection with a non-empty partner id.
"""

from __future__ import annotations

from datetime import datetime, timezone

from bandwidth_scheduler.core.domain.types import InventoryRecord
from bandwidth_scheduler.core.events.sinks.null_event_bus import NullEventBus
from bandwidth_scheduler.runtime.action_executor import ActionExecutor


def _record(*, is_data_center: bool, partner_id: str | None) -> InventoryRecord:
    return InventoryRecord(
        status="Active",
        account_number="ACC-1",
        account_name="Acme Networks",
        site_id="SITE-9",
        is_data_center=is_data_center,
        partner_id=partner_id,
    )


def _run(client, make_action, fake_clock, payload_templates):
    return ActionExecutor(
        make_action(datetime(2024, 9, 12, 10, tzinfo=timezone.utc)),
        client=client,
        templates=payload_templates,
        clock=fake_clock,
        event_bus=NullEventBus(),
        verification_wait_seconds=0,
    ).run()


def test_data_center_quote_includes_partner(make_action, make_client, fake_clock, payload_templates) -> None:
    client = make_client(inventory=_record(is_data_center=True, partner_id="P-77"))

    outcome = _run(client, make_action, fake_clock, payload_templates)

    assert client.quote_bodies[0]["PartnerId"] == "P-77"
    assert outcome.action.partner_id == "P-77"


def test_non_data_center_quote_has_no_partner(make_action, make_client, fake_clock, payload_templates) -> None:
    client = make_client(inventory=_record(is_data_center=False, partner_id="P-77"))

    outcome = _run(client, make_action, fake_clock, payload_templates)

    assert "PartnerId" not in client.quote_bodies[0]
    assert outcome.action.partner_id is None
