"""
Semantic test: ordered -> applied.

Invariant:
If the service still reports a pending change after the grace period, the
order is treated as accepted: the action ends in "applied" without polling
again.
"""

from __future__ import annotations

from datetime import datetime, timezone

from bandwidth_scheduler.core.domain.types import ServiceStatus
from bandwidth_scheduler.core.events.sinks.null_event_bus import NullEventBus
from bandwidth_scheduler.runtime.action_executor import ActionExecutor


def test_change_pending_ends_applied(make_action, make_client, fake_clock, payload_templates, rng) -> None:
    client = make_client(status=ServiceStatus(status="Change Pending", current_bandwidth="100"))
    action = make_action(datetime(2024, 9, 12, 10, tzinfo=timezone.utc), bandwidth="300")

    outcome = ActionExecutor(
        action,
        client=client,
        templates=payload_templates,
        clock=fake_clock,
        event_bus=NullEventBus(),
        verification_wait_seconds=120,
        rng=rng,
    ).run()

    assert outcome.final_state == "applied"
    assert outcome.ok
    assert client.calls.count("check_status") == 1
