"""Single bandwidth action lifecycle.

One ActionExecutor owns one BandwidthAction from launch to a terminal state:

    scheduled -> authenticated -> inventory_fetched -> quoted -> ordered
              -> verified | applied
    (any state) -> failed

The executor blocks twice: until the scheduled instant, and for the
verification grace period after the order. No step is retried. Every
error ends the action here and is reported as an ExecutionOutcome with a
failed transition; it never propagates to the dispatcher or to sibling actions.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bandwidth_scheduler.core.domain.action_state_machine import (
    is_terminal_state,
    is_valid_transition,
)
from bandwidth_scheduler.core.domain.errors import ActionError, ProtocolError, VerificationMismatch
from bandwidth_scheduler.core.domain.external_ids import build_external_id
from bandwidth_scheduler.core.events.events import (
    ActionOutcomeEvent,
    ActionStateTransitionEvent,
)

if TYPE_CHECKING:
    from bandwidth_scheduler.core.domain.types import ActionState, BandwidthAction, ServiceStatus
    from bandwidth_scheduler.core.events.event_bus import EventBus
    from bandwidth_scheduler.core.ports.clock import Clock
    from bandwidth_scheduler.core.ports.provisioning_port import ProvisioningPort
    from bandwidth_scheduler.provisioning.templates import PayloadTemplates

LOGGER = logging.getLogger(__name__)

SUCCESS_STATES: frozenset[str] = frozenset({"verified", "applied"})


@dataclass(frozen=True, slots=True)
class ExecutionOutcome:
    """Terminal result of one action.

    action is the last snapshot reached, so a failure after the inventory
    lookup still reports the account and site that were resolved.
    """

    action: BandwidthAction
    final_state: ActionState
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.final_state in SUCCESS_STATES


class ActionExecutor:
    """Drives one action through the provisioning protocol."""

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        action: BandwidthAction,
        *,
        client: ProvisioningPort,
        templates: PayloadTemplates,
        clock: Clock,
        event_bus: EventBus,
        verification_wait_seconds: float,
        max_trigger_wait_seconds: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._action = action
        self._client = client
        self._templates = templates
        self._clock = clock
        self._event_bus = event_bus
        self._verification_wait_seconds = max(0.0, verification_wait_seconds)
        self._max_trigger_wait_seconds = max_trigger_wait_seconds
        self._rng = rng
        self._state: ActionState | None = None

    @property
    def state(self) -> ActionState | None:
        return self._state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> ExecutionOutcome:
        """Execute the action and return its terminal outcome."""
        snapshot = self._action
        self._transition("scheduled")
        LOGGER.info("%s Starting", snapshot.identifier)

        try:
            self._wait_for_trigger(snapshot)

            LOGGER.info("%s Getting token", snapshot.identifier)
            token = self._client.authenticate()
            self._transition("authenticated")

            snapshot = self._fetch_inventory(snapshot, token)
            self._transition("inventory_fetched")

            quote_id = self._create_quote(snapshot, token)
            self._transition("quoted")

            self._submit_order(snapshot, token, quote_id)
            self._transition("ordered")

            final_state = self._verify(snapshot, token)
        except ActionError as exc:
            LOGGER.error(
                "%s Failed in state %s: %s",
                snapshot.identifier,
                self._state,
                exc,
                extra={"resource_key": snapshot.resource_key, "scheduled_for": snapshot.time},
            )
            return self._finish(snapshot, "failed", str(exc))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.exception(
                "%s Unexpected error in state %s",
                snapshot.identifier,
                self._state,
                extra={"resource_key": snapshot.resource_key, "scheduled_for": snapshot.time},
            )
            return self._finish(snapshot, "failed", f"unexpected error: {exc!r}")
        finally:
            close_fn = getattr(self._client, "close", None)
            if callable(close_fn):
                close_fn()

        LOGGER.info("%s Finished", snapshot.identifier)
        return self._finish(snapshot, final_state, None)

    def _transition(self, next_state: ActionState) -> None:
        valid = is_valid_transition(self._state, next_state)
        if not valid:
            LOGGER.warning(
                "%s Unexpected state transition %s -> %s",
                self._action.identifier,
                self._state,
                next_state,
            )

        self._event_bus.emit(
            ActionStateTransitionEvent(
                observed_at=self._clock.now(),
                resource_key=self._action.resource_key,
                scheduled_for=self._action.time,
                prev_state=self._state,
                next_state=next_state,
                valid=valid,
            )
        )
        self._state = next_state

    def _finish(self, snapshot: BandwidthAction, final_state: ActionState, reason: str | None) -> ExecutionOutcome:
        self._transition(final_state)
        if not is_terminal_state(final_state):
            LOGGER.warning("%s Finished in non-terminal state %s", snapshot.identifier, final_state)

        self._event_bus.emit(
            ActionOutcomeEvent(
                observed_at=self._clock.now(),
                resource_key=snapshot.resource_key,
                scheduled_for=snapshot.time,
                bandwidth=snapshot.bandwidth,
                final_state=final_state,
                reason=reason,
            )
        )
        return ExecutionOutcome(action=snapshot, final_state=final_state, reason=reason)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _wait_for_trigger(self, snapshot: BandwidthAction) -> None:
        delay = (snapshot.time - self._clock.now()).total_seconds()

        if delay <= 0:
            LOGGER.info("%s Start time already reached, applying now", snapshot.identifier)
            return

        if self._max_trigger_wait_seconds is not None and delay > self._max_trigger_wait_seconds:
            raise ActionError(
                f"start time is {delay / 60:.1f} minutes away, beyond the "
                f"{self._max_trigger_wait_seconds / 60:.1f} minute wait bound"
            )

        LOGGER.info("%s Waiting %.2f minutes until start time", snapshot.identifier, delay / 60)
        self._clock.sleep(delay)

    def _fetch_inventory(self, snapshot: BandwidthAction, token: str) -> BandwidthAction:
        LOGGER.info("%s Getting service inventory details", snapshot.identifier)
        record = self._client.fetch_inventory(token, snapshot.resource_key)

        return snapshot.model_copy(
            update={
                "status": record.status,
                "account_number": record.account_number,
                "account_name": record.account_name,
                "site_id": record.site_id,
                "partner_id": record.partner_id if record.is_data_center else None,
            }
        )

    def _create_quote(self, snapshot: BandwidthAction, token: str) -> str:
        LOGGER.info("%s Attempting to create quote", snapshot.identifier)
        quote_id = self._client.create_quote(token, self._templates.build_quote(snapshot))
        if not quote_id or not quote_id.strip():
            raise ProtocolError("quote request returned an empty quote id")
        return quote_id

    def _submit_order(self, snapshot: BandwidthAction, token: str, quote_id: str) -> None:
        LOGGER.info("%s Attempting to update order", snapshot.identifier)
        external_id = build_external_id(snapshot.resource_key, snapshot.time, self._rng)
        body = self._templates.build_order(snapshot, quote_id=quote_id, external_id=external_id)
        self._client.submit_order(token, body)

    def _verify(self, snapshot: BandwidthAction, token: str) -> ActionState:
        minutes = self._verification_wait_seconds / 60
        LOGGER.info(
            "%s Waiting %g minute(s) for bandwidth update change to be applied.",
            snapshot.identifier,
            minutes,
        )
        self._clock.sleep(self._verification_wait_seconds)

        status = self._client.check_status(token, snapshot.resource_key)
        return self._evaluate_status(snapshot, status, minutes)

    @staticmethod
    def _evaluate_status(snapshot: BandwidthAction, status: ServiceStatus, minutes: float) -> ActionState:
        if status.is_active():
            actual = status.current_bandwidth
            if actual is not None and actual.casefold() == snapshot.bandwidth.casefold():
                LOGGER.info("%s Bandwidth successfully updated!", snapshot.identifier)
                return "verified"
            raise VerificationMismatch(expected=snapshot.bandwidth, actual=actual, status=status.status)

        if status.is_change_pending():
            LOGGER.info(
                "%s Order update is still underway after %g minute(s)",
                snapshot.identifier,
                minutes,
            )
            return "applied"

        raise VerificationMismatch(
            expected=snapshot.bandwidth,
            actual=status.current_bandwidth,
            status=status.status,
        )
