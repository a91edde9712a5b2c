"""
Scheduler composition.

Wires calendar source, resolution engine, and dispatcher for one monitoring
window. The entrypoint handles process concerns (arguments, logging, exit
codes); everything here takes its collaborators explicitly so a full run can
be driven with fakes.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import TYPE_CHECKING

from bandwidth_scheduler.core.events.events import ResolutionSummaryEvent
from bandwidth_scheduler.core.resolution.label_validator import LabelValidator
from bandwidth_scheduler.core.resolution.resolver import ResolvedSchedule, resolve_schedule
from bandwidth_scheduler.provisioning.client import ProvisioningClient
from bandwidth_scheduler.runtime.action_executor import ActionExecutor, ExecutionOutcome
from bandwidth_scheduler.runtime.dispatcher import Dispatcher

if TYPE_CHECKING:
    from bandwidth_scheduler.config.settings import SchedulerSettings
    from bandwidth_scheduler.core.domain.types import BandwidthAction
    from bandwidth_scheduler.core.events.event_bus import EventBus
    from bandwidth_scheduler.core.ports.calendar_source import CalendarSource
    from bandwidth_scheduler.core.ports.clock import Clock
    from bandwidth_scheduler.core.ports.provisioning_port import ProvisioningPort
    from bandwidth_scheduler.provisioning.templates import PayloadTemplates
    from bandwidth_scheduler.runtime.context import RunContext

LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[[], "ProvisioningPort"]


class SchedulePlanner:
    """
    Reads the window's reservations and resolves them into actions.

    One planner instance == one monitoring window.
    """

    def __init__(
        self,
        *,
        settings: SchedulerSettings,
        source: CalendarSource,
        event_bus: EventBus,
    ) -> None:
        self._settings = settings
        self._source = source
        self._event_bus = event_bus

    def plan(self, ctx: RunContext) -> ResolvedSchedule:
        LOGGER.info("Retrieving calendar events")
        intervals = self._source.fetch_intervals(ctx.window)

        LOGGER.info("Building list of bandwidth change actions for each calendar event")
        validator = LabelValidator(self._settings.subject_regex)
        schedule = resolve_schedule(intervals, ctx.window, validator)

        self._event_bus.emit(
            ResolutionSummaryEvent(
                observed_at=ctx.started_at,
                window_start=ctx.window.start,
                window_end=ctx.window.end,
                intervals_received=schedule.intervals_received,
                intervals_skipped=schedule.intervals_skipped,
                actions_resolved=len(schedule.actions),
                per_resource=dict(schedule.per_resource),
            )
        )

        for action in schedule.actions:
            LOGGER.info(
                "%s Planned bandwidth %s (priority %d, calendar item %s)",
                action.identifier,
                action.bandwidth,
                action.priority,
                action.source_interval_id,
            )
        return schedule


class ScheduleExecutor:
    """
    Executes resolved actions concurrently.

    Every action gets its own provisioning client (and HTTP session); the
    client is closed by the action executor when it finishes.
    """

    # pylint: disable=too-many-arguments

    def __init__(
        self,
        *,
        settings: SchedulerSettings,
        templates: PayloadTemplates,
        clock: Clock,
        event_bus: EventBus,
        client_factory: ClientFactory | None = None,
        max_trigger_wait_seconds: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._templates = templates
        self._clock = clock
        self._event_bus = event_bus
        self._client_factory = client_factory or self._default_client
        self._max_trigger_wait_seconds = max_trigger_wait_seconds
        self._rng = rng

    def _default_client(self) -> ProvisioningPort:
        return ProvisioningClient(self._settings.provisioning)

    def _build_executor(self, action: BandwidthAction) -> ActionExecutor:
        return ActionExecutor(
            action,
            client=self._client_factory(),
            templates=self._templates,
            clock=self._clock,
            event_bus=self._event_bus,
            verification_wait_seconds=self._settings.provisioning.wait_for_updates_minutes * 60,
            max_trigger_wait_seconds=self._max_trigger_wait_seconds,
            rng=self._rng,
        )

    def execute(self, actions: list[BandwidthAction]) -> list[ExecutionOutcome]:
        LOGGER.info("Queueing up %d bandwidth update(s) for this time window", len(actions))
        if not actions:
            return []
        return Dispatcher(self._build_executor).dispatch(actions)
