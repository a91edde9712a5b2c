from __future__ import annotations

import argparse
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from bandwidth_scheduler.calendar_sources.graph_source import GraphCalendarSource
from bandwidth_scheduler.calendar_sources.static_source import StaticCalendarSource
from bandwidth_scheduler.calendar_sources.transform import parse_timestamp
from bandwidth_scheduler.config.settings import load_settings
from bandwidth_scheduler.core.domain.errors import ConfigError
from bandwidth_scheduler.core.events.event_bus import EventBus
from bandwidth_scheduler.core.events.sinks.file_recorder import FileRecorderSink
from bandwidth_scheduler.core.events.sinks.sink_logging import LoggingEventSink
from bandwidth_scheduler.core.ports.clock import SystemClock
from bandwidth_scheduler.provisioning.templates import PayloadTemplates
from bandwidth_scheduler.runtime.context import RunContext, RunSummary, build_monitoring_window
from bandwidth_scheduler.runtime.logging_setup import configure_logging
from bandwidth_scheduler.runtime.prometheus_metrics import PrometheusMetricsClient
from bandwidth_scheduler.runtime.scheduler import ScheduleExecutor, SchedulePlanner

if TYPE_CHECKING:
    from bandwidth_scheduler.config.settings import CalendarSettings, SchedulerSettings
    from bandwidth_scheduler.core.ports.calendar_source import CalendarSource

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def build_calendar_source(settings: CalendarSettings) -> CalendarSource:
    if settings.source == "file":
        if settings.events_path is None:
            raise ConfigError("calendar.events_path is required when calendar.source is \"file\"")
        return StaticCalendarSource(path=settings.events_path)
    return GraphCalendarSource(settings)


def _build_event_bus(settings: SchedulerSettings) -> EventBus:
    sinks = [LoggingEventSink(logging.getLogger("bandwidth_scheduler.events"))]
    if settings.event_log_path is not None:
        sinks.append(FileRecorderSink(settings.event_log_path))
    return EventBus(sinks=sinks)


def _push_metrics(summary: RunSummary) -> None:
    metrics = PrometheusMetricsClient()
    if not metrics.is_enabled():
        return
    # side-effect only
    try:
        metrics.record_run(summary)
        metrics.push_all()
    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.exception("Prometheus push failed")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Apply calendar-scheduled bandwidth changes for the next monitoring window"
    )

    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the settings JSON document.",
    )

    parser.add_argument(
        "--overlay",
        type=Path,
        default=None,
        help="Optional settings document merged over --config (ignored if absent).",
    )

    parser.add_argument(
        "--now",
        type=str,
        default=None,
        help="ISO-8601 window start override, for replaying a known calendar window.",
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--plan",
        action="store_true",
        help="Resolve and log bandwidth actions (no provisioning calls).",
    )
    mode.add_argument(
        "--run",
        action="store_true",
        help="Resolve bandwidth actions and apply each at its scheduled time.",
    )

    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level.")

    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run one scheduler pass and return the process exit code.

    Run metrics are pushed after both --plan and --run; a plan-only run reports
    zero outcomes.
    """
    args = _parse_args(argv)
    started_monotonic = time.monotonic()

    # Window start is taken before anything slow happens.
    try:
        now = parse_timestamp(args.now) if args.now else datetime.now(timezone.utc)
    except ValueError as exc:
        print(f"Error: invalid --now value: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    # ------------------------------------------------------------------
    # Configuration (fatal on error)
    # ------------------------------------------------------------------

    try:
        settings = load_settings(args.config, args.overlay)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log_location, logging.DEBUG if args.verbose else logging.INFO)

    try:
        templates = PayloadTemplates.from_settings(settings.provisioning) if args.run else None
        source = build_calendar_source(settings.calendar)
    except ConfigError as exc:
        LOGGER.critical("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    ctx = RunContext(
        run_id=uuid.uuid4().hex[:12],
        started_at=now,
        window=build_monitoring_window(now, settings.time_window_minutes),
        dry_run=args.plan,
    )

    LOGGER.info(
        "Starting bandwidth scheduler run %s with a monitoring window between %s and %s",
        ctx.run_id,
        ctx.window.start.isoformat(),
        ctx.window.end.isoformat(),
    )

    event_bus = _build_event_bus(settings)
    summary = RunSummary()

    try:
        # --------------------------------------------------------------
        # Retrieval + resolution (any failure here ends the run)
        # --------------------------------------------------------------

        planner = SchedulePlanner(settings=settings, source=source, event_bus=event_bus)
        schedule = planner.plan(ctx)
        summary.actions_resolved = len(schedule.actions)
        summary.intervals_skipped = schedule.intervals_skipped

        if ctx.dry_run:
            LOGGER.info("Plan only: %d bandwidth update(s) resolved", len(schedule.actions))
        else:
            # ----------------------------------------------------------
            # Execution (per-action failures are contained)
            # ----------------------------------------------------------

            if templates is None:
                raise ConfigError("payload templates are required to apply bandwidth updates")
            executor = ScheduleExecutor(
                settings=settings,
                templates=templates,
                clock=SystemClock(),
                event_bus=event_bus,
                max_trigger_wait_seconds=ctx.window_seconds,
            )
            outcomes = executor.execute(schedule.actions)
            summary.record(outcomes)

    except ConfigError as exc:
        LOGGER.critical("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.exception("Unhandled exception when attempting to update bandwidth settings from the calendar")
        return EXIT_FAILURE

    finally:
        summary.duration_seconds = time.monotonic() - started_monotonic
        event_bus.close()

    LOGGER.info(
        "Run %s finished: %d verified, %d applied (pending), %d failed",
        ctx.run_id,
        summary.outcomes.get("verified", 0),
        summary.outcomes.get("applied", 0),
        summary.failed,
    )
    _push_metrics(summary)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
