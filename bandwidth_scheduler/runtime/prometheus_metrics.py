from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

if TYPE_CHECKING:
    from bandwidth_scheduler.runtime.context import RunSummary

LOGGER = logging.getLogger(__name__)

JOB_NAME = "bandwidth_scheduler"
PUSHGATEWAY_URL_ENV = "PROMETHEUS_PUSHGATEWAY_URL"
GROUPING_KEY_ENV = "PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON"

OUTCOME_STATES: tuple[str, ...] = ("verified", "applied", "failed")


class PrometheusMetricsClient:
    """Pushgateway client for one scheduler batch run.

    Expected environment:
    - PROMETHEUS_PUSHGATEWAY_URL: URL to the Pushgateway.
      Example: http://pushgateway.monitoring.svc.cluster.local:9091

    Optional:
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: JSON object of string labels
      used as grouping key, e.g. {"instance": "scheduler-east"}

    A run is a short-lived process, so gauges hold the values of the latest
    run and are replaced on every push.
    """

    def __init__(self, *, job: str = JOB_NAME) -> None:
        self._job = job
        self._pushgateway_url = os.environ.get(PUSHGATEWAY_URL_ENV)
        self._grouping_key = _grouping_key_from_env()
        self._registry = CollectorRegistry()

        self._actions_resolved = Gauge(
            "bandwidth_scheduler_actions_resolved",
            "Bandwidth actions resolved for the monitoring window",
            registry=self._registry,
        )
        self._intervals_skipped = Gauge(
            "bandwidth_scheduler_intervals_skipped",
            "Calendar intervals skipped because their label did not validate",
            registry=self._registry,
        )
        self._actions = Gauge(
            "bandwidth_scheduler_actions",
            "Executed bandwidth actions by terminal state",
            labelnames=["outcome"],
            registry=self._registry,
        )
        self._run_duration = Gauge(
            "bandwidth_scheduler_run_duration_seconds",
            "Wall time of the scheduler run",
            registry=self._registry,
        )

    def is_enabled(self) -> bool:
        return self._pushgateway_url is not None

    def record_run(self, summary: RunSummary) -> None:
        """Stage the gauges describing one scheduler run."""
        self._actions_resolved.set(summary.actions_resolved)
        self._intervals_skipped.set(summary.intervals_skipped)
        for state in OUTCOME_STATES:
            self._actions.labels(outcome=state).set(summary.outcomes.get(state, 0))
        self._run_duration.set(summary.duration_seconds)

    def push_all(self) -> None:
        if not self._pushgateway_url:
            return

        push_to_gateway(
            gateway=self._pushgateway_url,
            job=self._job,
            registry=self._registry,
            grouping_key=self._grouping_key,
        )

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": self._job, "grouping_key": self._grouping_key},
        )


def _grouping_key_from_env() -> dict[str, str]:
    raw = os.environ.get(GROUPING_KEY_ENV)
    if not raw:
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        LOGGER.warning("Invalid %s; ignoring", GROUPING_KEY_ENV)
        return {}

    if not isinstance(data, dict):
        return {}

    # Non-string values cannot be URL path segments.
    return {key: value for key, value in data.items() if isinstance(key, str) and isinstance(value, str)}
