"""
Semantic test: run metrics are pushed best-effort.

Invariant:
Without a Pushgateway URL the metrics client is inert. With one, a run's
outcome counts are staged as gauges and pushed under the scheduler job.
"""

from __future__ import annotations

from collections import Counter

from bandwidth_scheduler.runtime import prometheus_metrics
from bandwidth_scheduler.runtime.context import RunSummary
from bandwidth_scheduler.runtime.prometheus_metrics import PrometheusMetricsClient


def _summary() -> RunSummary:
    return RunSummary(
        actions_resolved=4,
        intervals_skipped=1,
        outcomes=Counter({"verified": 2, "applied": 1, "failed": 1}),
        duration_seconds=12.5,
    )


def test_disabled_without_gateway(monkeypatch) -> None:
    monkeypatch.delenv("PROMETHEUS_PUSHGATEWAY_URL", raising=False)
    pushed = []
    monkeypatch.setattr(prometheus_metrics, "push_to_gateway", lambda **kwargs: pushed.append(kwargs))

    client = PrometheusMetricsClient()
    client.record_run(_summary())
    client.push_all()

    assert not client.is_enabled()
    assert pushed == []


def test_outcomes_pushed_as_gauges(monkeypatch) -> None:
    monkeypatch.setenv("PROMETHEUS_PUSHGATEWAY_URL", "http://pushgateway:9091")
    monkeypatch.setenv("PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON", '{"instance": "east", "n": 1}')
    pushed = []
    monkeypatch.setattr(prometheus_metrics, "push_to_gateway", lambda **kwargs: pushed.append(kwargs))

    client = PrometheusMetricsClient()
    client.record_run(_summary())
    client.push_all()

    (push,) = pushed
    assert push["job"] == "bandwidth_scheduler"
    assert push["grouping_key"] == {"instance": "east"}

    registry = push["registry"]
    assert registry.get_sample_value("bandwidth_scheduler_actions_resolved") == 4
    assert registry.get_sample_value("bandwidth_scheduler_actions", {"outcome": "verified"}) == 2
    assert registry.get_sample_value("bandwidth_scheduler_actions", {"outcome": "failed"}) == 1
    assert registry.get_sample_value("bandwidth_scheduler_run_duration_seconds") == 12.5
