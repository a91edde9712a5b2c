"""
Semantic test: interval labels carry the start and end bandwidth.

Invariant:
A label is valid only if the configured pattern matches it and both named
groups capture a non-empty value. Matching is case-insensitive.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from bandwidth_scheduler.core.domain.errors import ConfigError, LabelValidationError
from bandwidth_scheduler.core.domain.types import Interval
from bandwidth_scheduler.core.resolution.label_validator import LabelValidator, compile_label_pattern


def _interval(label: str, resource_key: str = "SVC-1") -> Interval:
    return Interval(
        id="cal-1",
        resource_key=resource_key,
        start=datetime(2024, 9, 12, 10, tzinfo=timezone.utc),
        end=datetime(2024, 9, 12, 11, tzinfo=timezone.utc),
        label=label,
    )


def test_valid_label_yields_both_values(validator) -> None:
    label = validator.parse(_interval("BW 1000M-100M"))

    assert label.start_value == "1000M"
    assert label.end_value == "100M"


def test_matching_ignores_case(validator) -> None:
    assert validator.parse(_interval("bw 10g-1g")).start_value == "10g"


@pytest.mark.parametrize("label", ["Team lunch", "BW 100", "BW -200", ""])
def test_unusable_labels_are_rejected(validator, label) -> None:
    with pytest.raises(LabelValidationError):
        validator.parse(_interval(label))
    assert validator.matches(_interval(label)) is False


def test_missing_service_is_rejected(validator) -> None:
    with pytest.raises(LabelValidationError):
        validator.parse(_interval("BW 100-200", resource_key=""))


def test_empty_capture_is_rejected() -> None:
    lenient = LabelValidator(r"^BW (?P<startVal>\w*)-(?P<endVal>\w*)$")

    with pytest.raises(LabelValidationError):
        lenient.parse(_interval("BW -200"))


def test_unset_pattern_rejects_every_label() -> None:
    with pytest.raises(LabelValidationError):
        LabelValidator(None).parse(_interval("BW 100-200"))


def test_pattern_without_named_groups_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        compile_label_pattern(r"^BW (\w+)-(\w+)$")


def test_malformed_pattern_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        LabelValidator(r"^BW (?P<startVal>\w+")
