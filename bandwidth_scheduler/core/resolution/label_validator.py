"""Interval label validation.

A calendar entry only describes a bandwidth change when its subject matches
the configured pattern. The pattern must define two named groups:

    startVal   bandwidth to apply when the reservation starts
    endVal     bandwidth to restore when the reservation ends

Example pattern: ``^BW\\s+(?P<startVal>\\w+)-(?P<endVal>\\w+)$``
"""

from __future__ import annotations

import re

from bandwidth_scheduler.core.domain.errors import ConfigError, LabelValidationError
from bandwidth_scheduler.core.domain.types import BandwidthLabel, Interval

START_GROUP = "startVal"
END_GROUP = "endVal"


def compile_label_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a label pattern, checking it exposes both bandwidth groups."""
    try:
        compiled = re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        raise ConfigError(f"invalid label pattern {pattern!r}: {exc}") from exc

    missing = {START_GROUP, END_GROUP} - set(compiled.groupindex)
    if missing:
        raise ConfigError(
            f"label pattern {pattern!r} is missing named group(s): {', '.join(sorted(missing))}"
        )
    return compiled


class LabelValidator:
    """Extracts start/end bandwidth values from interval labels.

    An unset pattern makes every interval invalid rather than raising, so a
    misconfigured run resolves to zero actions instead of guessing.
    """

    def __init__(self, pattern: str | None) -> None:
        self._pattern = compile_label_pattern(pattern) if pattern else None

    def parse(self, interval: Interval) -> BandwidthLabel:
        """Return the bandwidth values encoded in the interval's label.

        Raises:
            LabelValidationError: pattern unset, empty label or resource key,
            no match, or a matched group is empty.
        """
        if self._pattern is None:
            raise LabelValidationError("no label pattern configured")
        if not interval.label:
            raise LabelValidationError(f"interval {interval.id!r} has an empty label")
        if not interval.resource_key:
            raise LabelValidationError(f"interval {interval.id!r} has no resource key")

        match = self._pattern.search(interval.label)
        if match is None:
            raise LabelValidationError(
                f"label {interval.label!r} does not match {self._pattern.pattern!r}"
            )

        start_value = match.group(START_GROUP) or ""
        end_value = match.group(END_GROUP) or ""
        if not start_value or not end_value:
            raise LabelValidationError(
                f"label {interval.label!r} matched without both bandwidth values"
            )
        return BandwidthLabel(start_value=start_value, end_value=end_value)

    def matches(self, interval: Interval) -> bool:
        """Return True if parse() would succeed."""
        try:
            self.parse(interval)
        except LabelValidationError:
            return False
        return True
