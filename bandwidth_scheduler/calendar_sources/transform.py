"""Raw calendar event -> Interval transformation.

Raw events follow the Graph calendar-view shape:

    {
      "iCalUId": "040000008200E0...",
      "subject": "BW 100-200",
      "start": {"dateTime": "2024-09-12T14:00:00.0000000", "timeZone": "UTC"},
      "end":   {"dateTime": "2024-09-12T15:00:00.0000000", "timeZone": "UTC"},
      "location": {"displayName": "SVC-12345"},
      "categories": ["High", "Urgent"]
    }

The location display name is the service id and the number of categories is
the priority.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError

from bandwidth_scheduler.core.domain.types import Interval

LOGGER = logging.getLogger(__name__)

# Graph returns seven fractional digits; datetime accepts at most six.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: str, time_zone: str | None = None) -> datetime:
    """Parse an ISO-8601 timestamp and normalize it to UTC.

    Naive values are interpreted in ``time_zone`` (an IANA name), defaulting
    to UTC.
    """
    text = _FRACTION_RE.sub(r"\1", value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        tz = timezone.utc
        if time_zone and time_zone.upper() != "UTC":
            try:
                tz = ZoneInfo(time_zone)
            except ZoneInfoNotFoundError as exc:
                raise ValueError(f"unknown time zone {time_zone!r}") from exc
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc)


def _date_time(raw: Mapping[str, Any], key: str) -> datetime:
    node = raw.get(key)
    if isinstance(node, Mapping):
        return parse_timestamp(str(node["dateTime"]), node.get("timeZone"))
    if isinstance(node, str):
        return parse_timestamp(node)
    raise ValueError(f"event has no {key} time")


def transform_event(raw: Mapping[str, Any]) -> Interval:
    """Convert one raw event. Raises ValueError / KeyError on unusable events."""
    location = raw.get("location") or {}
    categories = raw.get("categories") or []

    return Interval(
        id=str(raw.get("iCalUId") or raw.get("id") or ""),
        resource_key=str(location.get("displayName") or "").strip(),
        start=_date_time(raw, "start"),
        end=_date_time(raw, "end"),
        priority=len(categories),
        label=str(raw.get("subject") or ""),
    )


def transform_events(raw_events: Iterable[Mapping[str, Any]] | None) -> list[Interval]:
    """Convert raw events to intervals sorted ascending by start.

    A null collection is treated as empty. Events without usable start/end
    times are skipped with a warning. The sort is stable, so events sharing a
    start keep the calendar's order.
    """
    intervals: list[Interval] = []
    if raw_events is None:
        return intervals

    for raw in raw_events:
        try:
            intervals.append(transform_event(raw))
        except (KeyError, TypeError, ValueError, ValidationError) as exc:
            LOGGER.warning(
                "Skipping calendar event %r: %s",
                raw.get("subject") if isinstance(raw, Mapping) else raw,
                exc,
            )

    return sorted(intervals, key=lambda item: item.start)
