"""Wall-clock boundary used by the action executors.

Executors block twice per action (until the scheduled instant, then for the
verification grace period). Routing both waits through this protocol keeps
the executor deterministic under test.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol implemented by clock providers."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""

    def sleep(self, seconds: float) -> None:
        """Block the calling thread for the given number of seconds."""


class SystemClock:
    """Clock backed by the system wall clock and a real blocking sleep."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)
