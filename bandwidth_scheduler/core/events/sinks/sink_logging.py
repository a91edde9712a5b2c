"""
Logging event sink.
"""
from __future__ import annotations

import logging
from typing import Any


class LoggingEventSink:
    """Logs domain events at DEBUG level using the standard logging module.

    Human-readable progress lines are written by the executor itself; this
    sink carries the structured event for handlers that format ``extra``.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def on_event(self, event: Any) -> None:
        self._logger.debug(type(event).__name__, extra={"event": event})
