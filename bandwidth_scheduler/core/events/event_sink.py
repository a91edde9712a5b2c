"""
Event sink interface.

Sinks consume domain events emitted by the resolver and the action executors.
Executors run on separate threads, so the bus serializes calls into sinks.
"""
from __future__ import annotations

from typing import Any, Protocol


class EventSink(Protocol):
    def on_event(self, event: Any) -> None:
        """Consume a domain event."""
