from __future__ import annotations

from typing import Any

from bandwidth_scheduler.core.events.event_bus import EventBus


class _NullSink:
    """Event sink that discards all events."""

    def on_event(self, event: Any) -> None:
        return


class _ListSink:
    def __init__(self, events: list[Any]) -> None:
        self._events = events

    def on_event(self, event: Any) -> None:
        self._events.append(event)


class NullEventBus(EventBus):
    """EventBus that discards all events (used in tests)."""

    def __init__(self) -> None:
        super().__init__(sinks=[_NullSink()])


class CollectingEventBus(EventBus):
    """EventBus that keeps every emitted event in memory (used for tests)."""

    def __init__(self) -> None:
        self.events: list[Any] = []
        super().__init__(sinks=[_ListSink(self.events)])
