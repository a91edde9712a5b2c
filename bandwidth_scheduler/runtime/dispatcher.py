"""Concurrent fan-out of action executors.

One thread per resolved action, no pool: the number of actions is bounded by
the calendar entries of a single monitoring window. Each thread receives its
action as a thread argument, so no worker can observe another iteration's
action and launches need no stagger.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from bandwidth_scheduler.runtime.action_executor import ExecutionOutcome

if TYPE_CHECKING:
    from bandwidth_scheduler.core.domain.types import BandwidthAction
    from bandwidth_scheduler.runtime.action_executor import ActionExecutor

LOGGER = logging.getLogger(__name__)

ExecutorFactory = Callable[["BandwidthAction"], "ActionExecutor"]


class Dispatcher:
    """Runs every action concurrently and waits for all of them."""

    def __init__(self, executor_factory: ExecutorFactory) -> None:
        self._executor_factory = executor_factory

    def dispatch(self, actions: Sequence[BandwidthAction]) -> list[ExecutionOutcome]:
        """Launch one executor thread per action and join them all.

        Returns outcomes in the same order as ``actions``. There is no
        cancellation path: every thread runs to a terminal state.
        """
        outcomes: list[ExecutionOutcome | None] = [None] * len(actions)
        threads: list[threading.Thread] = []

        for index, action in enumerate(actions):
            thread = threading.Thread(
                target=self._run_one,
                args=(index, action, outcomes),
                name=f"action-{action.resource_key}-{index}",
            )
            threads.append(thread)
            thread.start()

        for thread in threads:
            thread.join()

        return [
            outcome
            if outcome is not None
            else ExecutionOutcome(action=action, final_state="failed", reason="executor produced no outcome")
            for action, outcome in zip(actions, outcomes)
        ]

    def _run_one(
        self,
        index: int,
        action: BandwidthAction,
        outcomes: list[ExecutionOutcome | None],
    ) -> None:
        # Each thread writes only its own slot.
        try:
            executor = self._executor_factory(action)
            outcomes[index] = executor.run()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.exception("%s Unhandled error while executing action", action.identifier)
            outcomes[index] = ExecutionOutcome(
                action=action,
                final_state="failed",
                reason=f"unhandled error: {exc}",
            )
