"""
Bandwidth action lifecycle state machine definitions.

This module defines the canonical action states and the allowed transitions
between them. It is passive and validation-only: the executor
consults it to flag unexpected transitions in the event stream, but it must
NOT raise in production paths.
"""

from __future__ import annotations

# Terminal action states: once reached, the action is discarded.
#
# - verified: the post-order check saw the requested bandwidth
# - applied : the order was accepted, the change was still pending at check time
# - failed  : any step failed; the action is abandoned
ACTION_TERMINAL_STATES: frozenset[str] = frozenset(
    {
        "verified",
        "applied",
        "failed",
    }
)


# Allowed action state transitions.
#
# Key   : previous state (or None before the executor has started)
# Value : set of allowed next states
#
# Notes:
# - The pipeline is strictly linear; no step is retried.
# - "failed" is reachable from every non-terminal state.
ACTION_ALLOWED_TRANSITIONS: dict[str | None, frozenset[str]] = {
    None: frozenset({"scheduled"}),

    "scheduled": frozenset(
        {
            "authenticated",
            "failed",
        }
    ),

    "authenticated": frozenset(
        {
            "inventory_fetched",
            "failed",
        }
    ),

    "inventory_fetched": frozenset(
        {
            "quoted",
            "failed",
        }
    ),

    "quoted": frozenset(
        {
            "ordered",
            "failed",
        }
    ),

    "ordered": frozenset(
        {
            "verified",
            "applied",
            "failed",
        }
    ),
}


def is_terminal_state(state: str) -> bool:
    """Return True if the given state is terminal."""
    return state in ACTION_TERMINAL_STATES


def is_valid_transition(prev_state: str | None, next_state: str) -> bool:
    """Return True if the transition prev_state -> next_state is allowed."""
    allowed = ACTION_ALLOWED_TRANSITIONS.get(prev_state)
    if allowed is None:
        return False
    return next_state in allowed
