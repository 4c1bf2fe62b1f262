"""Login/logoff classification of raw agent events.

Only ``state`` and ``enabled`` are consulted. The free-text ``event`` label is
not authoritative and is ignored.
"""

from __future__ import annotations

from typing import Any

from agent_activity_report.models import EventKind

LOGIN_STATE = "login"
LOGOFF_STATE = "logoff"
AVAILABLE_STATE = "available"

AUDIT_STATES = frozenset({AVAILABLE_STATE, LOGOFF_STATE})


def normalized_state(event: Any) -> str | None:
    """Lower-cased ``state`` of ``event``, or None when missing or not text."""
    state = getattr(event, "state", None)
    if not isinstance(state, str):
        return None
    return state.lower()


def _is_enabled(event: Any) -> bool:
    return getattr(event, "enabled", None) is True


def classify_event(event: Any) -> EventKind:
    """Label an event as a login marker, a logoff marker, or neither.

    Args:
        event: A RawEvent (or any object exposing ``state`` and ``enabled``).

    Returns:
        EventKind: LOGIN or LOGOFF for enabled events in those states,
        NEITHER for everything else, including malformed records.
    """
    if not _is_enabled(event):
        return EventKind.NEITHER

    state = normalized_state(event)
    if state == LOGIN_STATE:
        return EventKind.LOGIN
    if state == LOGOFF_STATE:
        return EventKind.LOGOFF
    return EventKind.NEITHER


def is_available_or_logoff(event: Any) -> bool:
    """Selection predicate for the availability audit view."""
    return _is_enabled(event) and normalized_state(event) in AUDIT_STATES
