"""Reverse proxy side channel for agent state changes."""

from .state_capture import (
    ALL_AGENTS_KEY,
    StateChange,
    StateChangeStore,
    parse_date_header,
    resolve_extension,
)

__all__ = [
    "ALL_AGENTS_KEY",
    "StateChange",
    "StateChangeStore",
    "parse_date_header",
    "resolve_extension",
]
