"""Data models for Agent Activity Report.

This module contains Pydantic models for data validation and serialization.
"""

from enum import Enum

from agent_activity_report.models.agent_event import (
    AgentKey,
    AgentLoginLogoffSummary,
    AvailabilityRecord,
    RawEvent,
)


class EventKind(str, Enum):
    """Classification of a raw event for login/logoff extraction."""

    LOGIN = "login"
    LOGOFF = "logoff"
    NEITHER = "neither"


class ReportView(str, Enum):
    """Which reduction of the agent events stream to present."""

    SUMMARY = "summary"
    AVAILABLE = "available"
    RAW = "raw"


__all__ = [
    "AgentKey",
    "AgentLoginLogoffSummary",
    "AvailabilityRecord",
    "EventKind",
    "RawEvent",
    "ReportView",
]
