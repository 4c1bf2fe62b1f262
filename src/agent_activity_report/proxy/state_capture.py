"""Best-effort capture of agent state changes seen by the reverse proxy.

When a client switches an agent to the AVAILABLE state through the proxy, the
upstream response ``Date`` header is recorded as that agent's first login of
the process lifetime. This is a side channel that complements the events
report, not a replacement for it.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import structlog

from agent_activity_report.events.timestamps import format_minute

logger = structlog.get_logger()

ALL_AGENTS_KEY = "_all_agents"
BODY_EXTENSION_KEYS = ("extension", "ext", "userId", "id")


@dataclass(frozen=True)
class StateChange:
    state_id: str
    timestamp: datetime
    formatted_time: str

    def to_dict(self) -> dict[str, str]:
        return {
            "stateId": self.state_id,
            "timestamp": self.timestamp.isoformat(),
            "formattedTime": self.formatted_time,
        }


class StateChangeStore:
    """Earliest captured state change per extension.

    The store is owned by whoever creates it (normally the web app), so its
    lifetime is explicit and tests get a fresh one each time.
    """

    def __init__(self) -> None:
        self._changes: dict[str, list[StateChange]] = {}

    def record(self, extension: str, state_id: str, moment: datetime) -> StateChange | None:
        """Record ``moment`` unless ``extension`` already has a capture.

        Returns:
            The new capture, or None when one already existed.
        """
        if extension in self._changes:
            return None

        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        change = StateChange(
            state_id=state_id,
            timestamp=moment,
            formatted_time=format_minute(moment),
        )
        self._changes[extension] = [change]
        logger.info("state_change_captured", extension=extension, time=change.formatted_time)
        return change

    def changes_between(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, list[StateChange]]:
        """Captured changes within ``[start, end]``, keyed by extension."""
        result: dict[str, list[StateChange]] = {}
        for extension, changes in self._changes.items():
            in_range = [c for c in changes if _within(c.timestamp, start, end)]
            if in_range:
                result[extension] = in_range
        return result

    def first_in_range(
        self,
        extension: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> StateChange | None:
        changes = [c for c in self._changes.get(extension, []) if _within(c.timestamp, start, end)]
        return min(changes, key=lambda c: c.timestamp, default=None)

    def __contains__(self, extension: object) -> bool:
        return extension in self._changes

    def __len__(self) -> int:
        return len(self._changes)


def _within(moment: datetime, start: datetime | None, end: datetime | None) -> bool:
    if start is not None and moment < start:
        return False
    if end is not None and moment > end:
        return False
    return True


def resolve_extension(query_extension: str | None, body: Any) -> str:
    """Extension a state change applies to.

    Priority: ``extension`` query parameter, then a JSON body field
    (``extension``, ``ext``, ``userId``, ``id``), then the shared
    ``_all_agents`` bucket.
    """
    if query_extension:
        return query_extension

    if isinstance(body, (bytes, str)) and body:
        try:
            body = json.loads(body)
        except ValueError:
            body = None

    if isinstance(body, Mapping):
        for key in BODY_EXTENSION_KEYS:
            value = body.get(key)
            if value not in (None, ""):
                return str(value)
    return ALL_AGENTS_KEY


def parse_date_header(value: str | None) -> datetime | None:
    """Parse an HTTP ``Date`` header into an aware datetime."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
