"""Resolution of the portal's varying response shapes.

Every shape is reduced here to one canonical form, so nothing downstream
branches on how a particular portal version encoded its response.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from agent_activity_report.events.pipeline import coerce_event
from agent_activity_report.exceptions import UnexpectedPayloadError
from agent_activity_report.models import RawEvent

logger = structlog.get_logger()

NEXT_KEY_HEADERS = ("x-next-start-key", "x-next-page-token")
STATUS_NEXT_KEY = "next_start_key"
EXTENSION_FALLBACKS = ("ext", "userId", "user_id", "id")


def event_rows(payload: Any) -> list[Any] | None:
    """The list of event rows in an events payload, or None if unrecognised.

    Accepted shapes: a bare JSON array, or an object holding the array under
    ``data`` or ``events``.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in ("data", "events"):
            rows = payload.get(key)
            if isinstance(rows, list):
                return rows
    return None


def events_from_payload(payload: Any) -> list[RawEvent]:
    """Decode one page of agent events into RawEvents."""
    rows = event_rows(payload)
    if rows is None:
        logger.warning("events_payload_unrecognised", payload_type=type(payload).__name__)
        return []

    events = [e for e in (coerce_event(r) for r in rows) if e is not None]
    if len(events) != len(rows):
        logger.debug("events_payload_rows_skipped", rows=len(rows), kept=len(events))
    return events


def next_page_key(headers: Mapping[str, str], payload: Any) -> str | None:
    """Pagination key for the next events page, if the portal sent one."""
    for name in NEXT_KEY_HEADERS:
        value = headers.get(name)
        if value:
            return value

    if isinstance(payload, Mapping):
        token = payload.get("nextPageToken")
        if token:
            return str(token)
        pagination = payload.get("pagination")
        if isinstance(pagination, Mapping) and pagination.get("nextKey"):
            return str(pagination["nextKey"])
    return None


def ensure_extension(record: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of ``record`` with an ``extension`` key always present."""
    result = dict(record)
    if result.get("extension") is None:
        result["extension"] = next(
            (result[k] for k in EXTENSION_FALLBACKS if result.get(k) is not None),
            "",
        )
    return result


def status_records_from_payload(payload: Any) -> tuple[list[dict[str, Any]], str | None]:
    """Decode one page of the agents status report.

    Older portals return ``{"data": [...]}``; newer ones return an object keyed
    by extension (or user id), in which case the key is merged into each
    record as ``extension``.

    Returns:
        The page's records and the ``next_start_key`` (None on the last page).

    Raises:
        UnexpectedPayloadError: If the payload is not a JSON object.
    """
    if not isinstance(payload, Mapping):
        raise UnexpectedPayloadError(
            f"Unrecognised agent status payload of type {type(payload).__name__}"
        )

    next_key = payload.get(STATUS_NEXT_KEY) or None
    data = payload.get("data")
    if isinstance(data, list):
        records = [ensure_extension(r) for r in data if isinstance(r, Mapping)]
    else:
        records = [
            ensure_extension({"extension": key, **info})
            for key, info in payload.items()
            if isinstance(info, Mapping)
        ]
    return records, (str(next_key) if next_key else None)
