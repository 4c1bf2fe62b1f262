"""Login/logoff extraction over an already-fetched batch of agent events.

Both public operations are pure functions of their input: they keep no state
between calls and perform no I/O. A bad individual record is skipped; only an
input that is not a sequence of records is an error.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from agent_activity_report.events.aggregator import AgentAccumulator
from agent_activity_report.events.classifier import classify_event, is_available_or_logoff
from agent_activity_report.events.timestamps import format_epoch, is_valid_epoch
from agent_activity_report.models import (
    AgentKey,
    AgentLoginLogoffSummary,
    AvailabilityRecord,
    RawEvent,
)

logger = structlog.get_logger()


def coerce_event(record: Any) -> RawEvent | None:
    """Turn a decoded JSON record into a RawEvent.

    Args:
        record: A RawEvent or a mapping as decoded from the portal response.

    Returns:
        The event, or None when ``record`` is not a record at all.
    """
    if isinstance(record, RawEvent):
        return record
    if not isinstance(record, Mapping):
        return None
    try:
        return RawEvent.model_validate(dict(record))
    except ValidationError:
        return None


def _iter_events(events: Iterable[Any]) -> Iterable[RawEvent]:
    if isinstance(events, (str, bytes, Mapping)) or not isinstance(events, Iterable):
        raise TypeError(
            f"Expected an iterable of event records, got {type(events).__name__}"
        )
    for record in events:
        event = coerce_event(record)
        if event is not None:
            yield event


def extract_login_logoff(events: Iterable[Any]) -> list[AgentLoginLogoffSummary]:
    """Derive the first login and last logoff of every agent in ``events``.

    Events missing ``user_id``, ``username`` or ``ext`` are dropped. Agents
    are returned in order of their first appearance in the input; callers
    wanting name order sort the result themselves.

    Args:
        events: Raw events in arrival order (not assumed time-sorted).

    Returns:
        One summary per distinct (user_id, ext) pair.

    Raises:
        TypeError: If ``events`` is not an iterable of records.
    """
    agents: dict[AgentKey, AgentAccumulator] = {}
    seen = 0

    for event in _iter_events(events):
        seen += 1
        key = event.agent_key
        if key is None:
            continue

        agent = agents.get(key)
        if agent is None:
            agent = agents[key] = AgentAccumulator(event)
        agent.add(event, classify_event(event))

    summaries = [agent.to_summary() for agent in agents.values()]
    logger.debug(
        "login_logoff_extracted",
        events=seen,
        agents=len(summaries),
        with_login=sum(1 for s in summaries if s.first_login_timestamp is not None),
        with_logoff=sum(1 for s in summaries if s.last_logoff_timestamp is not None),
        login_markers=sum(a.login_count for a in agents.values()),
        logoff_markers=sum(a.logoff_count for a in agents.values()),
    )
    return summaries


def filter_available_or_logoff(events: Iterable[Any]) -> list[AvailabilityRecord]:
    """Return every enabled "available" or "logoff" event, oldest first.

    This is a flat filter for audit views, not a per-agent reduction. Ties on
    timestamp keep their relative input order.

    Raises:
        TypeError: If ``events`` is not an iterable of records.
    """
    records: list[AvailabilityRecord] = []
    skipped = 0

    for event in _iter_events(events):
        if not is_available_or_logoff(event):
            continue
        if not is_valid_epoch(event.timestamp):
            skipped += 1
            continue

        records.append(
            AvailabilityRecord(
                user_id=event.user_id,
                username=event.username,
                ext=event.ext,
                event=event.event,
                state=event.state or "",
                timestamp=event.timestamp,
                timestamp_display=format_epoch(event.timestamp),
                enabled=True,
            )
        )

    records.sort(key=lambda r: r.timestamp)
    logger.debug("availability_filtered", matched=len(records), skipped_without_time=skipped)
    return records
