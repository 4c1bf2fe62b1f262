"""Table, CSV and JSON rendering of report records."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from agent_activity_report.events.timestamps import format_epoch, is_valid_epoch
from agent_activity_report.models import AgentLoginLogoffSummary, AvailabilityRecord, RawEvent

NO_DATA = "No data available"

# (record key, column label)
EVENT_COLUMNS = [
    ("event", "Event"),
    ("enabled", "Enabled"),
    ("user_id", "User ID"),
    ("ext", "Ext"),
    ("username", "Username"),
    ("state", "State"),
    ("Timestamp", "Timestamp"),
]

STATUS_COLUMNS = [
    ("extension", "Ext"),
    ("name", "Name"),
    ("total_calls", "Calls"),
    ("answered_calls", "Answered"),
    ("talked_time", "Talk Time"),
    ("idle_time", "Idle Time"),
    ("wrap_up_time", "Wrap Time"),
    ("hold_time", "Hold Time"),
    ("not_available_time", "Not Avail"),
    ("first_login_time", "First Login"),
    ("last_logoff_time", "Last Logoff"),
]

STATUS_TIME_KEYS = frozenset(
    {"talked_time", "idle_time", "wrap_up_time", "hold_time", "not_available_time"}
)

LOGIN_LOGOFF_COLUMNS = [
    ("username", "Agent Name"),
    ("ext", "Extension"),
    ("firstLoginTime", "First Login Time"),
    ("lastLogoffTime", "Last LogOff Time"),
]

AVAILABILITY_COLUMNS = [
    ("username", "Username"),
    ("ext", "Ext"),
    ("state", "State"),
    ("timestamp", "Timestamp"),
    ("timestampDisplay", "Time (IST)"),
    ("enabled", "Enabled"),
]


def as_record(item: Any) -> dict[str, Any]:
    """Plain dict form of a model or mapping, using upstream field names."""
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True)
    return dict(item)


def seconds_to_hms(value: Any) -> str:
    """Format a duration in seconds as ``HH:MM:SS`` (``N day(s) HH:MM:SS`` past a day)."""
    try:
        total = int(value)
    except (TypeError, ValueError):
        return ""

    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    hms = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if days:
        return f"{days} day{'s' if days > 1 else ''} {hms}"
    return hms


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_table(rows: Sequence[Mapping[str, Any]], columns: Sequence[tuple[str, str]]) -> str:
    """Render rows as a fixed-width pipe table."""
    if not rows:
        return NO_DATA

    cells = [[_cell(row.get(key)) for key, _ in columns] for row in rows]
    widths = [
        max(len(label), *(len(r[i]) for r in cells)) for i, (_, label) in enumerate(columns)
    ]

    header = "| " + " | ".join(label.ljust(w) for (_, label), w in zip(columns, widths)) + " |"
    separator = "|" + "|".join("-" * (w + 2) for w in widths) + "|"
    body = ["| " + " | ".join(c.ljust(w) for c, w in zip(r, widths)) + " |" for r in cells]
    return "\n".join([header, separator, *body])


def format_events_table(events: Iterable[RawEvent | Mapping[str, Any]]) -> str:
    """Raw agent events, with the epoch timestamp shown in IST."""
    rows = []
    for event in events:
        row = as_record(event)
        ts = row.get("Timestamp")
        row["Timestamp"] = format_epoch(ts) if is_valid_epoch(ts) else ""
        rows.append(row)
    return format_table(rows, EVENT_COLUMNS)


def format_status_table(records: Iterable[Mapping[str, Any]]) -> str:
    """Agent status report; duration columns rendered as ``HH:MM:SS``."""
    rows = []
    for record in records:
        row = dict(record)
        for key in row.keys() & STATUS_TIME_KEYS:
            if row[key] is not None and not isinstance(row[key], Mapping):
                row[key] = seconds_to_hms(row[key])
        rows.append(row)
    return format_table(rows, STATUS_COLUMNS)


def format_login_logoff_table(summaries: Iterable[AgentLoginLogoffSummary]) -> str:
    """Per-agent first login / last logoff, sorted by agent name."""
    rows = []
    for summary in sorted(summaries, key=lambda s: s.username.lower()):
        row = as_record(summary)
        row["firstLoginTime"] = row["firstLoginTime"] or "No Login"
        row["lastLogoffTime"] = row["lastLogoffTime"] or "No Logoff"
        rows.append(row)
    return format_table(rows, LOGIN_LOGOFF_COLUMNS)


def format_availability_table(records: Iterable[AvailabilityRecord]) -> str:
    return format_table([as_record(r) for r in records], AVAILABILITY_COLUMNS)


def to_csv(records: Sequence[Any], delimiter: str = ",") -> str:
    """Convert records to CSV text, with a header taken from the first record.

    Values containing the delimiter, quotes or newlines are quoted per RFC 4180.
    """
    if not records:
        return ""

    rows = [as_record(r) for r in records]
    fieldnames = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=fieldnames,
        delimiter=delimiter,
        lineterminator="\n",
        extrasaction="ignore",
    )
    writer.writeheader()
    for row in rows:
        writer.writerow({k: _csv_value(row.get(k)) for k in fieldnames})
    return buffer.getvalue().rstrip("\n")


def _csv_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return _cell(value)


def to_json(records: Sequence[Any]) -> str:
    return json.dumps([as_record(r) for r in records], ensure_ascii=False, indent=2)


def write_report(records: Sequence[Any], path: Path) -> None:
    """Write records to ``path``: CSV for ``.csv`` files, indented JSON otherwise."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".csv":
        content = to_csv(records)
    else:
        content = to_json(records)
    path.write_text(content, encoding="utf-8")
