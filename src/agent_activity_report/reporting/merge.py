"""Joining login/logoff summaries onto the agent status report."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from agent_activity_report.models import AgentLoginLogoffSummary


def merge_login_logoff(
    status_records: Iterable[Mapping[str, Any]],
    summaries: Iterable[AgentLoginLogoffSummary],
) -> list[dict[str, Any]]:
    """Attach ``first_login_time`` / ``last_logoff_time`` to status records.

    A status record is matched on its extension first and otherwise on its
    name against the summary's username (case-insensitive). Where several
    summaries share an extension the first one wins. Unmatched records are
    returned unchanged; the inputs are never mutated.
    """
    by_ext: dict[str, AgentLoginLogoffSummary] = {}
    by_name: dict[str, AgentLoginLogoffSummary] = {}
    for summary in summaries:
        by_ext.setdefault(summary.ext, summary)
        by_name.setdefault(summary.username.strip().lower(), summary)

    merged: list[dict[str, Any]] = []
    for record in status_records:
        row = dict(record)
        ext = row.get("extension")
        name = row.get("name")

        match = by_ext.get(str(ext)) if ext not in (None, "") else None
        if match is None and isinstance(name, str):
            match = by_name.get(name.strip().lower())

        if match is not None:
            if match.first_login_time is not None:
                row["first_login_time"] = match.first_login_time
            if match.last_logoff_time is not None:
                row["last_logoff_time"] = match.last_logoff_time
        merged.append(row)
    return merged
