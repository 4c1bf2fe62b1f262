"""Rendering of agent reports as tables, CSV and JSON."""

from .merge import merge_login_logoff
from .render import (
    format_availability_table,
    format_events_table,
    format_login_logoff_table,
    format_status_table,
    seconds_to_hms,
    to_csv,
    to_json,
    write_report,
)

__all__ = [
    "format_availability_table",
    "format_events_table",
    "format_login_logoff_table",
    "format_status_table",
    "merge_login_logoff",
    "seconds_to_hms",
    "to_csv",
    "to_json",
    "write_report",
]
