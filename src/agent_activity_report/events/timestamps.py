"""Epoch-second conversion for report display.

All login/logoff times are shown in Indian Standard Time regardless of the
host machine's local timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

IST = timezone(timedelta(hours=5, minutes=30), "IST")

DISPLAY_FORMAT = "%d/%m/%Y, %H:%M:%S"
MINUTE_FORMAT = "%Y-%m-%d %H:%M"


@dataclass(frozen=True)
class NormalizedTimestamp:
    """Display string plus the untouched epoch value used for ordering."""

    display: str
    epoch: int


def is_valid_epoch(value: object) -> bool:
    """Whether ``value`` can be passed to :func:`normalize_timestamp`.

    Positive integers past the range ``datetime`` can represent (for example
    millisecond epochs) are not valid.
    """
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        return False
    try:
        datetime.fromtimestamp(value, tz=IST)
    except (OverflowError, OSError, ValueError):
        return False
    return True


def format_epoch(epoch: int, tz: timezone = IST) -> str:
    """Format epoch seconds as ``DD/MM/YYYY, HH:MM:SS`` in ``tz``.

    Raises:
        ValueError: If ``epoch`` is absent, zero, negative or not an integer.
    """
    if not is_valid_epoch(epoch):
        raise ValueError(f"Invalid epoch timestamp: {epoch!r}")
    return datetime.fromtimestamp(epoch, tz=tz).strftime(DISPLAY_FORMAT)


def normalize_timestamp(epoch: int) -> NormalizedTimestamp:
    """Convert epoch seconds into an IST display string and a sortable value."""
    return NormalizedTimestamp(display=format_epoch(epoch), epoch=epoch)


def format_minute(moment: datetime, tz: timezone = IST) -> str:
    """Format an aware datetime as ``YYYY-MM-DD HH:MM`` in ``tz``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).strftime(MINUTE_FORMAT)


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC.

    Returns None for empty or unparseable input.
    """
    if not value:
        return None
    try:
        moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment
