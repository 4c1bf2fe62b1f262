"""Normalization and login/logoff extraction of agent state-change events."""

from .classifier import classify_event, is_available_or_logoff
from .pipeline import coerce_event, extract_login_logoff, filter_available_or_logoff
from .timestamps import IST, format_epoch, normalize_timestamp

__all__ = [
    "IST",
    "classify_event",
    "coerce_event",
    "extract_login_logoff",
    "filter_available_or_logoff",
    "format_epoch",
    "is_available_or_logoff",
    "normalize_timestamp",
]
