"""Per-agent reduction of classified events."""

from __future__ import annotations

from agent_activity_report.events.timestamps import is_valid_epoch, normalize_timestamp
from agent_activity_report.models import AgentKey, AgentLoginLogoffSummary, EventKind, RawEvent


class AgentAccumulator:
    """Collects the login/logoff markers of one agent.

    Identity fields come from the event that created the accumulator; later
    events for the same key never overwrite them. On equal timestamps the
    first marker seen in input order is kept.
    """

    def __init__(self, first_event: RawEvent) -> None:
        key = first_event.agent_key
        if key is None:
            raise ValueError("Event has no agent identity")

        self.key: AgentKey = key
        self.username: str = first_event.username or ""
        self._first_login: int | None = None
        self._last_logoff: int | None = None
        self.login_count = 0
        self.logoff_count = 0

    def add(self, event: RawEvent, kind: EventKind) -> None:
        """Fold one classified event into the running first/last values."""
        if kind is EventKind.NEITHER or not is_valid_epoch(event.timestamp):
            return

        ts = event.timestamp
        if kind is EventKind.LOGIN:
            self.login_count += 1
            if self._first_login is None or ts < self._first_login:
                self._first_login = ts
        else:
            self.logoff_count += 1
            if self._last_logoff is None or ts > self._last_logoff:
                self._last_logoff = ts

    def to_summary(self) -> AgentLoginLogoffSummary:
        """Build the summary, normalising only timestamps that were found."""
        first_login = (
            normalize_timestamp(self._first_login) if self._first_login is not None else None
        )
        last_logoff = (
            normalize_timestamp(self._last_logoff) if self._last_logoff is not None else None
        )

        return AgentLoginLogoffSummary(
            user_id=self.key.user_id,
            username=self.username,
            ext=self.key.ext,
            first_login_time=first_login.display if first_login else None,
            first_login_timestamp=first_login.epoch if first_login else None,
            last_logoff_time=last_logoff.display if last_logoff else None,
            last_logoff_timestamp=last_logoff.epoch if last_logoff else None,
        )
