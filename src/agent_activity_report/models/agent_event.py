"""Agent state-change event model.

Upstream event streams are inconsistent across tenant and portal versions, so
field validation here never rejects a record: a value of the wrong type is
normalised to ``None`` and the record is simply not classifiable.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentKey(NamedTuple):
    """Composite agent identity used to group events."""

    user_id: str
    ext: str


class RawEvent(BaseModel):
    """A single agent state-change occurrence as received from the portal."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event: str | None = Field(default=None, description="Free-text event type label")
    enabled: bool | None = Field(
        default=None,
        description="True when the state was entered, False when it was exited",
    )
    user_id: str | None = Field(default=None, description="Opaque agent identifier")
    ext: str | None = Field(default=None, description="Agent extension number")
    username: str | None = Field(default=None, description="Agent display name")
    state: str | None = Field(default=None, description="State label, e.g. Login or Logoff")
    timestamp: int | None = Field(
        default=None,
        alias="Timestamp",
        description="Seconds since the Unix epoch (UTC)",
    )

    @field_validator("enabled", mode="before")
    @classmethod
    def _strict_bool(cls, v: Any) -> bool | None:
        # "true" or 1 are not the boolean true the portal sends.
        return v if isinstance(v, bool) else None

    @field_validator("event", "state", mode="before")
    @classmethod
    def _text_or_none(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @field_validator("user_id", "ext", "username", mode="before")
    @classmethod
    def _identity(cls, v: Any) -> str | None:
        if isinstance(v, bool) or v is None:
            return None
        if isinstance(v, (int, str)):
            text = str(v)
            return text or None
        return None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _epoch_seconds(cls, v: Any) -> int | None:
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, float) and v.is_integer():
            return int(v)
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        return None

    @property
    def agent_key(self) -> AgentKey | None:
        """Grouping key, or None when the record lacks identity fields."""
        if not self.user_id or not self.ext or not self.username:
            return None
        return AgentKey(user_id=self.user_id, ext=self.ext)


class AgentLoginLogoffSummary(BaseModel):
    """First login and last logoff of one agent within a requested window.

    Absent times are ``None`` and serialise as JSON ``null``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str
    username: str
    ext: str
    first_login_time: str | None = Field(default=None, alias="firstLoginTime")
    first_login_timestamp: int | None = Field(default=None, alias="firstLoginTimestamp")
    last_logoff_time: str | None = Field(default=None, alias="lastLogoffTime")
    last_logoff_timestamp: int | None = Field(default=None, alias="lastLogoffTimestamp")


class AvailabilityRecord(BaseModel):
    """An enabled "available" or "logoff" event, used by the audit view."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str | None = None
    username: str | None = None
    ext: str | None = None
    event: str | None = None
    state: str
    timestamp: int
    timestamp_display: str = Field(alias="timestampDisplay")
    enabled: bool
