"""Pytest configuration and shared fixtures."""

from typing import Any

import pytest


@pytest.fixture
def mock_settings():
    """Provide settings pointing at fake upstream hosts, with no retry delay."""
    from agent_activity_report.config import Settings

    return Settings(
        base_url="https://portal.test",
        events_host="pbx.test",
        api_username="reporter",
        api_password="secret",
        max_retries=2,
        retry_delay=0,
        events_page_size=1000,
        log_level="DEBUG",
        debug=True,
    )


def _make_event(**overrides: Any) -> dict[str, Any]:
    """Build a raw portal event record, defaulting to an enabled Login."""
    record: dict[str, Any] = {
        "event": "agent_state",
        "enabled": True,
        "user_id": "u1",
        "ext": "100",
        "username": "A",
        "state": "Login",
        "Timestamp": 1000,
    }
    record.update(overrides)
    return record


@pytest.fixture
def make_event():
    """Provide a builder for raw portal event records."""
    return _make_event


@pytest.fixture
def sample_events() -> list[dict[str, Any]]:
    """Provide a mixed batch of agent events as decoded from the portal."""
    return [
        {
            "event": "agent_login",
            "enabled": True,
            "user_id": "37cb9e0b6c3a4c4e",
            "ext": "1001",
            "username": "Prashant Rajput",
            "state": "Login",
            "Timestamp": 1753370100,
        },
        {
            "event": "agent_state",
            "enabled": True,
            "user_id": "37cb9e0b6c3a4c4e",
            "ext": "1001",
            "username": "Prashant Rajput",
            "state": "available",
            "Timestamp": 1753370160,
        },
        {
            "event": "agent_login",
            "enabled": True,
            "user_id": "5a1f00d2e1b94b77",
            "ext": "1002",
            "username": "Meera Shah",
            "state": "Login",
            "Timestamp": 1753371000,
        },
        {
            "event": "agent_state",
            "enabled": False,
            "user_id": "37cb9e0b6c3a4c4e",
            "ext": "1001",
            "username": "Prashant Rajput",
            "state": "available",
            "Timestamp": 1753395000,
        },
        {
            "event": "agent_logoff",
            "enabled": True,
            "user_id": "37cb9e0b6c3a4c4e",
            "ext": "1001",
            "username": "Prashant Rajput",
            "state": "Logoff",
            "Timestamp": 1753398900,
        },
    ]
