"""Shared HTTP plumbing for the telephony portal API."""

from __future__ import annotations

import httpx

from agent_activity_report.config import Settings


def create_http_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared async HTTP client used for every portal call.

    Args:
        settings: Application settings (TLS verification, timeouts).
        transport: Optional transport override, used by tests.
    """
    return httpx.AsyncClient(
        verify=settings.verify_tls,
        timeout=settings.request_timeout,
        headers={"Accept": "application/json"},
        transport=transport,
    )


def account_headers(
    settings: Settings,
    account: str,
    token: str,
    *,
    user_agent: str = "portal",
) -> dict[str, str]:
    """Headers every authenticated portal request carries."""
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/json",
        "X-Account-ID": settings.account_id_header or account,
        "X-User-Agent": user_agent,
    }
