"""Agents status & activity report fetcher."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from agent_activity_report.config import Settings
from agent_activity_report.exceptions import PortalAPIError
from agent_activity_report.portal.auth import TokenService
from agent_activity_report.portal.client import account_headers
from agent_activity_report.portal.payloads import status_records_from_payload
from agent_activity_report.utils import retry_async

logger = structlog.get_logger()


def to_epoch_seconds(moment: datetime) -> int:
    """Whole epoch seconds of an aware datetime (naive values are taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


class AgentStatusClient:
    """Client for the per-agent status/activity statistics report."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings, tokens: TokenService) -> None:
        self._http = http
        self.settings = settings
        self.tokens = tokens

    @property
    def url(self) -> str:
        return f"{self.settings.base_url.rstrip('/')}{self.settings.agent_status_endpoint}"

    async def fetch_status(
        self,
        account: str,
        start: datetime,
        end: datetime,
        *,
        name: str | None = None,
        extension: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch the report, traversing pages until completion.

        A failed page is retried with backoff; pages already collected are
        kept and the fetch resumes from the failed page.

        Args:
            account: Tenant / account id.
            start: Range start.
            end: Range end.
            name: Optional agent name filter.
            extension: Optional extension filter.

        Returns:
            The concatenated status records, each with an ``extension`` key.

        Raises:
            PortalAPIError: If a page still fails after all retries.
        """
        records: list[dict[str, Any]] = []
        state: dict[str, str | None] = {"start_key": None}

        base_params: dict[str, Any] = {
            "startDate": to_epoch_seconds(start),
            "endDate": to_epoch_seconds(end),
        }
        if name:
            base_params["name"] = name
        if extension:
            base_params["extension"] = extension

        async def fetch_remaining_pages() -> None:
            while True:
                params = dict(base_params)
                if state["start_key"]:
                    params["start_key"] = state["start_key"]

                token = await self.tokens.get_portal_token(account)
                logger.debug("status_page_request", url=self.url, params=params, account=account)

                response = await self._http.get(
                    self.url,
                    params=params,
                    headers=account_headers(self.settings, account, token),
                    timeout=self.settings.request_timeout,
                )
                response.raise_for_status()

                chunk, next_key = status_records_from_payload(response.json())
                records.extend(chunk)
                if not next_key:
                    return
                state["start_key"] = next_key

        try:
            await retry_async(
                fetch_remaining_pages,
                max_attempts=self.settings.max_retries,
                delay=self.settings.retry_delay,
                operation_name="agent_status_fetch",
                retry_on=(httpx.HTTPError, ValueError, PortalAPIError),
                account=account,
            )
        except httpx.HTTPError as exc:
            raise PortalAPIError(f"Agent status request failed: {exc}") from exc
        except ValueError as exc:
            raise PortalAPIError(f"Agent status response could not be decoded: {exc}") from exc

        logger.info("status_fetch_completed", account=account, total=len(records))
        return records
