"""Agent activity events fetcher.

Events are fetched page by page from whichever candidate endpoint the
tenant's portal answers on, then handed to the extraction pipeline as one
assembled batch.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from agent_activity_report.config import Settings
from agent_activity_report.models import RawEvent
from agent_activity_report.portal.auth import TokenService
from agent_activity_report.portal.client import account_headers
from agent_activity_report.portal.payloads import event_rows, events_from_payload, next_page_key
from agent_activity_report.portal.resolver import CandidateResolver, candidates_for

logger = structlog.get_logger()

EVENT_PATHS = (
    "/api/v2/reports/callcenter/agents/activity/events",
    "/api/v2/callcenter/agents/activity/events",
    "/ucp/v2/callcenter/agents/activity/events",
    "/api/v2/reports/callcenter/agents/events",
    "/api/v2/callcenter/agents/events",
    "/api/v2/agents/activity/events",
    "/api/v2/agents/events",
    "/api/callcenter/agents/activity/events",
    "/api/callcenter/agents/events",
)


class AgentEventsClient:
    """Client for the agent activity events report."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings, tokens: TokenService) -> None:
        self._http = http
        self.settings = settings
        self.tokens = tokens
        self._resolvers: dict[str, CandidateResolver] = {}

    def resolver_for(self, account: str) -> CandidateResolver:
        """Endpoint resolver for ``account``: tenant subdomain first, then base server."""
        resolver = self._resolvers.get(account)
        if resolver is None:
            host = self.settings.events_host
            base_urls = [f"https://{account}.{host}", f"https://{host}"]
            resolver = CandidateResolver(
                candidates_for(base_urls, EVENT_PATHS),
                max_attempts=self.settings.max_retries,
                delay=self.settings.retry_delay,
                name="agent_events",
            )
            self._resolvers[account] = resolver
        return resolver

    async def fetch_events(
        self,
        account: str,
        start_date: int,
        end_date: int,
        *,
        time_range: str | None = None,
        page_size: int | None = None,
        start_key: str | None = None,
    ) -> list[RawEvent]:
        """Fetch every agent event in ``[start_date, end_date]``.

        Args:
            account: Tenant / account id.
            start_date: Range start, Unix epoch seconds.
            end_date: Range end, Unix epoch seconds.
            time_range: Optional portal time range such as ``1d`` or ``1h``.
            page_size: Records per page (defaults to settings).
            start_key: Optional pagination key to resume from.

        Returns:
            The concatenated events of all pages, in arrival order.

        Raises:
            AuthenticationError: If no token can be obtained.
            EndpointDiscoveryError: If no candidate endpoint answers.
            PortalAPIError: If the resolved endpoint fails mid-pagination.
        """
        page_size = page_size or self.settings.events_page_size
        token = await self.tokens.get_events_token(account)
        headers = account_headers(self.settings, account, token)
        resolver = self.resolver_for(account)

        params: dict[str, Any] = {"startDate": str(start_date), "endDate": str(end_date)}
        if time_range:
            params["timeRange"] = time_range
        if page_size:
            params["pageSize"] = page_size

        records: list[RawEvent] = []
        current_key = start_key
        pages = 0

        while True:
            if current_key:
                params["startKey"] = current_key

            async def send(url: str) -> tuple[httpx.Response, Any]:
                response = await self._http.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=self.settings.request_timeout,
                )
                response.raise_for_status()
                return response, response.json()

            response, payload = await resolver.request(send)
            page = events_from_payload(payload)
            # Short-page detection uses what the portal sent, before junk rows are dropped.
            rows = event_rows(payload) or []
            records.extend(page)
            pages += 1

            logger.info(
                "events_page_fetched",
                account=account,
                page=pages,
                rows=len(rows),
                count=len(page),
                total=len(records),
            )

            current_key = next_page_key(response.headers, payload)
            if (
                not current_key
                or len(rows) < page_size
                or len(records) >= self.settings.events_max_records
            ):
                break

        logger.info("events_fetch_completed", account=account, pages=pages, total=len(records))
        return records
