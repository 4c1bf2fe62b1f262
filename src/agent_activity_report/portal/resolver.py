"""Ordered probing of candidate endpoints.

Portal installs differ in where they publish the same report. A resolver
tries each candidate URL in turn, remembers the first one that answers, and
sends every later request straight there.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

import httpx
import structlog

from agent_activity_report.exceptions import EndpointDiscoveryError, PortalAPIError
from agent_activity_report.utils import retry_async

logger = structlog.get_logger()

T = TypeVar("T")

RETRYABLE = (httpx.HTTPError, ValueError)


@dataclass(frozen=True)
class Candidate:
    base_url: str
    path: str

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.path}"


def candidates_for(base_urls: Iterable[str], paths: Iterable[str]) -> list[Candidate]:
    """Every base URL combined with every path, base URLs outermost."""
    paths = list(paths)
    return [Candidate(base, path) for base in base_urls for path in paths]


class CandidateResolver:
    """Finds and remembers the first working candidate endpoint."""

    def __init__(
        self,
        candidates: Sequence[Candidate],
        *,
        max_attempts: int = 3,
        delay: float = 1.0,
        name: str = "endpoint",
    ) -> None:
        if not candidates:
            raise ValueError("At least one candidate endpoint is required")
        self.candidates = list(candidates)
        self.max_attempts = max_attempts
        self.delay = delay
        self.name = name
        self.resolved: Candidate | None = None

    async def request(self, send: Callable[[str], Awaitable[T]]) -> T:
        """Run ``send(url)`` against the resolved or next working candidate.

        Args:
            send: Performs one request against a full URL; raises on failure.

        Raises:
            EndpointDiscoveryError: If no candidate succeeds.
            PortalAPIError: If the previously resolved endpoint stops answering.
        """
        if self.resolved is not None:
            url = self.resolved.url
            try:
                return await self._attempt(send, url)
            except RETRYABLE as exc:
                raise PortalAPIError(f"{self.name} request to {url} failed: {exc}") from exc

        attempts: list[str] = []
        for candidate in self.candidates:
            try:
                result = await self._attempt(send, candidate.url)
            except RETRYABLE as exc:
                attempts.append(f"{candidate.url}: {exc}")
                logger.warning(
                    "candidate_endpoint_failed",
                    name=self.name,
                    url=candidate.url,
                    error=str(exc),
                )
                continue

            self.resolved = candidate
            logger.info("candidate_endpoint_resolved", name=self.name, url=candidate.url)
            return result

        raise EndpointDiscoveryError(
            f"All {len(self.candidates)} candidate {self.name} endpoints failed",
            attempts=attempts,
        )

    async def _attempt(self, send: Callable[[str], Awaitable[T]], url: str) -> T:
        return await retry_async(
            lambda: send(url),
            max_attempts=self.max_attempts,
            delay=self.delay,
            operation_name=f"{self.name}_request",
            retry_on=RETRYABLE,
            url=url,
        )
