"""Portal access tokens.

Tokens are cached per tenant in an explicit :class:`TokenCache` that the
caller owns, so separate services (and tests) never share hidden state.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx
import structlog

from agent_activity_report.config import Settings
from agent_activity_report.exceptions import AuthenticationError, ConfigurationError
from agent_activity_report.utils import retry_async

logger = structlog.get_logger()

# Tried in order: the OAuth path used by the portal UI, then older back-ends.
LOGIN_PATHS = (
    "/api/v2/config/login/oauth",
    "/api/v2/login",
    "/api/login",
)


class MissingTokenError(ValueError):
    """A login response carried no access token."""


@dataclass(frozen=True)
class CachedToken:
    """An access token and the wall-clock time (epoch seconds) it expires."""

    access: str
    refresh: str | None
    expires_at: float


class TokenCache:
    """In-memory token store keyed by ``<realm>:<tenant>``."""

    def __init__(self) -> None:
        self._tokens: dict[str, CachedToken] = {}

    def get(self, key: str) -> CachedToken | None:
        return self._tokens.get(key)

    def set(self, key: str, token: CachedToken) -> None:
        self._tokens[key] = token

    def clear(self) -> None:
        self._tokens.clear()

    def __len__(self) -> int:
        return len(self._tokens)


class TokenService:
    """Obtains and caches bearer tokens for portal tenants."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        settings: Settings,
        cache: TokenCache | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Create a token service.

        Args:
            http: Shared HTTP client.
            settings: Application settings (credentials, TTLs, retries).
            cache: Token store. A private one is created when omitted.
            clock: Source of the current epoch time, overridable in tests.
        """
        self._http = http
        self.settings = settings
        self.cache = cache if cache is not None else TokenCache()
        self._clock = clock

    async def get_portal_token(self, tenant: str) -> str:
        """Token accepted by the portal's ``/api/v2/reports`` routes."""
        return await self._get_token(f"portal:{tenant}", self.settings.base_url, tenant)

    async def get_events_token(self, tenant: str) -> str:
        """Token for the server that publishes agent activity events."""
        base_url = f"https://{self.settings.events_host}"
        return await self._get_token(f"events:{tenant}", base_url, tenant)

    async def _get_token(self, cache_key: str, base_url: str, tenant: str) -> str:
        now = self._clock()
        cached = self.cache.get(cache_key)
        if cached and now < cached.expires_at - self.settings.token_refresh_margin:
            return cached.access

        if not self.settings.api_username or not self.settings.api_password:
            raise ConfigurationError(
                "Portal credentials are not configured; set AGENT_REPORT_API_USERNAME "
                "and AGENT_REPORT_API_PASSWORD."
            )

        body = {
            "domain": tenant,
            "username": self.settings.api_username,
            "password": self.settings.api_password,
        }

        for path in LOGIN_PATHS:
            url = f"{base_url.rstrip('/')}{path}"
            try:
                token = await retry_async(
                    lambda url=url: self._login(url, body),
                    max_attempts=self.settings.max_retries,
                    delay=self.settings.retry_delay,
                    operation_name="portal_login",
                    retry_on=(httpx.HTTPError, ValueError),
                    url=url,
                )
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("portal_login_failed", url=url, error=str(exc))
                continue

            self.cache.set(cache_key, token)
            logger.info("portal_login_succeeded", url=url, tenant=tenant)
            return token.access

        raise AuthenticationError(
            f"All portal login attempts failed for tenant {tenant!r}; check credentials/endpoints"
        )

    async def _login(self, url: str, body: dict[str, str]) -> CachedToken:
        response = await self._http.post(url, json=body, timeout=self.settings.login_timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise MissingTokenError("Login response is not a JSON object")

        access = data.get("accessToken") or data.get("access_token")
        if not access:
            raise MissingTokenError("No access token in response")

        refresh = data.get("refreshToken") or data.get("refresh_token")
        expires_in = data.get("expiresIn")
        lifetime = expires_in if isinstance(expires_in, (int, float)) and expires_in > 0 else None
        expires_at = self._clock() + (lifetime or self.settings.token_ttl)
        return CachedToken(access=access, refresh=refresh, expires_at=expires_at)
