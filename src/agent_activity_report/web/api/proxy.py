"""Reverse proxy to the portal's ``/ucp`` API with state-change capture.

Responses are relayed to the caller unchanged. Switching an agent to the
AVAILABLE state additionally records the upstream ``Date`` header in the
app's :class:`StateChangeStore`.
"""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import structlog
from fastapi import APIRouter, Request, Response

from agent_activity_report.config import Settings
from agent_activity_report.events.timestamps import parse_iso_datetime
from agent_activity_report.exceptions import ConfigurationError
from agent_activity_report.portal import account_headers
from agent_activity_report.proxy import parse_date_header, resolve_extension
from agent_activity_report.web.api.reports import error_response

logger = structlog.get_logger()

router = APIRouter(tags=["proxy"])

STATE_PATH = "/ucp/v2/callcenter/agent/state"

# Hop-by-hop and length/encoding headers are recomputed on each leg.
_SKIP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",
        "content-encoding",
    }
)


def _forwardable(headers) -> dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() not in _SKIP_HEADERS}


def _relay(upstream: httpx.Response) -> Response:
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=_forwardable(upstream.headers),
    )


def _proxy_account(settings: Settings) -> str:
    if not settings.account_id_header:
        raise ConfigurationError(
            "AGENT_REPORT_ACCOUNT_ID_HEADER must be set to proxy agent state changes"
        )
    return settings.account_id_header


async def _put_state(
    request: Request,
    state_id: str,
    content: bytes | None,
    extra_headers: dict[str, str],
) -> httpx.Response:
    state = request.app.state
    settings: Settings = state.settings
    account = _proxy_account(settings)

    # Always use a fresh portal token rather than trusting caller headers.
    token = await state.tokens.get_portal_token(account)
    auth = account_headers(settings, account, token, user_agent="ucp")
    overridden = {k.lower() for k in auth}
    headers = {k: v for k, v in extra_headers.items() if k.lower() not in overridden}
    headers.update(auth)
    url = f"{settings.base_url.rstrip('/')}{STATE_PATH}/{state_id}"
    return await state.http.put(url, content=content, headers=headers)


def _capture(request: Request, state_id: str, extension: str, moment: datetime | None) -> None:
    state = request.app.state
    if state_id != state.settings.available_state_id or moment is None:
        return
    state.store.record(extension, state_id, moment)


@router.put("/api/track-state/{state_id}")
async def track_state(request: Request, state_id: str, extension: str | None = None):
    if not extension:
        return error_response(400, "Extension query param is required")

    try:
        upstream = await _put_state(request, state_id, None, {})
    except httpx.HTTPError as exc:
        logger.error("upstream_state_change_failed", state_id=state_id, error=str(exc))
        return error_response(502, "Failed to reach upstream state API")
    if upstream.status_code >= 500:
        logger.error(
            "upstream_state_change_failed", state_id=state_id, status=upstream.status_code
        )
        return error_response(502, "Failed to reach upstream state API")

    moment = parse_date_header(upstream.headers.get("date")) or datetime.now(timezone.utc)
    _capture(request, state_id, extension, moment)
    return _relay(upstream)


@router.put(STATE_PATH + "/{state_id}")
async def transparent_state_change(request: Request, state_id: str):
    body = await request.body()

    try:
        upstream = await _put_state(request, state_id, body, _forwardable(request.headers))
    except httpx.HTTPError as exc:
        logger.error("transparent_proxy_failed", state_id=state_id, error=str(exc))
        return error_response(502, "Upstream state API failed")
    if upstream.status_code >= 500:
        logger.error(
            "transparent_proxy_failed", state_id=state_id, status=upstream.status_code
        )
        return error_response(502, "Upstream state API failed")

    extension = resolve_extension(request.query_params.get("extension"), body)
    _capture(request, state_id, extension, parse_date_header(upstream.headers.get("date")))
    return _relay(upstream)


@router.api_route(
    "/ucp/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
)
async def ucp_proxy(request: Request, path: str):
    state = request.app.state
    url = f"{state.settings.base_url.rstrip('/')}/ucp/{path}"

    try:
        upstream = await state.http.request(
            request.method,
            url,
            params=list(request.query_params.multi_items()),
            content=await request.body(),
            headers=_forwardable(request.headers),
        )
    except httpx.HTTPError as exc:
        logger.warning("ucp_proxy_failed", method=request.method, path=path, error=str(exc))
        return error_response(502, "Upstream request failed")

    logger.debug("ucp_proxied", method=request.method, path=path, status=upstream.status_code)
    return _relay(upstream)


@router.get("/api/state-changes")
async def state_changes(request: Request, start: str | None = None, end: str | None = None):
    start_dt = parse_iso_datetime(start) if start else None
    end_dt = parse_iso_datetime(end) if end else None
    if (start and start_dt is None) or (end and end_dt is None):
        return error_response(400, "Invalid date format")

    changes = request.app.state.store.changes_between(start_dt, end_dt)
    return {ext: [c.to_dict() for c in items] for ext, items in changes.items()}
