"""Reports API.

Agent status report (merged with login/logoff times) and the agent events
views consumed by the web UI.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from agent_activity_report.events import extract_login_logoff, filter_available_or_logoff
from agent_activity_report.events.timestamps import parse_iso_datetime
from agent_activity_report.exceptions import AgentReportError
from agent_activity_report.reporting import merge_login_logoff

logger = structlog.get_logger()

router = APIRouter(tags=["reports"])


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def parse_epoch(value: str | None) -> int | None:
    if value is None or not value.strip().lstrip("-").isdigit():
        return None
    return int(value)


@router.get("/api/agents")
async def agents_report(
    request: Request,
    account: str | None = None,
    start: str | None = None,
    end: str | None = None,
):
    if not account or not start or not end:
        return error_response(400, "Missing account, start or end query params")

    start_dt = parse_iso_datetime(start)
    end_dt = parse_iso_datetime(end)
    if start_dt is None or end_dt is None:
        return error_response(400, "Invalid date format")

    state = request.app.state
    data = await state.status_client.fetch_status(account, start_dt, end_dt)

    # Login/logoff times are an enrichment; the status report stands on its own.
    try:
        events = await state.events_client.fetch_events(
            account,
            int(start_dt.timestamp()),
            int(end_dt.timestamp()),
        )
        data = merge_login_logoff(data, extract_login_logoff(events))
    except AgentReportError as exc:
        logger.warning("login_logoff_merge_skipped", account=account, error=str(exc))

    for agent in data:
        extension = agent.get("extension")
        if extension in (None, ""):
            continue
        change = state.store.first_in_range(str(extension), start_dt, end_dt)
        if change is not None:
            agent["First Login Time"] = change.formatted_time

    return {"data": data}


def _epoch_range(
    account: str | None,
    start_date: str | None,
    end_date: str | None,
) -> tuple[int, int] | JSONResponse:
    if not account or start_date is None or end_date is None:
        return error_response(400, "Missing account, startDate or endDate query params")

    start = parse_epoch(start_date)
    end = parse_epoch(end_date)
    if start is None or end is None:
        return error_response(400, "startDate and endDate must be Unix timestamps in seconds")
    if start >= end:
        return error_response(400, "Start date must be before end date")
    return start, end


@router.get("/api/events")
async def login_logoff_events(
    request: Request,
    account: str | None = None,
    startDate: str | None = None,  # noqa: N803
    endDate: str | None = None,  # noqa: N803
):
    window = _epoch_range(account, startDate, endDate)
    if isinstance(window, JSONResponse):
        return window

    events = await request.app.state.events_client.fetch_events(account, *window)
    summaries = extract_login_logoff(events)
    return {"events": [s.model_dump(by_alias=True) for s in summaries]}


@router.get("/api/events/available")
async def available_events(
    request: Request,
    account: str | None = None,
    startDate: str | None = None,  # noqa: N803
    endDate: str | None = None,  # noqa: N803
):
    window = _epoch_range(account, startDate, endDate)
    if isinstance(window, JSONResponse):
        return window

    events = await request.app.state.events_client.fetch_events(account, *window)
    records = filter_available_or_logoff(events)
    return {"events": [r.model_dump(by_alias=True) for r in records]}
