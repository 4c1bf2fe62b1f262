"""Command-line interface for Agent Activity Report.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from agent_activity_report import __version__
from agent_activity_report.config import Settings, get_settings
from agent_activity_report.events import extract_login_logoff, filter_available_or_logoff
from agent_activity_report.events.timestamps import parse_iso_datetime
from agent_activity_report.exceptions import AgentReportError
from agent_activity_report.models import ReportView
from agent_activity_report.portal import (
    AgentEventsClient,
    AgentStatusClient,
    TokenService,
    create_http_client,
)
from agent_activity_report.reporting import (
    format_availability_table,
    format_events_table,
    format_login_logoff_table,
    format_status_table,
    write_report,
)

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agent-report", description="Agent Activity Report")
    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser(
        "status",
        help="Fetch the agents status & activity report",
    )
    status_parser.add_argument("account", help="Tenant / account id, e.g. mc_int")
    status_parser.add_argument("start", help="Range start, ISO 8601 (e.g. 2025-07-02T08:00:00Z)")
    status_parser.add_argument("end", help="Range end, ISO 8601")
    status_parser.add_argument("--name", default=None, help="Filter by agent name")
    status_parser.add_argument("--extension", default=None, help="Filter by extension")
    status_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write to a .csv or .json file instead of printing a table",
    )

    events_parser = subparsers.add_parser(
        "events",
        help="Fetch agent activity events and report login/logoff times",
    )
    events_parser.add_argument("account", help="Tenant / account id, e.g. mc_int")
    events_parser.add_argument("start_date", type=int, help="Range start, Unix epoch seconds")
    events_parser.add_argument("end_date", type=int, help="Range end, Unix epoch seconds")
    events_parser.add_argument(
        "--time-range",
        default=None,
        help="Optional portal time range such as 1h, 1d or 1w",
    )
    events_parser.add_argument(
        "--view",
        choices=[v.value for v in ReportView],
        default=ReportView.SUMMARY.value,
        help="summary: first login/last logoff per agent; available: enabled "
        "available/logoff events; raw: every event (default: summary)",
    )
    events_parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Events per page (default: settings events_page_size)",
    )
    events_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write to a .csv or .json file instead of printing a table",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the web UI, report API and /ucp proxy")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: settings host)")
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Port (default: settings port)"
    )

    return parser


def _configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.debug:
        level = logging.DEBUG
    # Logs go to stderr so stdout carries only the report.
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def _save(records: list, output: Path) -> None:
    write_report(records, output)
    print(f"Saved {len(records)} records to {output}")


async def _cmd_status(args: argparse.Namespace) -> int:
    settings = get_settings()
    start = parse_iso_datetime(args.start)
    end = parse_iso_datetime(args.end)
    if start is None or end is None:
        print("Invalid ISO date/time strings.", file=sys.stderr)
        return 1

    async with create_http_client(settings) as http:
        tokens = TokenService(http, settings)
        client = AgentStatusClient(http, settings, tokens)
        records = await client.fetch_status(
            args.account,
            start,
            end,
            name=args.name,
            extension=args.extension,
        )

    if args.output:
        _save(records, args.output)
        return 0

    print("\n=== Agent Status Report ===")
    print(format_status_table(records))
    print(f"\nTotal Agents: {len(records)}")
    return 0


async def _cmd_events(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.start_date >= args.end_date:
        print("Start date must be before end date.", file=sys.stderr)
        return 1

    async with create_http_client(settings) as http:
        tokens = TokenService(http, settings)
        client = AgentEventsClient(http, settings, tokens)
        events = await client.fetch_events(
            args.account,
            args.start_date,
            args.end_date,
            time_range=args.time_range,
            page_size=args.page_size,
        )

    view = ReportView(args.view)
    if view is ReportView.SUMMARY:
        records = extract_login_logoff(events)
        title, table = "Agent Login/LogOff Summary", format_login_logoff_table(records)
    elif view is ReportView.AVAILABLE:
        records = filter_available_or_logoff(events)
        title, table = "Available & Logoff Events", format_availability_table(records)
    else:
        records = events
        title, table = "Agent Events Report", format_events_table(records)

    if args.output:
        _save(records, args.output)
        return 0

    print(f"\n=== {title} ===")
    print(table)
    print(f"\nTotal: {len(records)}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from agent_activity_report.web import create_app

    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Agent Activity Report CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    _configure_logging(settings)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    logger.debug("agent_report_started", version=__version__, command=parsed.command)

    try:
        if parsed.command == "status":
            return asyncio.run(_cmd_status(parsed))
        if parsed.command == "events":
            return asyncio.run(_cmd_events(parsed))
        if parsed.command == "serve":
            return _cmd_serve(parsed)
    except AgentReportError as exc:
        logger.error("command_failed", command=parsed.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
