"""Unit tests for the command-line interface."""

import json

import httpx
import pytest
import structlog

from agent_activity_report import cli
from agent_activity_report.portal import create_http_client


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo the logging configuration main() applies."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_portal(monkeypatch: pytest.MonkeyPatch, mock_settings):
    """Route every CLI request to an in-memory portal and return its state."""
    state: dict = {"events": [], "status": {"data": []}}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/login/oauth"):
            return httpx.Response(200, json={"accessToken": "tok"})
        if path == mock_settings.agent_status_endpoint:
            return httpx.Response(200, json=state["status"])
        if path == "/api/v2/reports/callcenter/agents/activity/events":
            return httpx.Response(200, json=state["events"])
        return httpx.Response(404)

    monkeypatch.setattr(cli, "get_settings", lambda: mock_settings)
    monkeypatch.setattr(
        cli,
        "create_http_client",
        lambda settings: create_http_client(settings, httpx.MockTransport(handler)),
    )
    return state


class TestCli:
    """Test suite for the CLI entry point."""

    def test_parser_requires_command(self) -> None:
        """Test that a subcommand is mandatory."""
        with pytest.raises(SystemExit):
            cli._build_parser().parse_args([])

    def test_events_summary(self, fake_portal, sample_events, capsys) -> None:
        """Test printing the login/logoff summary table."""
        fake_portal["events"] = sample_events

        exit_code = cli.main(["events", "acme", "1753315200", "1753401599"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "=== Agent Login/LogOff Summary ===" in out
        assert "24/07/2025, 20:45:00" in out
        assert "No Logoff" in out
        assert "Total: 2" in out

    def test_events_available_to_csv(self, fake_portal, sample_events, tmp_path, capsys) -> None:
        """Test writing the availability view to a CSV file."""
        fake_portal["events"] = sample_events
        output = tmp_path / "available.csv"

        exit_code = cli.main(
            ["events", "acme", "1753315200", "1753401599", "--view", "available", "--output",
             str(output)]
        )

        assert exit_code == 0
        assert f"Saved 2 records to {output}" in capsys.readouterr().out
        lines = output.read_text().splitlines()
        assert lines[0].startswith("user_id,username,ext,event,state,timestamp")
        assert len(lines) == 3

    def test_events_empty(self, fake_portal, capsys) -> None:
        """Test the message for an empty result."""
        exit_code = cli.main(["events", "acme", "1", "2", "--view", "raw"])

        assert exit_code == 0
        assert "No data available" in capsys.readouterr().out

    def test_events_rejects_inverted_range(self, fake_portal, capsys) -> None:
        """Test that a start after the end is refused."""
        assert cli.main(["events", "acme", "20", "10"]) == 1
        assert "Start date must be before end date" in capsys.readouterr().err

    def test_status_table(self, fake_portal, capsys) -> None:
        """Test printing the agents status report."""
        fake_portal["status"] = {"101": {"name": "A", "hold_time": 90}}

        exit_code = cli.main(["status", "acme", "2025-07-02T08:00:00Z", "2025-07-02T18:00:00Z"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "=== Agent Status Report ===" in out
        assert "00:01:30" in out
        assert "Total Agents: 1" in out

    def test_status_to_json(self, fake_portal, tmp_path) -> None:
        """Test writing the status report as JSON."""
        fake_portal["status"] = {"101": {"name": "A"}}
        output = tmp_path / "status.json"

        cli.main(["status", "acme", "2025-07-02T08:00:00Z", "2025-07-02T18:00:00Z",
                  "--output", str(output)])

        assert json.loads(output.read_text()) == [{"extension": "101", "name": "A"}]

    def test_status_invalid_dates(self, fake_portal, capsys) -> None:
        """Test that unparseable ISO dates are refused."""
        assert cli.main(["status", "acme", "yesterday", "today"]) == 1
        assert "Invalid ISO date/time strings" in capsys.readouterr().err

    def test_portal_errors_exit_non_zero(self, monkeypatch, mock_settings, capsys) -> None:
        """Test that authentication failures are reported, not raised."""
        monkeypatch.setattr(cli, "get_settings", lambda: mock_settings)
        monkeypatch.setattr(
            cli,
            "create_http_client",
            lambda settings: create_http_client(
                settings, httpx.MockTransport(lambda request: httpx.Response(401))
            ),
        )

        assert cli.main(["events", "acme", "1", "2"]) == 1
        assert "Error:" in capsys.readouterr().err
