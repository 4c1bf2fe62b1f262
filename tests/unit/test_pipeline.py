"""Unit tests for login/logoff extraction and the availability filter."""

import pytest
import structlog
from structlog.testing import capture_logs

from agent_activity_report.events import (
    coerce_event,
    extract_login_logoff,
    filter_available_or_logoff,
)
from agent_activity_report.models import AgentKey, RawEvent


class TestCoerceEvent:
    """Test suite for coerce_event."""

    def test_passes_raw_events_through(self) -> None:
        """Test that an existing RawEvent is returned unchanged."""
        event = RawEvent(state="Login")

        assert coerce_event(event) is event

    def test_non_records_are_skipped(self) -> None:
        """Test that values that are not records become None."""
        assert coerce_event("Login") is None
        assert coerce_event(None) is None
        assert coerce_event(42) is None


class TestExtractLoginLogoff:
    """Test suite for extract_login_logoff."""

    def test_end_to_end_scenario(self, make_event) -> None:
        """Test earliest login and latest logoff for a single agent."""
        events = [
            make_event(state="Login", Timestamp=1000),
            make_event(state="Logoff", Timestamp=2000),
            make_event(state="Login", Timestamp=500),
        ]

        summaries = extract_login_logoff(events)

        assert len(summaries) == 1
        summary = summaries[0]
        assert (summary.user_id, summary.ext) == AgentKey("u1", "100")
        assert summary.first_login_timestamp == 500
        assert summary.first_login_time == "01/01/1970, 05:38:20"
        assert summary.last_logoff_timestamp == 2000
        assert summary.last_logoff_time == "01/01/1970, 06:03:20"

    def test_min_and_max_are_order_independent(self, make_event) -> None:
        """Test min/max selection over unsorted timestamps."""
        events = [make_event(state="Login", Timestamp=ts) for ts in (300, 100, 200)]
        events += [make_event(state="Logoff", Timestamp=ts) for ts in (300, 100, 200)]

        summary = extract_login_logoff(events)[0]

        assert summary.first_login_timestamp == 100
        assert summary.last_logoff_timestamp == 300

    def test_one_summary_per_agent_key(self, sample_events) -> None:
        """Test grouping by (user_id, ext) in first-appearance order."""
        summaries = extract_login_logoff(sample_events)

        assert [s.username for s in summaries] == ["Prashant Rajput", "Meera Shah"]
        prashant, meera = summaries
        assert prashant.first_login_time == "24/07/2025, 20:45:00"
        assert prashant.last_logoff_time == "25/07/2025, 04:45:00"
        assert meera.first_login_timestamp == 1753371000
        assert meera.last_logoff_time is None
        assert meera.last_logoff_timestamp is None

    def test_same_user_on_two_extensions(self, make_event) -> None:
        """Test that one user on two extensions yields two summaries."""
        events = [make_event(ext="100"), make_event(ext="200")]

        summaries = extract_login_logoff(events)

        assert [s.ext for s in summaries] == ["100", "200"]

    def test_agent_without_markers_has_absent_times(self, make_event) -> None:
        """Test that absent values are None, never zero or empty."""
        events = [make_event(state="available"), make_event(state="Login", enabled=False)]

        summary = extract_login_logoff(events)[0]

        assert summary.first_login_time is None
        assert summary.first_login_timestamp is None
        assert summary.last_logoff_time is None
        assert summary.last_logoff_timestamp is None

    def test_records_missing_identity_are_dropped(self, make_event) -> None:
        """Test that events without user_id, username or ext are excluded."""
        events = [
            make_event(user_id=None),
            make_event(username=""),
            make_event(ext=None),
            {"state": "Login", "enabled": True, "Timestamp": 10},
        ]

        assert extract_login_logoff(events) == []

    def test_disabled_markers_are_inert(self, sample_events, make_event) -> None:
        """Test that adding disabled Login/Logoff events changes nothing."""
        noisy = sample_events + [
            make_event(user_id="37cb9e0b6c3a4c4e", ext="1001", username="Prashant Rajput",
                       state="Login", enabled=False, Timestamp=1),
            make_event(user_id="5a1f00d2e1b94b77", ext="1002", username="Meera Shah",
                       state="Logoff", enabled=False, Timestamp=1753400000),
        ]

        assert extract_login_logoff(noisy) == extract_login_logoff(sample_events)

    def test_incomplete_records_do_not_alter_others(self, sample_events, make_event) -> None:
        """Test that a record missing ext leaves every summary untouched."""
        noisy = sample_events + [
            make_event(user_id="37cb9e0b6c3a4c4e", ext=None, username="Prashant Rajput",
                       state="Login", Timestamp=1),
        ]

        assert extract_login_logoff(noisy) == extract_login_logoff(sample_events)

    def test_identity_comes_from_first_event(self, make_event) -> None:
        """Test that later events never overwrite the agent's username."""
        events = [make_event(username="Asha"), make_event(username="Asha K")]

        assert extract_login_logoff(events)[0].username == "Asha"

    def test_markers_without_timestamp_are_ignored(self, make_event) -> None:
        """Test that markers with missing or invalid timestamps do not count."""
        events = [
            make_event(state="Login", Timestamp=None),
            make_event(state="Login", Timestamp=0),
            make_event(state="Logoff", Timestamp="later"),
        ]

        summary = extract_login_logoff(events)[0]

        assert summary.first_login_timestamp is None
        assert summary.last_logoff_timestamp is None

    def test_out_of_range_timestamp_does_not_abort_batch(self, make_event) -> None:
        """Test that a millisecond epoch is ignored and other agents still report."""
        events = [
            make_event(user_id="u1", state="Login", Timestamp=1000),
            make_event(user_id="u2", ext="200", state="Logoff", Timestamp=1753371000000),
            make_event(user_id="u2", ext="200", state="Login", Timestamp=10**15),
        ]

        first, second = extract_login_logoff(events)

        assert first.first_login_timestamp == 1000
        assert second.user_id == "u2"
        assert second.first_login_timestamp is None
        assert second.last_logoff_timestamp is None

    def test_marker_counts_are_logged(self, make_event) -> None:
        """Test that per-batch Login/Logoff marker totals reach the debug log."""
        structlog.reset_defaults()
        events = [
            make_event(state="Login", Timestamp=100),
            make_event(state="Login", Timestamp=200),
            make_event(state="Logoff", Timestamp=300),
            make_event(state="Login", enabled=False, Timestamp=50),
        ]

        with capture_logs() as logs:
            extract_login_logoff(events)

        entry = next(e for e in logs if e["event"] == "login_logoff_extracted")
        assert entry["login_markers"] == 2
        assert entry["logoff_markers"] == 1

    def test_non_record_entries_are_skipped(self, make_event) -> None:
        """Test that junk inside the batch does not abort extraction."""
        events = [None, "Login", 5, make_event(Timestamp=1000)]

        assert extract_login_logoff(events)[0].first_login_timestamp == 1000

    def test_empty_input(self) -> None:
        """Test that an empty batch yields no summaries."""
        assert extract_login_logoff([]) == []

    def test_accepts_generators(self, make_event) -> None:
        """Test that any iterable of records is accepted."""
        summaries = extract_login_logoff(make_event(Timestamp=ts) for ts in (5, 3))

        assert summaries[0].first_login_timestamp == 3

    def test_is_idempotent(self, sample_events) -> None:
        """Test that repeated calls on the same input return equal results."""
        assert extract_login_logoff(sample_events) == extract_login_logoff(sample_events)

    @pytest.mark.parametrize("value", [None, 42, "events", b"events", {"state": "Login"}])
    def test_non_sequence_input_raises(self, value) -> None:
        """Test that an input which is not a batch of records is an error."""
        with pytest.raises(TypeError):
            extract_login_logoff(value)


class TestFilterAvailableOrLogoff:
    """Test suite for filter_available_or_logoff."""

    def test_availability_scenario(self, make_event) -> None:
        """Test selection and timestamp ordering of audit records."""
        events = [
            make_event(state="available", enabled=True, Timestamp=100),
            make_event(state="available", enabled=False, Timestamp=50),
            make_event(state="Logoff", enabled=True, Timestamp=75),
        ]

        records = filter_available_or_logoff(events)

        assert [r.timestamp for r in records] == [75, 100]
        assert [r.state for r in records] == ["Logoff", "available"]
        assert all(r.enabled is True for r in records)
        assert records[1].timestamp_display == "01/01/1970, 05:31:40"

    def test_ties_keep_input_order(self, make_event) -> None:
        """Test that the sort is stable on equal timestamps."""
        events = [
            make_event(state="logoff", username="first", Timestamp=10),
            make_event(state="available", username="second", Timestamp=10),
        ]

        records = filter_available_or_logoff(events)

        assert [r.username for r in records] == ["first", "second"]

    def test_not_a_per_agent_reduction(self, make_event) -> None:
        """Test that every matching event of an agent is returned."""
        events = [make_event(state="available", Timestamp=ts) for ts in (3, 1, 2)]

        assert [r.timestamp for r in filter_available_or_logoff(events)] == [1, 2, 3]

    def test_records_without_timestamp_are_skipped(self, make_event) -> None:
        """Test that matching events lacking a valid time are left out."""
        events = [make_event(state="available", Timestamp=None)]

        assert filter_available_or_logoff(events) == []

    def test_out_of_range_timestamps_are_skipped(self, make_event) -> None:
        """Test that epochs datetime cannot represent are left out, not raised."""
        events = [
            make_event(state="available", Timestamp=10**15),
            make_event(state="Logoff", Timestamp=1753371000000),
            make_event(state="available", Timestamp=100),
        ]

        assert [r.timestamp for r in filter_available_or_logoff(events)] == [100]

    def test_sample_batch(self, sample_events) -> None:
        """Test the filter over a realistic batch."""
        records = filter_available_or_logoff(sample_events)

        assert [(r.username, r.state) for r in records] == [
            ("Prashant Rajput", "available"),
            ("Prashant Rajput", "Logoff"),
        ]

    def test_non_sequence_input_raises(self) -> None:
        """Test that a mapping is not accepted as a batch."""
        with pytest.raises(TypeError):
            filter_available_or_logoff({"state": "available"})
