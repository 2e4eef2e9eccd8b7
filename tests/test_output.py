"""Tests for agent activity and age formatting."""

from datetime import datetime, timedelta, timezone

from calyptia_cli.cli.output import AGENT_ACTIVE_WINDOW, agent_status, fmt_age, is_agent_active

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestIsAgentActive:
    def test_never_reported(self):
        assert is_agent_active(None, NOW) is False

    def test_inside_window(self):
        assert is_agent_active(NOW - timedelta(minutes=1), NOW) is True

    def test_window_boundary_is_active(self):
        assert is_agent_active(NOW - AGENT_ACTIVE_WINDOW, NOW) is True

    def test_past_window(self):
        assert is_agent_active(NOW - AGENT_ACTIVE_WINDOW - timedelta(seconds=1), NOW) is False

    def test_naive_timestamp_is_utc(self):
        naive = (NOW - timedelta(minutes=1)).replace(tzinfo=None)
        assert is_agent_active(naive, NOW) is True


class TestAgentStatus:
    def test_never_reported(self):
        assert agent_status(None, NOW) == "inactive"

    def test_active(self):
        assert agent_status(NOW - timedelta(minutes=2), NOW) == "active"

    def test_inactive_reports_age(self):
        assert agent_status(NOW - timedelta(hours=3), NOW) == "inactive for 3 hours"

    def test_agrees_with_is_agent_active(self):
        for minutes in (0, 4, 5, 6, 60):
            ts = NOW - timedelta(minutes=minutes)
            assert (agent_status(ts, NOW) == "active") == is_agent_active(ts, NOW), minutes


def test_fmt_age_units():
    assert fmt_age(None, NOW) == "-"
    assert fmt_age(NOW - timedelta(seconds=30), NOW) == "30 seconds"
    assert fmt_age(NOW - timedelta(minutes=1), NOW) == "1 minute"
    assert fmt_age(NOW - timedelta(days=2, hours=5), NOW) == "2 days"
