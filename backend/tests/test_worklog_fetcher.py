"""Tests for WorklogFetcher."""

import threading
import time
from unittest.mock import Mock

import pytest

from conftest import make_issue, make_worklog
from services.errors import JiraAuthError, JiraDeadlineExceeded, JiraTransportError
from services.worklog_fetcher import WorklogFetcher, embedded_worklogs


class TestEmbeddedWorklogs:
    """Test reuse of the worklog page embedded in search results."""

    def test_complete_page_is_used(self, alice_worklog):
        issue = make_issue("PROJ-1", worklogs=[alice_worklog])
        assert embedded_worklogs(issue) == [alice_worklog]

    def test_partial_page_needs_fetch(self, alice_worklog):
        issue = make_issue("PROJ-1", worklogs=[alice_worklog], total=25)
        assert embedded_worklogs(issue) is None

    def test_missing_page_needs_fetch(self):
        assert embedded_worklogs(make_issue("PROJ-1")) is None
        assert embedded_worklogs({"key": "PROJ-1"}) is None

    def test_empty_complete_page(self):
        issue = make_issue("PROJ-1", worklogs=[])
        assert embedded_worklogs(issue) == []


class TestFetchAll:
    """Test the bounded fan-out."""

    def test_skips_network_for_embedded_worklogs(self, alice_worklog):
        client = Mock()
        fetcher = WorklogFetcher(client)

        worklogs, degraded = fetcher.fetch_all([make_issue("PROJ-1", worklogs=[alice_worklog])], "cloud-123")

        assert worklogs == {"PROJ-1": [alice_worklog]}
        assert degraded == []
        client.get_worklogs.assert_not_called()

    def test_fetches_incomplete_issues(self, alice_worklog, bob_worklog):
        client = Mock()
        client.get_worklogs.return_value = [alice_worklog, bob_worklog]
        fetcher = WorklogFetcher(client)

        issues = [make_issue("PROJ-1", worklogs=[alice_worklog], total=2)]
        worklogs, degraded = fetcher.fetch_all(issues, "cloud-123")

        assert worklogs == {"PROJ-1": [alice_worklog, bob_worklog]}
        client.get_worklogs.assert_called_once_with("PROJ-1", "cloud-123")

    def test_failure_degrades_to_empty(self, alice_worklog):
        """One failing issue doesn't abort its siblings."""
        def get_worklogs(issue_key, cloud_id):
            if issue_key == "PROJ-2":
                raise JiraTransportError("boom", status=500)
            return [alice_worklog]

        client = Mock()
        client.get_worklogs.side_effect = get_worklogs
        fetcher = WorklogFetcher(client)

        issues = [make_issue("PROJ-1"), make_issue("PROJ-2"), make_issue("PROJ-3")]
        worklogs, degraded = fetcher.fetch_all(issues, "cloud-123")

        assert worklogs == {"PROJ-1": [alice_worklog], "PROJ-2": [], "PROJ-3": [alice_worklog]}
        assert degraded == ["PROJ-2"]

    def test_unexpected_error_also_degrades(self):
        client = Mock()
        client.get_worklogs.side_effect = KeyError("worklogs")
        fetcher = WorklogFetcher(client)

        worklogs, degraded = fetcher.fetch_all([make_issue("PROJ-1")], "cloud-123")

        assert worklogs == {"PROJ-1": []}
        assert degraded == ["PROJ-1"]

    def test_auth_error_propagates(self):
        client = Mock()
        client.get_worklogs.side_effect = JiraAuthError("expired")
        fetcher = WorklogFetcher(client)

        with pytest.raises(JiraAuthError):
            fetcher.fetch_all([make_issue("PROJ-1"), make_issue("PROJ-2")], "cloud-123")

    def test_concurrency_ceiling_respected(self):
        lock = threading.Lock()
        state = {"in_flight": 0, "max_in_flight": 0}

        def get_worklogs(issue_key, cloud_id):
            with lock:
                state["in_flight"] += 1
                state["max_in_flight"] = max(state["max_in_flight"], state["in_flight"])
            time.sleep(0.01)
            with lock:
                state["in_flight"] -= 1
            return [make_worklog("acc-1", "2024-01-05", 60)]

        client = Mock()
        client.get_worklogs.side_effect = get_worklogs
        fetcher = WorklogFetcher(client, concurrency=3)

        issues = [make_issue(f"PROJ-{n}") for n in range(1, 11)]
        worklogs, degraded = fetcher.fetch_all(issues, "cloud-123")

        assert len(worklogs) == 10
        assert degraded == []
        assert 1 <= state["max_in_flight"] <= 3

    def test_deadline_stops_new_batches(self):
        client = Mock()
        fetcher = WorklogFetcher(client)

        with pytest.raises(JiraDeadlineExceeded):
            fetcher.fetch_all([make_issue("PROJ-1")], "cloud-123", deadline=time.monotonic() - 1)

        client.get_worklogs.assert_not_called()
