"""Shared fixtures for worklog hours tests."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from services.settings import WorklogSettings


def make_worklog(account_id, started, seconds, email=None, display_name=None, created=None):
    """Build a Jira worklog dict."""
    author = {"accountId": account_id}
    if email:
        author["emailAddress"] = email
    if display_name:
        author["displayName"] = display_name
    worklog = {
        "author": author,
        "timeSpentSeconds": seconds,
        "started": f"{started}T09:00:00.000+0000",
    }
    worklog["created"] = f"{created or started}T18:00:00.000+0000"
    return worklog


def make_issue(key, summary="", worklogs=None, total=None, issue_id=None, assignee=None):
    """Build a search result issue, optionally with an embedded worklog page."""
    fields = {"summary": summary, "assignee": assignee}
    if worklogs is not None:
        fields["worklog"] = {
            "startAt": 0,
            "maxResults": 20,
            "total": len(worklogs) if total is None else total,
            "worklogs": worklogs,
        }
    return {
        "id": issue_id or f"1{key.split('-')[-1].zfill(4)}",
        "key": key,
        "fields": fields,
    }


@pytest.fixture
def access_token():
    return "test-access-token"


@pytest.fixture
def settings():
    """Default settings without deadline so tests never race the clock."""
    return WorklogSettings(deadline_seconds=0)


@pytest.fixture
def accessible_resources():
    """Sample accessible-resources response."""
    return [
        {
            "id": "cloud-confluence",
            "name": "acme",
            "scopes": ["read:confluence-content.all"]
        },
        {
            "id": "cloud-123",
            "name": "acme",
            "scopes": ["read:jira-work", "read:jira-user"]
        }
    ]


@pytest.fixture
def alice_worklog():
    return make_worklog("acc-alice", "2024-01-05", 3600,
                        email="alice@example.com", display_name="Alice")


@pytest.fixture
def bob_worklog():
    return make_worklog("acc-bob", "2024-01-06", 1800, display_name="Bob")


@pytest.fixture
def sample_issues(alice_worklog, bob_worklog):
    """Two issues with complete embedded worklogs."""
    return [
        make_issue("PROJ-1", "Build login page", [alice_worklog], issue_id="10001"),
        make_issue("PROJ-2", "Fix logout bug", [bob_worklog, make_worklog(
            "acc-alice", "2024-01-06", 61, email="alice@example.com")], issue_id="10002"),
    ]


@pytest.fixture
def app(settings):
    """Create Flask test app."""
    from app import create_app
    app = create_app(settings=settings)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()


@pytest.fixture
def auth_headers(access_token):
    return {"Authorization": f"Bearer {access_token}"}
