"""Helpers shared by blueprints that act on behalf of a Jira user."""

from flask import current_app, request

from services.settings import WorklogSettings

BEARER_PREFIX = "Bearer "

# Values some clients send in place of leaving a field out
ABSENT_SENTINELS = {"undefined", "null", "none"}


def get_bearer_token():
    """Extract the OAuth access token from the Authorization header.

    Returns:
        The token, or None when the header is missing or not a bearer token.
    """
    authorization = request.headers.get("Authorization", "")
    if not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def optional_value(value):
    """Turn empty strings and textual sentinels like "undefined" into None."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    if not value or value.lower() in ABSENT_SENTINELS:
        return None
    return value


def get_settings() -> WorklogSettings:
    return current_app.config.get("WORKLOG_SETTINGS") or WorklogSettings()
