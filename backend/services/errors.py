"""Errors raised while talking to Jira Cloud."""

from typing import Optional


class JiraError(Exception):
    """Base class for Jira access failures."""


class JiraAuthError(JiraError):
    """Credential is invalid, expired or lacks the required scope."""


class JiraTransportError(JiraError):
    """Any other upstream failure (non-2xx response, network error, bad payload)."""

    def __init__(self, message: str, status: Optional[int] = None, body=None):
        super().__init__(message)
        self.status = status
        self.body = body


class JiraDeadlineExceeded(JiraTransportError):
    """The overall aggregation deadline elapsed before the work finished."""
