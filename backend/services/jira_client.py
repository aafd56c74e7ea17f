"""Jira Cloud REST client authenticated with an OAuth bearer token."""

import logging
from typing import Optional

import requests

from services.errors import JiraAuthError, JiraTransportError
from services.settings import WorklogSettings

SEARCH_FIELDS = ["summary", "assignee", "worklog"]

AUTH_FAILURE_STATUSES = (401, 403)


class JiraCloudClient:
    """Thin wrapper over the three Jira Cloud calls the aggregation needs.

    Every method raises JiraAuthError on 401/403 and JiraTransportError on
    any other failure; nothing is retried here.
    """

    def __init__(self, access_token: str, settings: Optional[WorklogSettings] = None,
                 logger: Optional[logging.Logger] = None):
        self.access_token = access_token
        self.settings = settings or WorklogSettings()
        self.logger = logger or logging.getLogger(__name__)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    def _base_url(self, cloud_id: str) -> str:
        return f"{self.settings.atlassian_api_url}/ex/jira/{cloud_id}/rest/api/3"

    def _send(self, method: str, url: str, context: str, **kwargs):
        """Send a request and return the decoded JSON body."""
        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(),
                timeout=self.settings.request_timeout,
                **kwargs
            )
        except requests.exceptions.Timeout as e:
            raise JiraTransportError(f"{context}: request to Jira timed out", body=str(e)) from e
        except requests.exceptions.RequestException as e:
            raise JiraTransportError(f"{context}: failed to connect to Jira: {e}", body=str(e)) from e

        if response.status_code in AUTH_FAILURE_STATUSES:
            raise JiraAuthError("Invalid or expired access token")

        if not 200 <= response.status_code < 300:
            body = _response_body(response)
            self.logger.error(f"[{context}] Jira API error {response.status_code}: {body}")
            raise JiraTransportError(
                f"{context}: Jira API error ({response.status_code})",
                status=response.status_code,
                body=body,
            )

        try:
            return response.json()
        except ValueError as e:
            raise JiraTransportError(
                f"{context}: invalid JSON from Jira",
                status=response.status_code,
                body=getattr(response, "text", None),
            ) from e

    def _send_expecting(self, expected_type, method: str, url: str, context: str, **kwargs):
        """Like _send, but raise JiraTransportError unless the body is `expected_type`."""
        data = self._send(method, url, context, **kwargs)
        if not isinstance(data, expected_type):
            raise JiraTransportError(
                f"{context}: unexpected response shape from Jira",
                body=data,
            )
        return data

    def get_cloud_id(self) -> str:
        """Resolve the cloud id of the first resource granting the required scope."""
        url = f"{self.settings.atlassian_api_url}/oauth/token/accessible-resources"
        resources = self._send_expecting(list, "GET", url, "getCloudId")

        if not resources:
            raise JiraAuthError("No accessible Jira resources found for this token")

        for resource in resources:
            if not isinstance(resource, dict):
                continue
            if self.settings.required_scope in (resource.get("scopes") or []):
                self.logger.info(f"Resolved Jira cloud id {resource.get('id')}")
                return resource.get("id")

        raise JiraAuthError("No Jira resource found with required scopes")

    def search_issues(self, jql: str, cloud_id: str) -> list:
        """Run one JQL search.

        The search/jql endpoint has no usable pagination for this query shape
        and returns roughly 50 issues at most, so callers that need more must
        split the query (see services.issue_fetcher).
        """
        data = self._send_expecting(
            dict,
            "POST",
            f"{self._base_url(cloud_id)}/search/jql",
            "getIssues",
            json={"jql": jql, "fields": SEARCH_FIELDS},
        )
        return data.get("issues") or []

    def get_worklogs(self, issue_key: str, cloud_id: str) -> list:
        """Get every worklog of an issue, following startAt pagination."""
        page_size = self.settings.worklog_page_size
        all_worklogs = []
        start_at = 0

        while True:
            data = self._send_expecting(
                dict,
                "GET",
                f"{self._base_url(cloud_id)}/issue/{issue_key}/worklog",
                "getWorklogs",
                params={"startAt": start_at, "maxResults": page_size},
            )

            worklogs = data.get("worklogs") or []
            all_worklogs.extend(worklogs)
            self.logger.debug(
                f"{issue_key}: fetched {len(worklogs)} worklogs at startAt={start_at}"
            )

            # Without a total, only a short page ends the listing
            total = data.get("total")
            if total is not None and len(all_worklogs) >= total:
                break
            if len(worklogs) < page_size:
                break

            start_at += page_size

        return all_worklogs


def _response_body(response):
    try:
        return response.json()
    except ValueError:
        return getattr(response, "text", None)
