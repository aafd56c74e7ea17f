"""Hours-by-user aggregation over Jira Cloud worklogs."""

import logging
import time
from typing import Optional

from services.date_utils import ISO_DATE_FORMAT, normalize_to_iso_date, parse_iso_date
from services.issue_fetcher import fetch_issues_by_day
from services.jira_client import JiraCloudClient
from services.jql_builder import build_jql
from services.settings import WorklogSettings
from services.worklog_aggregator import aggregate_hours_by_user
from services.worklog_fetcher import WorklogFetcher


class WorklogHoursService:
    """Collect worklogs for a date range and total them per user.

    Nothing is cached: the cloud id, issues and worklogs are fetched again on
    every call.
    """

    def __init__(self, access_token: str, settings: Optional[WorklogSettings] = None,
                 logger: Optional[logging.Logger] = None, client=None):
        self.settings = settings or WorklogSettings()
        self.logger = logger or logging.getLogger(__name__)
        self.client = client or JiraCloudClient(access_token, self.settings, self.logger)
        self.worklog_fetcher = WorklogFetcher(
            self.client, self.settings.worklog_concurrency, self.logger
        )

    def _deadline(self) -> Optional[float]:
        if not self.settings.deadline_seconds:
            return None
        return time.monotonic() + self.settings.deadline_seconds

    def get_issues(self, cloud_id: str, date_from: Optional[str], date_to: Optional[str],
                   base_jql: Optional[str] = None, project_key: Optional[str] = None,
                   username: Optional[str] = None, deadline: Optional[float] = None) -> list:
        """Find candidate issues.

        With both dates the range is searched day by day. Otherwise a single
        widened search is made, which returns at most ~50 issues.
        """
        if date_from and date_to:
            return fetch_issues_by_day(
                self.client, cloud_id, date_from, date_to,
                base_jql=base_jql,
                project_key=project_key,
                username=username,
                lookback_days=self.settings.lookback_days,
                deadline=deadline,
                logger=self.logger,
            )

        jql = build_jql(base_jql, date_from, date_to, project_key, expand_range=True, username=username)
        self.logger.debug(f"Single issue search: {jql}")
        return self.client.search_issues(jql, cloud_id)

    def get_hours_by_user(self, date_from: Optional[str] = None, date_to: Optional[str] = None,
                          username: Optional[str] = None, jql: Optional[str] = None,
                          project_key: Optional[str] = None) -> dict:
        """Total hours per user for worklogs started in [date_from, date_to].

        Args:
            date_from: Optional start date (YYYY-MM-DD, DD-MM-YYYY or DD/MM/YYYY)
            date_to: Optional end date, same formats
            username: Optional worklog author to restrict to
            jql: Optional base JQL expression
            project_key: Optional project key

        Returns:
            Dict with:
                - worklogs: per-user records (user, totalHours, worklogs, issues)
                - degradedIssues: number of issues whose worklogs couldn't be fetched
                - degradedIssueKeys: their keys

        Raises:
            JiraAuthError: token invalid, expired or missing the read scope
            JiraTransportError: tenant resolution or issue search failed
            ValueError: a date couldn't be parsed
        """
        date_from = _canonical_date(date_from)
        date_to = _canonical_date(date_to)
        deadline = self._deadline()

        cloud_id = self.client.get_cloud_id()

        issues = self.get_issues(
            cloud_id, date_from, date_to,
            base_jql=jql, project_key=project_key, username=username, deadline=deadline,
        )

        worklogs_by_issue, degraded_keys = self.worklog_fetcher.fetch_all(issues, cloud_id, deadline)

        results = aggregate_hours_by_user(
            issues, worklogs_by_issue, date_from, date_to,
            username=username,
            user_filter_field=self.settings.user_filter_field,
        )

        self.logger.info(
            f"Aggregated {len(issues)} issues into {len(results)} users "
            f"({len(degraded_keys)} degraded worklog fetches)"
        )

        return {
            "worklogs": results,
            "degradedIssues": len(degraded_keys),
            "degradedIssueKeys": degraded_keys,
        }


def _canonical_date(value: Optional[str]) -> Optional[str]:
    """Normalize and validate a date, returning zero-padded YYYY-MM-DD.

    strptime accepts "2024-1-5"; the aggregator compares dates as strings,
    so the value is always re-rendered in fixed width.

    Raises:
        ValueError: if the value is not a calendar date.
    """
    value = normalize_to_iso_date(value)
    if not value:
        return None
    return parse_iso_date(value).strftime(ISO_DATE_FORMAT)
