"""Issue search that works around the ~50 result cap of Jira's search/jql."""

import logging
import time
from typing import Optional

from services.date_utils import add_days, iter_days, subtract_days
from services.errors import JiraDeadlineExceeded
from services.jql_builder import build_jql

DEFAULT_LOOKBACK_DAYS = 7


def effective_window(date_from: str, date_to: str, lookback_days: int = DEFAULT_LOOKBACK_DAYS) -> tuple:
    """Widen [date_from, date_to] by the lookback on both sides.

    worklogDate matches when a worklog was recorded, which can be a few days
    after the day it was started; the extra days catch those issues.
    """
    return subtract_days(date_from, lookback_days), add_days(date_to, lookback_days)


def merge_unique_issues(accumulated: list, seen_keys: set, issues: list) -> int:
    """Append issues whose key hasn't been seen yet; return how many were added."""
    added = 0
    for issue in issues:
        key = issue.get("key")
        if key in seen_keys:
            continue
        seen_keys.add(key)
        accumulated.append(issue)
        added += 1
    return added


def fetch_issues_by_day(client, cloud_id: str,
                        date_from: str, date_to: str,
                        base_jql: Optional[str] = None,
                        project_key: Optional[str] = None,
                        username: Optional[str] = None,
                        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
                        deadline: Optional[float] = None,
                        logger: Optional[logging.Logger] = None) -> list:
    """Search issues one day at a time across the widened window.

    One search per calendar day of [date_from - lookback, date_to + lookback],
    run sequentially to stay clear of rate limits. Issues are deduplicated by
    key, keeping the first occurrence.

    Args:
        client: JiraCloudClient (anything with search_issues(jql, cloud_id))
        cloud_id: Tenant the searches run against
        date_from: YYYY-MM-DD start of the requested range
        date_to: YYYY-MM-DD end of the requested range
        base_jql: Optional JQL the day filters are ANDed onto
        project_key: Optional project filter
        username: Optional worklog author filter
        lookback_days: Days added on each side of the range
        deadline: Optional time.monotonic() value after which no more
            searches are started

    Returns:
        List of unique issue dicts in discovery order.
    """
    log = logger or logging.getLogger(__name__)
    window_start, window_end = effective_window(date_from, date_to, lookback_days)

    issues = []
    seen_keys = set()
    searches = 0

    for day in iter_days(window_start, window_end):
        if deadline is not None and time.monotonic() > deadline:
            raise JiraDeadlineExceeded(f"Deadline exceeded while searching issues for {day}")

        jql = build_jql(base_jql, day, day, project_key, expand_range=False, username=username)
        day_issues = client.search_issues(jql, cloud_id)
        added = merge_unique_issues(issues, seen_keys, day_issues)
        searches += 1
        log.debug(f"{day}: {len(day_issues)} issues returned, {added} new")

    log.info(
        f"Searched {searches} days ({window_start} to {window_end}), "
        f"found {len(issues)} unique issues"
    )
    return issues
