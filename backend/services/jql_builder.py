"""JQL construction for worklog searches."""

from typing import Optional

from services.date_utils import add_days, subtract_days, today_iso

# Widening applied to worklogDate bounds on the single-search path
WORKLOG_RANGE_EXPANSION_DAYS = 30

# Only issues created this many days before the range start are searched
ISSUE_CREATED_LOOKBACK_DAYS = 365

DEFAULT_WORKLOG_WINDOW = "-30d"

ORDER_BY = "ORDER BY created DESC"


def quote_jql_value(value: str) -> str:
    """Wrap a value in double quotes, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_jql(base_jql: Optional[str] = None,
              date_from: Optional[str] = None,
              date_to: Optional[str] = None,
              project_key: Optional[str] = None,
              expand_range: bool = True,
              username: Optional[str] = None,
              today: Optional[str] = None) -> str:
    """Build the JQL used to find issues with worklogs in a date range.

    worklogDate in Jira matches the day a worklog was *recorded*, while the
    aggregation filters on the day the work was *started*, so the date
    clauses only pre-filter. With `expand_range` the bounds are widened by
    30 days on each side; the range-split fetcher passes False and one day
    at a time so the per-day queries don't overlap.

    Args:
        base_jql: Optional JQL expression the filters are ANDed onto
        date_from: Optional YYYY-MM-DD lower bound
        date_to: Optional YYYY-MM-DD upper bound
        project_key: Optional project key, skipped when base_jql already
            mentions a project
        expand_range: Widen the worklogDate bounds by 30 days
        username: Optional worklog author filter
        today: YYYY-MM-DD used for the created bound when date_from is
            absent; defaults to the current UTC date

    Returns:
        The JQL string, or "" when there is nothing to filter on.
    """
    jql = (base_jql or "").strip()
    filters = []

    if username:
        filters.append(f"worklogAuthor = {quote_jql_value(username)}")

    if project_key and "project" not in jql.lower():
        filters.append(f"project = {quote_jql_value(project_key)}")

    if date_from or date_to:
        if date_from:
            lower = subtract_days(date_from, WORKLOG_RANGE_EXPANSION_DAYS) if expand_range else date_from
            filters.append(f'worklogDate >= "{lower}"')
        if date_to:
            upper = add_days(date_to, WORKLOG_RANGE_EXPANSION_DAYS) if expand_range else date_to
            filters.append(f'worklogDate <= "{upper}"')

        created_anchor = date_from or today or today_iso()
        created_limit = subtract_days(created_anchor, ISSUE_CREATED_LOOKBACK_DAYS)
        filters.append(f'created >= "{created_limit}"')
    elif not jql:
        created_limit = subtract_days(today or today_iso(), ISSUE_CREATED_LOOKBACK_DAYS)
        filters.append(f"worklogDate >= {DEFAULT_WORKLOG_WINDOW}")
        filters.append(f'created >= "{created_limit}"')

    if filters:
        filters_str = " AND ".join(filters)
        jql = f"{jql} AND {filters_str}" if jql else filters_str

    if jql:
        jql = f"{jql} {ORDER_BY}"

    return jql
