"""Group worklogs by author and issue."""

from typing import Optional


def worklog_started_date(worklog: dict) -> Optional[str]:
    """Day the work was performed (YYYY-MM-DD), or None if unknown."""
    started = worklog.get("started")
    if not started:
        return None
    return started.split("T")[0]


def is_worklog_in_date_range(worklog: dict, date_from: Optional[str] = None,
                             date_to: Optional[str] = None) -> bool:
    """Check the started date against [date_from, date_to], both inclusive.

    The created date is deliberately ignored: hours belong to the day they
    were worked, not the day they were entered. Plain string comparison is
    enough since both sides are fixed-width YYYY-MM-DD.
    """
    if not date_from and not date_to:
        return True

    day = worklog_started_date(worklog)
    if not day:
        return False
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


def author_identifier(worklog: dict) -> Optional[str]:
    """Email, then display name, then account id of the worklog author."""
    author = worklog.get("author") or {}
    return author.get("emailAddress") or author.get("displayName") or author.get("accountId")


def format_hours(seconds: int) -> str:
    """Seconds as hours with two decimals, e.g. 3661 -> "1.02"."""
    return f"{seconds / 3600:.2f}"


def _issue_summary(issue: dict, worklogs: list) -> dict:
    fields = issue.get("fields") or {}
    return {
        "id": issue.get("id"),
        "key": issue.get("key"),
        "fields": {
            "summary": fields.get("summary") or "",
            "assignee": fields.get("assignee"),
            "worklog": worklogs,
        },
    }


def aggregate_hours_by_user(issues: list, worklogs_by_issue: dict,
                            date_from: Optional[str] = None,
                            date_to: Optional[str] = None,
                            username: Optional[str] = None,
                            user_filter_field: str = "accountId") -> list:
    """Total the worklog time per author and per issue.

    Args:
        issues: Issue dicts in the order they should be reported
        worklogs_by_issue: Issue key -> list of worklog dicts
        date_from: Optional inclusive YYYY-MM-DD lower bound on started
        date_to: Optional inclusive YYYY-MM-DD upper bound on started
        username: Optional author filter
        user_filter_field: Author attribute compared with `username`
            ("accountId" or "emailAddress")

    Returns:
        List of {user, totalHours, worklogs, issues} dicts, one per author,
        in order of first appearance. `issues` only carries the worklogs of
        that author.
    """
    by_user = {}

    for issue in issues:
        issue_key = issue.get("key")
        for worklog in worklogs_by_issue.get(issue_key, []):
            if not is_worklog_in_date_range(worklog, date_from, date_to):
                continue

            user = author_identifier(worklog)
            if not user:
                continue

            if username and (worklog.get("author") or {}).get(user_filter_field) != username:
                continue

            bucket = by_user.setdefault(user, {"seconds": 0, "issues": {}})
            bucket["seconds"] += max(worklog.get("timeSpentSeconds") or 0, 0)

            entry = bucket["issues"].setdefault(issue_key, {"issue": issue, "worklogs": []})
            entry["worklogs"].append(worklog)

    results = []
    for user, bucket in by_user.items():
        entries = list(bucket["issues"].values())
        results.append({
            "user": user,
            "totalHours": format_hours(bucket["seconds"]),
            "worklogs": [w for entry in entries for w in entry["worklogs"]],
            "issues": [_issue_summary(entry["issue"], entry["worklogs"]) for entry in entries],
        })

    return results
