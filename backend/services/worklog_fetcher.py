"""Bounded-concurrency worklog retrieval for a list of issues."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from services.errors import JiraAuthError, JiraDeadlineExceeded

DEFAULT_CONCURRENCY = 10


def embedded_worklogs(issue: dict) -> Optional[list]:
    """Return the worklogs embedded in a search result if they are complete.

    The search response carries a preview page of worklogs with the real
    total; when the total doesn't exceed the preview no extra call is needed.
    Returns None when the worklogs still have to be fetched.
    """
    page = (issue.get("fields") or {}).get("worklog")
    if not page or page.get("worklogs") is None:
        return None

    worklogs = page["worklogs"]
    if page.get("total", 0) <= len(worklogs):
        return worklogs
    return None


class WorklogFetcher:
    """Fetch the full worklog list of every issue.

    Requests run in batches of `concurrency`; a batch finishes completely
    before the next starts. A failing issue (other than an auth failure)
    yields an empty list and is reported in `degraded_keys` instead of
    failing the whole aggregation.
    """

    def __init__(self, client, concurrency: int = DEFAULT_CONCURRENCY,
                 logger: Optional[logging.Logger] = None):
        self.client = client
        self.concurrency = concurrency
        self.logger = logger or logging.getLogger(__name__)

    def fetch_issue_worklogs(self, issue_key: str, cloud_id: str) -> tuple:
        """Fetch one issue's worklogs.

        Returns:
            Tuple of (issue_key, worklogs, degraded)
        """
        try:
            return issue_key, self.client.get_worklogs(issue_key, cloud_id), False
        except JiraAuthError:
            raise
        except Exception as e:
            self.logger.warning(f"Worklog fetch failed for {issue_key}, using no worklogs: {e}")
            return issue_key, [], True

    def fetch_all(self, issues: list, cloud_id: str, deadline: Optional[float] = None) -> tuple:
        """Resolve worklogs for every issue.

        Args:
            issues: Issue dicts from the search
            cloud_id: Tenant id
            deadline: Optional time.monotonic() value after which no new
                batch is started

        Returns:
            Tuple of (dict mapping issue key to worklog list, list of
            degraded issue keys)
        """
        worklogs_by_issue = {}
        pending = []

        for issue in issues:
            worklogs = embedded_worklogs(issue)
            if worklogs is None:
                pending.append(issue["key"])
            else:
                worklogs_by_issue[issue["key"]] = worklogs

        self.logger.debug(
            f"{len(worklogs_by_issue)} issues had complete embedded worklogs, "
            f"{len(pending)} need fetching"
        )

        degraded_keys = []
        for start in range(0, len(pending), self.concurrency):
            if deadline is not None and time.monotonic() > deadline:
                raise JiraDeadlineExceeded("Deadline exceeded while fetching worklogs")

            batch = pending[start:start + self.concurrency]
            with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
                futures = {
                    executor.submit(self.fetch_issue_worklogs, key, cloud_id): key
                    for key in batch
                }
                for future in as_completed(futures):
                    issue_key, worklogs, degraded = future.result()
                    worklogs_by_issue[issue_key] = worklogs
                    if degraded:
                        degraded_keys.append(issue_key)

        return worklogs_by_issue, sorted(degraded_keys)
