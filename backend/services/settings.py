"""Tunables for the worklog aggregation pipeline."""

import json
import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

USER_FILTER_FIELDS = ("accountId", "emailAddress")


class WorklogSettings:
    """Settings shared by the Jira client, the fetchers and the aggregator.

    `user_filter_field` decides which worklog author attribute the optional
    `username` filter is compared against: Jira account ids or email
    addresses both show up in practice, so it stays configurable.
    """

    # setting name -> (config file key, env var, type)
    FIELDS = {
        "atlassian_api_url": ("atlassianApiUrl", "WORKLOG_ATLASSIAN_API_URL", str),
        "required_scope": ("requiredScope", "WORKLOG_REQUIRED_SCOPE", str),
        "request_timeout": ("requestTimeout", "WORKLOG_REQUEST_TIMEOUT", float),
        "deadline_seconds": ("deadlineSeconds", "WORKLOG_DEADLINE_SECONDS", float),
        "worklog_concurrency": ("worklogConcurrency", "WORKLOG_CONCURRENCY", int),
        "worklog_page_size": ("worklogPageSize", "WORKLOG_PAGE_SIZE", int),
        "lookback_days": ("lookbackDays", "WORKLOG_LOOKBACK_DAYS", int),
        "user_filter_field": ("userFilterField", "WORKLOG_USER_FILTER_FIELD", str),
    }

    def __init__(self,
                 atlassian_api_url: str = "https://api.atlassian.com",
                 required_scope: str = "read:jira-work",
                 request_timeout: float = 30,
                 deadline_seconds: float = 300,
                 worklog_concurrency: int = 10,
                 worklog_page_size: int = 1000,
                 lookback_days: int = 7,
                 user_filter_field: str = "accountId"):
        self.validate("user_filter_field", user_filter_field)
        self.validate("worklog_concurrency", worklog_concurrency)
        self.validate("worklog_page_size", worklog_page_size)
        self.validate("lookback_days", lookback_days)

        self.atlassian_api_url = atlassian_api_url.rstrip("/")
        self.required_scope = required_scope
        self.request_timeout = request_timeout
        self.deadline_seconds = deadline_seconds
        self.worklog_concurrency = worklog_concurrency
        self.worklog_page_size = worklog_page_size
        self.lookback_days = lookback_days
        self.user_filter_field = user_filter_field

    @staticmethod
    def validate(name: str, value):
        """Raise ValueError if `value` is not acceptable for setting `name`."""
        if name == "user_filter_field" and value not in USER_FILTER_FIELDS:
            raise ValueError(
                f"user_filter_field must be one of {', '.join(USER_FILTER_FIELDS)}, "
                f"got {value!r}"
            )
        if name in ("worklog_concurrency", "worklog_page_size") and value < 1:
            raise ValueError(f"{name} must be at least 1")
        if name == "lookback_days" and value < 0:
            raise ValueError("lookback_days must not be negative")

    @classmethod
    def _coerce(cls, name: str, raw):
        cast = cls.FIELDS[name][2]
        value = cast(raw)
        cls.validate(name, value)
        return value

    @classmethod
    def load(cls, config_path: Optional[str] = None, environ=None) -> "WorklogSettings":
        """Build settings from an optional JSON file, then environment overrides.

        A missing file is fine; an unreadable or malformed one is logged and
        ignored. Individual values that fail to convert or validate are
        logged and dropped, so the default (or the file value) applies.
        """
        environ = os.environ if environ is None else environ
        values = {}

        if config_path and os.path.exists(config_path):
            try:
                with open(config_path, "r") as f:
                    config = json.load(f)
                if not isinstance(config, dict):
                    raise ValueError("expected a JSON object")
            except (json.JSONDecodeError, IOError, ValueError) as e:
                logger.warning(f"Failed to load worklog config {config_path}: {e}")
                config = {}

            for name, (key, _, _) in cls.FIELDS.items():
                if key not in config:
                    continue
                try:
                    values[name] = cls._coerce(name, config[key])
                except (TypeError, ValueError) as e:
                    logger.warning(f"Ignoring invalid {key} in {config_path}: {e}")
            if config:
                logger.info(f"Loaded worklog settings from {config_path}")

        for name, (_, env_var, _) in cls.FIELDS.items():
            raw = environ.get(env_var)
            if raw is None or raw == "":
                continue
            try:
                values[name] = cls._coerce(name, raw)
            except ValueError as e:
                logger.warning(f"Ignoring invalid {env_var}={raw!r}: {e}")

        return cls(**values)

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.FIELDS}
