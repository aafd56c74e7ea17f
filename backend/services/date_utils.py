"""Calendar date helpers for YYYY-MM-DD strings.

Arithmetic is done on datetimes pinned to noon UTC so that converting back
to a date never lands on the neighbouring day, whatever the local timezone
or daylight-saving state of the host.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

ISO_DATE_FORMAT = "%Y-%m-%d"

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")


def parse_iso_date(date_str: str) -> datetime:
    """Parse a YYYY-MM-DD string into a noon-UTC datetime.

    Raises:
        ValueError: if the string is not a valid calendar date.
    """
    parsed = datetime.strptime(date_str, ISO_DATE_FORMAT)
    return parsed.replace(hour=12, tzinfo=timezone.utc)


def add_days(date_str: str, days: int) -> str:
    """Return the date `days` calendar days after `date_str`."""
    return (parse_iso_date(date_str) + timedelta(days=days)).strftime(ISO_DATE_FORMAT)


def subtract_days(date_str: str, days: int) -> str:
    """Return the date `days` calendar days before `date_str`."""
    return add_days(date_str, -days)


def next_day(date_str: str) -> str:
    return add_days(date_str, 1)


def iter_days(start: str, end: str) -> Iterator[str]:
    """Yield every date from start to end, both inclusive.

    Nothing is yielded when start is after end.
    """
    current = start
    while current <= end:
        yield current
        if current == end:
            break
        current = next_day(current)


def today_iso() -> str:
    """Current UTC date as YYYY-MM-DD."""
    return datetime.now(timezone.utc).strftime(ISO_DATE_FORMAT)


def normalize_to_iso_date(value: Optional[str]) -> Optional[str]:
    """Normalize a user supplied date to YYYY-MM-DD.

    Accepts YYYY-MM-DD as is, and day-first DD-MM-YYYY or DD/MM/YYYY which is
    rewritten. Anything else comes back trimmed but otherwise unchanged; the
    date arithmetic helpers reject it later with a ValueError.
    """
    if value is None or not isinstance(value, str):
        return value

    trimmed = value.strip()
    if _ISO_DATE_RE.match(trimmed):
        return trimmed

    match = _DAY_FIRST_RE.match(trimmed)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    return trimmed
