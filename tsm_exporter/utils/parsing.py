"""Decoding and normalization helpers for dsmadmc output."""

import csv
import io
import math
import re
from datetime import datetime
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..exceptions import ParseError

TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
DATE_FORMAT = "%Y-%m-%d"

_DECIMAL_COMMA = re.compile(r'^([+-]?\d*),(\d{1,2})$')


def get_records(out: str) -> List[List[str]]:
    """
    Decode comma-delimited dsmadmc output into rows of fields.

    Rows are returned whatever their length; callers skip rows whose
    field count does not match what they expect.

    Args:
        out: Raw stdout of a dsmadmc -COMMAdelimited query

    Returns:
        List[List[str]]: Decoded rows

    Raises:
        ParseError: If the output has malformed quoting
    """
    reader = csv.reader(io.StringIO(out), strict=True)
    try:
        return [row for row in reader]
    except csv.Error as e:
        raise ParseError(f"Error reading CSV output: {e}") from e


def parse_float(value: str) -> float:
    """
    Parse a numeric field, accepting a comma decimal separator.

    "99,8" and "13,52" are read as 99.8 and 13.52. Any other comma is a
    thousands separator and is stripped, so "1,500" is 1500.0. An empty or blank
    string is NaN (column legitimately empty). Surrounding whitespace and
    a leading sign are allowed.

    Args:
        value: Raw field value

    Returns:
        float: Parsed value

    Raises:
        ParseError: If the value is not a number
    """
    normalized = value.strip()
    if normalized == "":
        return math.nan
    if "," in normalized:
        match = _DECIMAL_COMMA.match(normalized)
        if match:
            normalized = f"{match.group(1)}.{match.group(2)}"
        else:
            normalized = normalized.replace(",", "")
    try:
        return float(normalized)
    except ValueError as e:
        raise ParseError(f"Unable to parse float value {value!r}") from e


def load_timezone(name: str) -> ZoneInfo:
    """
    Resolve an IANA time zone name.

    Raises:
        ParseError: If the zone is unknown
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ParseError(f"Unknown timezone {name!r}") from e


def parse_time(value: str, timezone: Optional[str] = None) -> datetime:
    """
    Parse a dsmadmc timestamp into an aware datetime.

    Args:
        value: Timestamp such as "2020-12-05 01:01:26.000000"
        timezone: IANA zone the server reports in; local zone when None

    Returns:
        datetime: Timezone-aware datetime

    Raises:
        ParseError: If the value or the zone cannot be parsed
    """
    try:
        parsed = datetime.strptime(value, TIME_FORMAT)
    except ValueError as e:
        raise ParseError(f"Unable to parse time value {value!r}") from e
    if timezone:
        return parsed.replace(tzinfo=load_timezone(timezone))
    return parsed.astimezone()


def timestamp(value: datetime) -> float:
    """Whole epoch seconds of a datetime, clamped at zero."""
    return float(max(math.floor(value.timestamp()), 0))


def duration(start: datetime, end: datetime) -> float:
    """Seconds between start and end, zero when end precedes start."""
    seconds = (end - start).total_seconds()
    if seconds < 0:
        return 0.0
    return seconds


def build_in_filter(items: Iterable[str]) -> str:
    """
    Render values for an SQL IN clause.

    >>> build_in_filter(["FOO", "BAR"])
    "'FOO','BAR'"
    """
    return ",".join(f"'{item}'" for item in items)
