"""Date-range rules for chart requests.

Charts cover at most 30 days. A missing bound defaults to "now", so a request
that only names a start date is measured from that date until today.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

MAX_RANGE_DAYS = 30

_ONE_DAY_SECONDS = timedelta(days=1).total_seconds()


@dataclass(frozen=True, slots=True)
class DateRangeValidation:
    """Outcome of `validate_date_range`.

    Args:
        is_valid: True when the range is acceptable.
        error: Human-readable reason when invalid.
        days_difference: Span in whole days (ceiling), when one was computed.
    """

    is_valid: bool
    error: str | None = None
    days_difference: int | None = None


def parse_iso_datetime(value: str) -> datetime | None:
    """Parse an ISO-8601 date or timestamp into an aware UTC datetime.

    Args:
        value: A `YYYY-MM-DD` date or a full ISO-8601 timestamp. A trailing `Z`
            is accepted.

    Returns:
        The parsed datetime converted to UTC (naive inputs are assumed UTC), or
        None when the value is not a valid calendar date.
    """

    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_display_date(value: str | None) -> str:
    """Format an ISO date for display (`Dec 1, 2024`), or `N/A` when missing."""

    parsed = parse_iso_datetime(value) if value else None
    if parsed is None:
        return "N/A"
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def _span_days(start: datetime, end: datetime) -> int:
    return math.ceil(abs((end - start).total_seconds()) / _ONE_DAY_SECONDS)


def _invalid_format(field: str, value: str) -> DateRangeValidation:
    return DateRangeValidation(
        is_valid=False,
        error=(
            f"Invalid '{field}' date format: {value}. "
            "Please use ISO 8601 format (YYYY-MM-DD, e.g. 2024-01-01)"
        ),
    )


def _too_long(days: int, *, detail: str = "") -> DateRangeValidation:
    return DateRangeValidation(
        is_valid=False,
        error=(
            f"Date range exceeds the maximum allowed period of {MAX_RANGE_DAYS} days. "
            f"The requested range is {days} days{detail}. Please narrow your date range."
        ),
        days_difference=days,
    )


def validate_date_range(
    from_date: str | None,
    to_date: str | None,
    *,
    now: datetime | None = None,
) -> DateRangeValidation:
    """Validate an optional `from`/`to` pair against the 30-day limit.

    Args:
        from_date: Optional inclusive start (ISO-8601).
        to_date: Optional end (ISO-8601).
        now: Reference time used when one bound is omitted. Defaults to the
            current UTC time.

    Returns:
        DateRangeValidation with the span in days when it could be computed.

    Notes:
        Spans use ceiling division on elapsed time, so 30 days and one hour
        counts as 31 days. When a single bound is given the span is measured
        between that bound and `now`, whichever side of `now` it falls on.
    """

    if not from_date and not to_date:
        return DateRangeValidation(is_valid=True)

    start = parse_iso_datetime(from_date) if from_date else None
    if from_date and start is None:
        return _invalid_format("from", from_date)
    end = parse_iso_datetime(to_date) if to_date else None
    if to_date and end is None:
        return _invalid_format("to", to_date)

    if start is not None and end is not None:
        if start > end:
            return DateRangeValidation(is_valid=False, error="The 'from' date cannot be after the 'to' date")
        days = _span_days(start, end)
        if days > MAX_RANGE_DAYS:
            return _too_long(days)
        return DateRangeValidation(is_valid=True, days_difference=days)

    reference = now or datetime.now(UTC)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=UTC)

    if end is None:
        days = _span_days(start, reference)
        if days > MAX_RANGE_DAYS:
            return _too_long(days, detail=f" (from {from_date} until today, since no 'to' date was given)")
        return DateRangeValidation(is_valid=True, days_difference=days)

    days = _span_days(reference, end)
    if days > MAX_RANGE_DAYS:
        return _too_long(days, detail=f" (between today and {to_date}, since no 'from' date was given)")
    return DateRangeValidation(is_valid=True, days_difference=days)
