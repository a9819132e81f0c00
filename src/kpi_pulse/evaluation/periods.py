"""Reporting period → fetch date range."""

from __future__ import annotations

from datetime import date, timedelta

from kpi_pulse.evaluation.kpi_types import Period

CUSTOM_FALLBACK_DAYS = 30


def resolve_date_range(period: Period, today: date) -> tuple[date, date]:
    """Return the (start, end) dates to fetch metrics for.

    Explicit start/end dates on the period always win. Otherwise the range
    is derived from the period type, ending today.
    """
    start = _parse(period.start_date)
    end = _parse(period.end_date) or today

    if start is None:
        if period.type == "daily":
            start = end
        elif period.type == "weekly":
            start = end - timedelta(days=6)
        elif period.type == "monthly":
            start = end.replace(day=1)
        elif period.type == "quarterly":
            first_month = (end.month - 1) // 3 * 3 + 1
            start = end.replace(month=first_month, day=1)
        elif period.type == "yearly":
            start = end.replace(month=1, day=1)
        else:
            start = end - timedelta(days=CUSTOM_FALLBACK_DAYS - 1)

    if start > end:
        start, end = end, start
    return start, end


def _parse(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
