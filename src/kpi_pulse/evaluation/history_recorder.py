"""Bounded KPI history log."""

from __future__ import annotations

from datetime import datetime

from kpi_pulse.evaluation.kpi_types import KPIHistoryEntry

HISTORY_LIMIT = 100


def make_entry(value: float, progress: float, status: str, timestamp: datetime) -> KPIHistoryEntry:
    """Build a history entry dated by the calendar day of *timestamp*."""
    return KPIHistoryEntry(
        date=timestamp.date().isoformat(),
        value=value,
        progress=progress,
        status=status,
        timestamp=timestamp,
    )


def append_history(
    history: list[KPIHistoryEntry],
    entry: KPIHistoryEntry,
    limit: int = HISTORY_LIMIT,
) -> list[KPIHistoryEntry]:
    """Return a new list with *entry* appended, keeping only the newest *limit* entries.

    Oldest entries are dropped first; chronological order is preserved and
    the input list is not modified.
    """
    updated = [*history, entry]
    if limit > 0 and len(updated) > limit:
        updated = updated[-limit:]
    return updated
