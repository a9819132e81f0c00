"""Collaborator interfaces (Protocol classes) used by the KPI engine.

The engine depends on these, not on SQLAlchemy or httpx, so tests can pass
simple fakes.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol, runtime_checkable

from kpi_pulse.evaluation.kpi_types import KPIAlert, KPICurrentState, KPIDefinition, KPIHistoryEntry


@runtime_checkable
class MetricsProvider(Protocol):
    """Supplies raw metric aggregates for a property / site and date range."""

    async def get_raw_metrics(
        self,
        source: str,
        property_id: str | None,
        start_date: date,
        end_date: date,
    ) -> dict[str, Any]:
        """Return a flat bag of numeric fields. Raises UpstreamDataError on failure."""
        ...


@runtime_checkable
class KPIStore(Protocol):
    """Persistence for KPI definitions, current state, history and alerts."""

    async def load_kpi(self, user_id: str, kpi_id: str) -> KPIDefinition:
        """Load a KPI with its current state and history. Raises NotFoundError."""
        ...

    async def save_current_state(self, user_id: str, kpi_id: str, state: KPICurrentState) -> None:
        """Overwrite the KPI's current state."""
        ...

    async def append_and_save_history(
        self,
        user_id: str,
        kpi_id: str,
        entries: list[KPIHistoryEntry],
    ) -> None:
        """Persist the KPI's (already bounded) history list."""
        ...

    async def save_alert(self, alert: KPIAlert) -> None:
        """Persist a newly generated alert."""
        ...
