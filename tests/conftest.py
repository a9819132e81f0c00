"""Shared fixtures: KPI definition factory."""

from datetime import datetime, timezone

import pytest

from kpi_pulse.evaluation.kpi_types import (
    AlertPolicy,
    DataSource,
    Goal,
    KPICurrentState,
    KPIDefinition,
    KPIHistoryEntry,
    MetricSpec,
    Period,
    Thresholds,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def history_entry(progress: float, status: str = "at_risk", value: float = 0.0) -> KPIHistoryEntry:
    return KPIHistoryEntry(date="2026-03-01", value=value, progress=progress, status=status, timestamp=NOW)


@pytest.fixture()
def make_kpi():
    """Build a KPIDefinition with sensible defaults; keyword overrides per test."""

    def _make(
        target: float = 1000.0,
        operator: str = "greater_or_equal",
        metric_type: str = "ga4_sessions",
        source: str = "analytics",
        unit: str = "",
        warning: float = 70.0,
        critical: float = 50.0,
        deadline: datetime | None = None,
        enabled: bool = True,
        current: KPICurrentState | None = None,
        history: list[KPIHistoryEntry] | None = None,
        min_value: float | None = None,
        max_value: float | None = None,
        period: Period | None = None,
    ) -> KPIDefinition:
        return KPIDefinition(
            id="kpi-1",
            user_id="user-1",
            name="Monthly sessions",
            metric=MetricSpec(type=metric_type, source=source, unit=unit),
            goal=Goal(
                target=target,
                operator=operator,
                min_value=min_value,
                max_value=max_value,
                deadline=deadline,
            ),
            period=period or Period(type="monthly"),
            data_source=DataSource(ga4_property_id="properties/123", gsc_site_url="https://example.com/"),
            alerts=AlertPolicy(enabled=enabled, thresholds=Thresholds(warning=warning, critical=critical)),
            current=current,
            history=list(history or []),
        )

    return _make
