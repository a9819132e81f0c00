"""KPI recomputation — resolve, evaluate, record and alert for one KPI."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone

from kpi_pulse.evaluation.alert_decision import decide
from kpi_pulse.evaluation.goal_evaluator import evaluate
from kpi_pulse.evaluation.history_recorder import HISTORY_LIMIT, append_history, make_entry
from kpi_pulse.evaluation.kpi_types import CalculationResult, KPICurrentState, KPIDefinition
from kpi_pulse.evaluation.metric_resolver import has_metric_value, resolve_metric_value
from kpi_pulse.evaluation.periods import resolve_date_range
from kpi_pulse.interfaces import KPIStore, MetricsProvider

logger = logging.getLogger(__name__)


async def recompute(
    store: KPIStore,
    provider: MetricsProvider,
    user_id: str,
    kpi_id: str,
    *,
    now: datetime | None = None,
    history_limit: int = HISTORY_LIMIT,
) -> CalculationResult:
    """Recompute one KPI's value, progress and status and raise any alert.

    Steps run strictly in order. The previous status is taken from the
    snapshot loaded before any write. Errors from the store or provider are
    not retried and abort the remaining steps:

    * NotFoundError — the KPI does not exist; nothing is written.
    * UpstreamDataError — the metrics fetch failed; nothing is written.
    * PersistenceError — a write failed; earlier writes stay in place.
    """
    now = now or datetime.now(timezone.utc)

    kpi = await store.load_kpi(user_id, kpi_id)
    previous = kpi.current
    previous_status = previous.status if previous else None
    previous_value = previous.value if previous else None

    raw = await _fetch_raw_metrics(provider, kpi, now)
    value = resolve_metric_value(kpi.metric.type, raw)
    confidence = "high" if has_metric_value(kpi.metric.type, raw) else "low"
    if confidence == "low":
        logger.warning("KPI %s: metric %s missing from upstream data, using 0", kpi_id, kpi.metric.type)

    result = evaluate(value, kpi.goal, kpi.alerts.thresholds)

    state = KPICurrentState(value=value, progress=result.progress, status=result.status, last_updated=now)
    await store.save_current_state(user_id, kpi_id, state)

    history = append_history(kpi.history, make_entry(value, result.progress, result.status, now), history_limit)
    await store.append_and_save_history(user_id, kpi_id, history)

    updated = dataclasses.replace(kpi, current=state, history=history, last_calculated_at=now)
    alert = decide(updated, value, result.progress, result.status, previous_status, now=now)
    if alert:
        await store.save_alert(alert)
        logger.info("KPI %s: %s alert raised (%s -> %s)", kpi_id, alert.type, previous_status, result.status)

    change, change_percent = _change(value, previous_value)

    logger.info(
        "KPI %s recomputed: value=%s progress=%.1f status=%s",
        kpi_id, value, result.progress, result.status,
    )

    return CalculationResult(
        kpi_id=kpi_id,
        value=value,
        previous_value=previous_value,
        change=change,
        change_percent=change_percent,
        progress=result.progress,
        status=result.status,
        calculated_at=now,
        data_points=len(history),
        confidence=confidence,
        alert=alert,
    )


async def _fetch_raw_metrics(provider: MetricsProvider, kpi: KPIDefinition, now: datetime) -> dict:
    """Fetch the raw metrics bag for the KPI's source. Custom KPIs have no upstream."""
    source = kpi.metric.source
    if source == "analytics":
        property_id = kpi.data_source.ga4_property_id
    elif source == "search":
        property_id = kpi.data_source.gsc_site_url
    else:
        return {}

    start, end = resolve_date_range(kpi.period, now.date())
    return await provider.get_raw_metrics(source, property_id, start, end)


def _change(value: float, previous: float | None) -> tuple[float | None, float | None]:
    """Absolute and percent change versus the previous cycle."""
    if previous is None:
        return None, None
    change = value - previous
    if previous == 0:
        pct = 100.0 if value > 0 else 0.0
    else:
        pct = change / abs(previous) * 100
    return change, round(pct, 2)
