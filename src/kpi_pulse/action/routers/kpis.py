"""KPI routes — define KPIs and trigger recomputation."""

import logging
import uuid
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from kpi_pulse.action.dependencies import get_kpi_store, get_metrics_provider
from kpi_pulse.action.kpi_engine import recompute
from kpi_pulse.db.connection import get_session
from kpi_pulse.evaluation.kpi_types import (
    AlertPolicy,
    DataSource,
    Goal,
    KPIDefinition,
    MetricSpec,
    Period,
    Thresholds,
)
from kpi_pulse.evaluation.metric_resolver import METRIC_DEFINITIONS
from kpi_pulse.ingestion.metrics_provider import HttpMetricsProvider
from kpi_pulse.memory import alert_store
from kpi_pulse.memory.kpi_store import SqlKPIStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["kpis"])


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------


class KPICreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    metric_type: str
    metric_source: Optional[str] = None  # defaults to the metric's catalogue source
    unit: Optional[str] = None
    formula: Optional[str] = None
    target: float
    operator: str = "greater_or_equal"
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    deadline: Optional[datetime] = None
    period_type: str = "monthly"
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    ga4_property_id: Optional[str] = None
    gsc_site_url: Optional[str] = None
    alerts_enabled: bool = True
    warning_threshold: Optional[float] = None
    critical_threshold: Optional[float] = None
    notify_email: bool = False
    notify_in_app: bool = True


def build_definition(user_id: str, req: KPICreateRequest) -> KPIDefinition:
    """Turn a create request into a KPIDefinition, filling catalogue and settings defaults."""
    catalogue = METRIC_DEFINITIONS.get(req.metric_type)
    source = req.metric_source or (catalogue.source if catalogue else "custom")
    unit = req.unit if req.unit is not None else (catalogue.unit if catalogue else "")

    warning = req.warning_threshold
    if warning is None:
        warning = settings.default_warning_threshold
    critical = req.critical_threshold
    if critical is None:
        critical = settings.default_critical_threshold

    return KPIDefinition(
        id=str(uuid.uuid4()),
        user_id=user_id,
        name=req.name,
        description=req.description,
        category=req.category,
        metric=MetricSpec(type=req.metric_type, source=source, unit=unit, formula=req.formula),
        goal=Goal(
            target=req.target,
            operator=req.operator,
            min_value=req.min_value,
            max_value=req.max_value,
            deadline=req.deadline,
        ),
        period=Period(type=req.period_type, start_date=req.period_start, end_date=req.period_end),
        data_source=DataSource(ga4_property_id=req.ga4_property_id, gsc_site_url=req.gsc_site_url),
        alerts=AlertPolicy(
            enabled=req.alerts_enabled,
            thresholds=Thresholds(warning=warning, critical=critical),
            notify_email=req.notify_email,
            notify_in_app=req.notify_in_app,
        ),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/users/{user_id}/kpis")
async def create_kpi(
    user_id: str,
    req: KPICreateRequest,
    store: SqlKPIStore = Depends(get_kpi_store),
) -> dict:
    """Create a KPI definition."""
    kpi = await store.create_kpi(build_definition(user_id, req))
    logger.info("Created KPI %s (%s) for user %s", kpi.id, kpi.metric.type, user_id)
    return {"status": "created", "kpi": asdict(kpi)}


@router.get("/users/{user_id}/kpis/{kpi_id}")
async def get_kpi(
    user_id: str,
    kpi_id: str,
    store: SqlKPIStore = Depends(get_kpi_store),
) -> dict:
    """Get a KPI with its current state and history."""
    kpi = await store.load_kpi(user_id, kpi_id)
    return asdict(kpi)


@router.post("/users/{user_id}/kpis/{kpi_id}/recompute")
async def recompute_kpi(
    user_id: str,
    kpi_id: str,
    store: SqlKPIStore = Depends(get_kpi_store),
    provider: HttpMetricsProvider = Depends(get_metrics_provider),
) -> dict:
    """Recompute a KPI now and return the calculation result."""
    result = await recompute(store, provider, user_id, kpi_id, history_limit=settings.kpi_history_limit)
    return asdict(result)


@router.get("/users/{user_id}/kpis/{kpi_id}/alerts")
async def list_kpi_alerts(
    user_id: str,
    kpi_id: str,
    session: AsyncSession = Depends(get_session),
) -> list[dict]:
    """Most recent alerts for one KPI."""
    alerts = await alert_store.get_alerts_for_kpi(session, user_id, kpi_id)
    return [asdict(a) for a in alerts]
