"""Shared dependencies for API routers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kpi_pulse.db.connection import get_session
from kpi_pulse.ingestion.metrics_provider import HttpMetricsProvider
from kpi_pulse.memory.kpi_store import SqlKPIStore


def get_metrics_provider() -> HttpMetricsProvider:
    return HttpMetricsProvider()


def get_kpi_store(session: AsyncSession = Depends(get_session)) -> SqlKPIStore:
    return SqlKPIStore(session)
