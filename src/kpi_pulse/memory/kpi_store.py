"""SQLAlchemy-backed KPI store (definitions, current state, history, alerts)."""
from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kpi_pulse.db.models import KPIAlertRecord, KPIRecord
from kpi_pulse.errors import NotFoundError, PersistenceError
from kpi_pulse.evaluation.kpi_types import (
    AlertMetadata,
    AlertPolicy,
    DataSource,
    Goal,
    KPIAlert,
    KPICurrentState,
    KPIDefinition,
    KPIHistoryEntry,
    MetricSpec,
    Period,
    Thresholds,
)
from kpi_pulse.evaluation.validation import validate_kpi_definition

logger = logging.getLogger(__name__)


class SqlKPIStore:
    """KPIStore implementation over an AsyncSession.

    Every write commits on its own; a failed write is rolled back and
    raised as PersistenceError.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_kpi(self, user_id: str, kpi_id: str) -> KPIDefinition:
        stmt = select(KPIRecord).where(KPIRecord.id == kpi_id, KPIRecord.user_id == user_id)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load KPI %s", kpi_id)
            raise PersistenceError(f"Failed to load KPI {kpi_id}") from exc

        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(f"KPI not found: {kpi_id}", details={"user_id": user_id, "kpi_id": kpi_id})
        return record_to_kpi(row)

    async def create_kpi(self, kpi: KPIDefinition) -> KPIDefinition:
        """Validate and insert a new KPI definition."""
        validate_kpi_definition(kpi)
        row = kpi_to_record(kpi)
        self.session.add(row)
        await self._commit(f"create KPI {kpi.id}")
        return kpi

    async def save_current_state(self, user_id: str, kpi_id: str, state: KPICurrentState) -> None:
        await self._update(
            user_id,
            kpi_id,
            current_value=state.value,
            current_progress=state.progress,
            current_status=state.status,
            current_updated_at=state.last_updated,
            last_calculated_at=state.last_updated,
        )

    async def append_and_save_history(
        self,
        user_id: str,
        kpi_id: str,
        entries: list[KPIHistoryEntry],
    ) -> None:
        await self._update(user_id, kpi_id, history=history_to_json(entries))

    async def save_alert(self, alert: KPIAlert) -> None:
        self.session.add(alert_to_record(alert))
        await self._commit(f"save alert {alert.id}")

    # -- internals ---------------------------------------------------------

    async def _update(self, user_id: str, kpi_id: str, **values: Any) -> None:
        stmt = (
            update(KPIRecord)
            .where(KPIRecord.id == kpi_id, KPIRecord.user_id == user_id)
            .values(**values)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Failed to update KPI %s", kpi_id)
            raise PersistenceError(f"Failed to update KPI {kpi_id}") from exc
        if result.rowcount == 0:
            raise NotFoundError(f"KPI not found: {kpi_id}", details={"user_id": user_id, "kpi_id": kpi_id})
        await self._commit(f"update KPI {kpi_id}")

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Failed to %s", action)
            raise PersistenceError(f"Failed to {action}") from exc


# ---------------------------------------------------------------------------
# Row <-> value type mapping
# ---------------------------------------------------------------------------


def record_to_kpi(row: KPIRecord) -> KPIDefinition:
    current = None
    if row.current_status is not None:
        current = KPICurrentState(
            value=row.current_value or 0.0,
            progress=row.current_progress or 0.0,
            status=row.current_status,
            last_updated=row.current_updated_at,
        )

    return KPIDefinition(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        description=row.description,
        category=row.category,
        metric=MetricSpec(
            type=row.metric_type,
            source=row.metric_source,
            unit=row.metric_unit or "",
            formula=row.metric_formula,
        ),
        goal=Goal(
            target=row.goal_target,
            operator=row.goal_operator,
            min_value=row.goal_min_value,
            max_value=row.goal_max_value,
            deadline=row.goal_deadline,
        ),
        period=Period(type=row.period_type, start_date=row.period_start, end_date=row.period_end),
        data_source=DataSource(ga4_property_id=row.ga4_property_id, gsc_site_url=row.gsc_site_url),
        alerts=AlertPolicy(
            enabled=bool(row.alerts_enabled),
            thresholds=Thresholds(warning=row.warning_threshold, critical=row.critical_threshold),
            notify_email=bool(row.notify_email),
            notify_in_app=bool(row.notify_in_app),
        ),
        status=row.status,
        current=current,
        history=history_from_json(row.history),
        last_calculated_at=row.last_calculated_at,
    )


def kpi_to_record(kpi: KPIDefinition) -> KPIRecord:
    return KPIRecord(
        id=kpi.id,
        user_id=kpi.user_id,
        name=kpi.name,
        description=kpi.description,
        category=kpi.category,
        metric_type=kpi.metric.type,
        metric_source=kpi.metric.source,
        metric_unit=kpi.metric.unit,
        metric_formula=kpi.metric.formula,
        goal_target=kpi.goal.target,
        goal_operator=kpi.goal.operator,
        goal_min_value=kpi.goal.min_value,
        goal_max_value=kpi.goal.max_value,
        goal_deadline=kpi.goal.deadline,
        period_type=kpi.period.type,
        period_start=kpi.period.start_date,
        period_end=kpi.period.end_date,
        ga4_property_id=kpi.data_source.ga4_property_id,
        gsc_site_url=kpi.data_source.gsc_site_url,
        alerts_enabled=kpi.alerts.enabled,
        warning_threshold=kpi.alerts.thresholds.warning,
        critical_threshold=kpi.alerts.thresholds.critical,
        notify_email=kpi.alerts.notify_email,
        notify_in_app=kpi.alerts.notify_in_app,
        status=kpi.status,
        current_value=kpi.current.value if kpi.current else None,
        current_progress=kpi.current.progress if kpi.current else None,
        current_status=kpi.current.status if kpi.current else None,
        current_updated_at=kpi.current.last_updated if kpi.current else None,
        last_calculated_at=kpi.last_calculated_at,
        history=history_to_json(kpi.history),
    )


def history_to_json(entries: list[KPIHistoryEntry]) -> list[dict]:
    return [
        {
            "date": e.date,
            "value": e.value,
            "progress": e.progress,
            "status": e.status,
            "timestamp": e.timestamp.isoformat() if e.timestamp else None,
        }
        for e in entries
    ]


def history_from_json(data: list[dict] | None) -> list[KPIHistoryEntry]:
    entries = []
    for item in data or []:
        ts = item.get("timestamp")
        entries.append(KPIHistoryEntry(
            date=item.get("date", ""),
            value=float(item.get("value") or 0.0),
            progress=float(item.get("progress") or 0.0),
            status=item.get("status", "not_started"),
            timestamp=datetime.fromisoformat(ts) if ts else None,
        ))
    return entries


def alert_to_record(alert: KPIAlert) -> KPIAlertRecord:
    return KPIAlertRecord(
        id=alert.id,
        user_id=alert.user_id,
        kpi_id=alert.kpi_id,
        kpi_name=alert.kpi_name,
        alert_type=alert.type,
        level=alert.level,
        title=alert.title,
        message=alert.message,
        suggestions=list(alert.suggestions),
        metadata_=asdict(alert.metadata),
        action_required=alert.action_required,
        acknowledged=alert.acknowledged,
        acknowledged_at=alert.acknowledged_at,
        created_at=alert.created_at,
    )


def record_to_alert(row: KPIAlertRecord) -> KPIAlert:
    meta = row.metadata_ or {}
    return KPIAlert(
        id=row.id,
        user_id=row.user_id,
        kpi_id=row.kpi_id,
        kpi_name=row.kpi_name,
        type=row.alert_type,
        level=row.level,
        title=row.title,
        message=row.message,
        created_at=row.created_at,
        metadata=AlertMetadata(
            current=meta.get("current", 0.0),
            target=meta.get("target", 0.0),
            progress=meta.get("progress", 0.0),
            status=meta.get("status", ""),
            days_left=meta.get("days_left"),
            required_daily_rate=meta.get("required_daily_rate"),
            gap=meta.get("gap"),
        ),
        suggestions=list(row.suggestions or []),
        action_required=bool(row.action_required),
        acknowledged=bool(row.acknowledged),
        acknowledged_at=row.acknowledged_at,
    )
