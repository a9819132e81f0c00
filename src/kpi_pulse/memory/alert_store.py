"""Queries and acknowledgement for stored KPI alerts."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kpi_pulse.db.models import KPIAlertRecord
from kpi_pulse.errors import NotFoundError, PersistenceError
from kpi_pulse.evaluation.kpi_types import KPIAlert
from kpi_pulse.memory.kpi_store import record_to_alert

logger = logging.getLogger(__name__)

KPI_ALERT_LIMIT = 10


async def list_alerts(
    session: AsyncSession,
    user_id: str,
    unacknowledged_only: bool = False,
    limit: int = 100,
) -> list[KPIAlert]:
    """Return a user's alerts, newest first."""
    stmt = select(KPIAlertRecord).where(KPIAlertRecord.user_id == user_id)
    if unacknowledged_only:
        stmt = stmt.where(KPIAlertRecord.acknowledged == False)  # noqa: E712
    stmt = stmt.order_by(KPIAlertRecord.created_at.desc()).limit(limit)
    result = await _execute(session, stmt, f"list alerts for user {user_id}")
    return [record_to_alert(r) for r in result.scalars().all()]


async def get_alerts_for_kpi(
    session: AsyncSession,
    user_id: str,
    kpi_id: str,
    limit: int = KPI_ALERT_LIMIT,
) -> list[KPIAlert]:
    """Return the most recent alerts raised for one KPI, newest first."""
    stmt = (
        select(KPIAlertRecord)
        .where(KPIAlertRecord.user_id == user_id, KPIAlertRecord.kpi_id == kpi_id)
        .order_by(KPIAlertRecord.created_at.desc())
        .limit(limit)
    )
    result = await _execute(session, stmt, f"list alerts for KPI {kpi_id}")
    return [record_to_alert(r) for r in result.scalars().all()]


async def acknowledge_alert(session: AsyncSession, user_id: str, alert_id: str) -> KPIAlert:
    """Mark one alert as acknowledged. Raises NotFoundError if it does not exist."""
    result = await _execute(
        session,
        select(KPIAlertRecord).where(KPIAlertRecord.id == alert_id, KPIAlertRecord.user_id == user_id),
        f"load alert {alert_id}",
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError(f"Alert not found: {alert_id}")

    if not row.acknowledged:
        row.acknowledged = True
        row.acknowledged_at = datetime.now(timezone.utc)
        await _commit(session, f"acknowledge alert {alert_id}")
        logger.info("Alert %s acknowledged", alert_id)
    return record_to_alert(row)


async def acknowledge_alerts(session: AsyncSession, user_id: str, alert_ids: list[str]) -> int:
    """Acknowledge several alerts at once. Returns the number updated."""
    if not alert_ids:
        return 0
    stmt = (
        update(KPIAlertRecord)
        .where(
            KPIAlertRecord.user_id == user_id,
            KPIAlertRecord.id.in_(alert_ids),
            KPIAlertRecord.acknowledged == False,  # noqa: E712
        )
        .values(acknowledged=True, acknowledged_at=datetime.now(timezone.utc))
    )
    result = await _execute(session, stmt, f"acknowledge alerts for user {user_id}")
    await _commit(session, f"acknowledge alerts for user {user_id}")
    logger.info("Acknowledged %d alerts for user %s", result.rowcount, user_id)
    return result.rowcount


async def unacknowledged_count(session: AsyncSession, user_id: str) -> int:
    """Count a user's unacknowledged alerts."""
    result = await _execute(
        session,
        select(func.count())
        .select_from(KPIAlertRecord)
        .where(
            KPIAlertRecord.user_id == user_id,
            KPIAlertRecord.acknowledged == False,  # noqa: E712
        ),
        f"count alerts for user {user_id}",
    )
    return result.scalar_one() or 0


async def _execute(session: AsyncSession, stmt, action: str):
    try:
        return await session.execute(stmt)
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Failed to %s", action)
        raise PersistenceError(f"Failed to {action}") from exc


async def _commit(session: AsyncSession, action: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Failed to %s", action)
        raise PersistenceError(f"Failed to {action}") from exc
