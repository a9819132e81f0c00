"""KPI alert routes — list, count and acknowledge."""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from kpi_pulse.db.connection import get_session
from kpi_pulse.memory import alert_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["alerts"])


class AcknowledgeManyRequest(BaseModel):
    alert_ids: list[str]


@router.get("/users/{user_id}/alerts")
async def list_alerts(
    user_id: str,
    unacknowledged_only: bool = False,
    limit: int = 100,
    session: AsyncSession = Depends(get_session),
) -> list[dict]:
    """List a user's KPI alerts, newest first."""
    alerts = await alert_store.list_alerts(session, user_id, unacknowledged_only, limit)
    return [asdict(a) for a in alerts]


@router.get("/users/{user_id}/alerts/count")
async def count_unacknowledged(user_id: str, session: AsyncSession = Depends(get_session)) -> dict:
    """Number of unacknowledged alerts."""
    count = await alert_store.unacknowledged_count(session, user_id)
    return {"unacknowledged": count}


@router.post("/users/{user_id}/alerts/{alert_id}/acknowledge")
async def acknowledge_alert(
    user_id: str,
    alert_id: str,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Mark one alert as read."""
    alert = await alert_store.acknowledge_alert(session, user_id, alert_id)
    return asdict(alert)


@router.post("/users/{user_id}/alerts/acknowledge")
async def acknowledge_many(
    user_id: str,
    req: AcknowledgeManyRequest,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Mark several alerts as read."""
    updated = await alert_store.acknowledge_alerts(session, user_id, req.alert_ids)
    return {"status": "acknowledged", "updated": updated}
