"""Alert decision engine — decide whether a KPI status transition raises an alert.

Pure logic: the previous status and every number in the alert are passed
in by the caller, nothing is read back from storage. At most one alert is
produced per call.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone

from kpi_pulse.evaluation.kpi_types import (
    GOAL_STATUSES,
    AlertMetadata,
    KPIAlert,
    KPIDefinition,
    KPIHistoryEntry,
)
from kpi_pulse.evaluation.suggestions import get_suggestions

# Progress swing (percentage points) that re-alerts a KPI stuck in a bad state
PROGRESS_SWING_POINTS = 5.0

_BAD_STATUSES = ("off_track", "at_risk")


def should_alert(
    status: str,
    previous_status: str | None,
    progress: float,
    history: list[KPIHistoryEntry],
) -> bool:
    """Return True when the transition from *previous_status* is worth an alert.

    A missing or unrecognised previous status never qualifies. Any other
    status change does. A KPI that stays off_track / at_risk
    qualifies only if progress moved by more than PROGRESS_SWING_POINTS
    since the second-to-last history entry (0 when there is none).
    """
    if previous_status not in GOAL_STATUSES:
        return False
    if status != previous_status:
        return True
    if status in _BAD_STATUSES:
        reference = history[-2].progress if len(history) >= 2 else 0.0
        return abs(progress - reference) > PROGRESS_SWING_POINTS
    return False


def decide(
    kpi: KPIDefinition,
    value: float,
    progress: float,
    status: str,
    previous_status: str | None,
    now: datetime | None = None,
) -> KPIAlert | None:
    """Decide whether to raise an alert for a freshly evaluated KPI.

    Args:
        kpi: The KPI definition; ``kpi.history`` must already include the
            entry recorded for this cycle.
        value: The value just resolved for this cycle.
        progress: Clamped progress for *value*.
        status: Goal status for *value*.
        previous_status: Status before this cycle, None on the first cycle.
        now: Reference time for deadline projections.

    Returns:
        A KPIAlert, or None when no alert is warranted.
    """
    if not kpi.alerts.enabled or previous_status not in GOAL_STATUSES:
        return None
    if not should_alert(status, previous_status, progress, kpi.history):
        return None

    now = now or datetime.now(timezone.utc)
    thresholds = kpi.alerts.thresholds
    target = kpi.goal.target
    unit = kpi.metric.unit

    if status == "achieved" and previous_status != "achieved":
        return _build_alert(
            kpi, now,
            type_="success",
            level="low",
            title="Target achieved",
            message=(
                f"{kpi.name} reached its target of {_format_value(target, unit)} "
                f"(current: {_format_value(value, unit)})."
            ),
            metadata=AlertMetadata(current=value, target=target, progress=progress, status=status),
        )

    if status == "off_track" and progress < thresholds.critical:
        metadata, days_left, gap = _projection(value, progress, status, target, kpi, now)
        if days_left:
            detail = f"{_format_value(gap, unit)} more is needed in the {days_left} days left."
        else:
            detail = "Immediate action is needed."
        return _build_alert(
            kpi, now,
            type_="danger",
            level="high",
            title="Urgent: target achievement at risk",
            message=f"{kpi.name} is far behind its target ({progress:.1f}% progress). {detail}",
            metadata=metadata,
            suggestions=get_suggestions("critical", kpi.metric.source),
            action_required=True,
        )

    if status == "at_risk" or thresholds.critical <= progress < thresholds.warning:
        metadata, days_left, gap = _projection(value, progress, status, target, kpi, now)
        if days_left:
            detail = f"{_format_value(gap, unit)} more is needed in the {days_left} days left."
        else:
            detail = "Consider additional measures."
        return _build_alert(
            kpi, now,
            type_="warning",
            level="medium",
            title="Needs attention",
            message=f"{kpi.name} is falling behind ({progress:.1f}% progress). {detail}",
            metadata=metadata,
            suggestions=get_suggestions("warning", kpi.metric.source),
            action_required=True,
        )

    if status == "on_track" and previous_status != "on_track":
        return _build_alert(
            kpi, now,
            type_="info",
            level="low",
            title="On track",
            message=f"{kpi.name} is on track toward its target ({progress:.1f}% achieved).",
            metadata=AlertMetadata(current=value, target=target, progress=progress, status=status),
        )

    return None


def days_until(deadline: datetime, now: datetime) -> int:
    """Whole days from *now* to *deadline*, rounded up. Naive datetimes are treated as UTC."""
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.ceil((deadline - now).total_seconds() / 86400)


def new_alert_id(now: datetime) -> str:
    return f"alert_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _projection(
    value: float,
    progress: float,
    status: str,
    target: float,
    kpi: KPIDefinition,
    now: datetime,
) -> tuple[AlertMetadata, int | None, float]:
    """Gap and deadline projection for danger / warning alerts."""
    gap = target - value
    days_left = None
    required_daily_rate = None
    if kpi.goal.deadline is not None:
        days_left = days_until(kpi.goal.deadline, now)
        if days_left > 0:
            required_daily_rate = math.ceil(gap / days_left)
        else:
            days_left = 0
    metadata = AlertMetadata(
        current=value,
        target=target,
        progress=progress,
        status=status,
        days_left=days_left,
        required_daily_rate=required_daily_rate,
        gap=gap,
    )
    return metadata, days_left, gap


def _build_alert(
    kpi: KPIDefinition,
    now: datetime,
    *,
    type_: str,
    level: str,
    title: str,
    message: str,
    metadata: AlertMetadata,
    suggestions: list[str] | None = None,
    action_required: bool = False,
) -> KPIAlert:
    return KPIAlert(
        id=new_alert_id(now),
        user_id=kpi.user_id,
        kpi_id=kpi.id,
        kpi_name=kpi.name,
        type=type_,
        level=level,
        title=title,
        message=message,
        created_at=now,
        metadata=metadata,
        suggestions=suggestions or [],
        action_required=action_required,
    )


def _format_value(value: float, unit: str = "") -> str:
    """Format with thousands separators, dropping ".0" on whole numbers."""
    if float(value).is_integer():
        text = f"{int(value):,}"
    else:
        text = f"{value:,.2f}"
    if not unit:
        return text
    if unit == "%":
        return f"{text}%"
    return f"{text} {unit}"
