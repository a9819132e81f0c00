"""ORM models for KPI definitions and KPI alerts."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, String, Text, func
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def _uuid() -> str:
    return str(uuid.uuid4())


class KPIRecord(Base):
    """A custom KPI: definition, current state and bounded history."""

    __tablename__ = "kpis"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)

    # Metric
    metric_type = Column(String(50), nullable=False)  # ga4_sessions / gsc_clicks / custom_formula ...
    metric_source = Column(String(20), nullable=False)  # analytics / search / custom
    metric_unit = Column(String(30), nullable=True)
    metric_formula = Column(Text, nullable=True)

    # Goal
    goal_target = Column(Float, nullable=False)
    goal_operator = Column(String(30), nullable=False, default="greater_or_equal")
    goal_min_value = Column(Float, nullable=True)
    goal_max_value = Column(Float, nullable=True)
    goal_deadline = Column(DateTime(timezone=True), nullable=True)

    # Period
    period_type = Column(String(20), nullable=False, default="monthly")
    period_start = Column(String(10), nullable=True)  # YYYY-MM-DD
    period_end = Column(String(10), nullable=True)

    # Data source
    ga4_property_id = Column(String(100), nullable=True)
    gsc_site_url = Column(String(500), nullable=True)

    # Alert policy
    alerts_enabled = Column(Boolean, default=True)
    warning_threshold = Column(Float, nullable=False, default=70.0)
    critical_threshold = Column(Float, nullable=False, default=50.0)
    notify_email = Column(Boolean, default=False)
    notify_in_app = Column(Boolean, default=True)

    status = Column(String(20), nullable=False, default="active")  # active / paused / archived / achieved

    # Current state (null until first calculation)
    current_value = Column(Float, nullable=True)
    current_progress = Column(Float, nullable=True)
    current_status = Column(String(20), nullable=True)
    current_updated_at = Column(DateTime(timezone=True), nullable=True)
    last_calculated_at = Column(DateTime(timezone=True), nullable=True)

    history = Column(JSON, nullable=True)  # [{date, value, progress, status, timestamp}, ...]

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class KPIAlertRecord(Base):
    """An alert raised by a KPI status transition."""

    __tablename__ = "kpi_alerts"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    kpi_id = Column(String(36), nullable=False, index=True)
    kpi_name = Column(String(500), nullable=False)
    alert_type = Column(String(20), nullable=False)  # success / warning / danger / info
    level = Column(String(10), nullable=False)  # high / medium / low
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    suggestions = Column(JSON, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)  # snapshot: current, target, progress, gap ...
    action_required = Column(Boolean, default=False)
    acknowledged = Column(Boolean, default=False)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
