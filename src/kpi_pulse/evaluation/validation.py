"""Invariant checks for KPI definitions."""

from __future__ import annotations

import math

from kpi_pulse.errors import KPIValidationError
from kpi_pulse.evaluation.kpi_types import (
    COMPARISON_OPERATORS,
    LIFECYCLE_STATUSES,
    METRIC_SOURCES,
    PERIOD_TYPES,
    KPIDefinition,
)
from kpi_pulse.evaluation.metric_resolver import METRIC_TYPES


def validation_errors(kpi: KPIDefinition) -> list[str]:
    """Return a list of human-readable problems with *kpi* (empty when valid)."""
    errors: list[str] = []

    if not kpi.name or not kpi.name.strip():
        errors.append("name is required")
    if kpi.metric.type not in METRIC_TYPES:
        errors.append(f"unknown metric type: {kpi.metric.type}")
    if kpi.metric.source not in METRIC_SOURCES:
        errors.append(f"unknown metric source: {kpi.metric.source}")
    if kpi.goal.operator not in COMPARISON_OPERATORS:
        errors.append(f"unknown comparison operator: {kpi.goal.operator}")
    if kpi.period.type not in PERIOD_TYPES:
        errors.append(f"unknown period type: {kpi.period.type}")
    if kpi.status not in LIFECYCLE_STATUSES:
        errors.append(f"unknown KPI status: {kpi.status}")

    target = kpi.goal.target
    if isinstance(target, bool) or not isinstance(target, (int, float)) or not math.isfinite(target):
        errors.append("goal target must be a finite number")

    if kpi.goal.operator == "between":
        lower = kpi.goal.min_value if kpi.goal.min_value is not None else 0.0
        upper = kpi.goal.max_value if kpi.goal.max_value is not None else target
        if isinstance(upper, (int, float)) and lower > upper:
            errors.append("goal min_value must not exceed max_value")

    warning = kpi.alerts.thresholds.warning
    critical = kpi.alerts.thresholds.critical
    if not (0 <= critical <= 100 and 0 <= warning <= 100):
        errors.append("alert thresholds must be between 0 and 100")
    elif warning <= critical:
        errors.append("warning threshold must be greater than critical threshold")

    return errors


def validate_kpi_definition(kpi: KPIDefinition) -> KPIDefinition:
    """Raise KPIValidationError if *kpi* breaks an invariant, else return it."""
    errors = validation_errors(kpi)
    if errors:
        raise KPIValidationError("Invalid KPI definition: " + "; ".join(errors), details=errors)
    return kpi
