"""KPI goal evaluator — progress percentage and goal status.

Pure functions. Progress is always clamped to 0-100; whether the goal is
met is decided on the unclamped value by the goal's comparison operator.
"""

from __future__ import annotations

from kpi_pulse.evaluation.kpi_types import Evaluation, Goal, Thresholds


def compute_progress(current: float, target: float) -> float:
    """Return current as a percentage of target, clamped to [0, 100].

    A zero target yields 0 progress.
    """
    if target == 0:
        return 0.0
    raw = current / target * 100
    return max(0.0, min(100.0, raw))


def is_goal_achieved(current: float, goal: Goal) -> bool:
    """Apply the goal's comparison operator to the unclamped current value."""
    op = goal.operator
    target = goal.target

    if op == "greater_than":
        return current > target
    elif op == "less_than":
        return current < target
    elif op == "equal_to":
        return current == target
    elif op == "greater_or_equal":
        return current >= target
    elif op == "less_or_equal":
        return current <= target
    elif op == "between":
        lower = goal.min_value if goal.min_value is not None else 0.0
        upper = goal.max_value if goal.max_value is not None else target
        return lower <= current <= upper
    return False


def classify_status(current: float, progress: float, goal: Goal, thresholds: Thresholds) -> str:
    """Classify goal status. First match wins.

    achieved > not_started (progress 0) > on_track (>= warning)
    > at_risk (>= critical) > off_track.
    """
    if is_goal_achieved(current, goal):
        return "achieved"
    if progress == 0:
        return "not_started"
    if progress >= thresholds.warning:
        return "on_track"
    if progress >= thresholds.critical:
        return "at_risk"
    return "off_track"


def evaluate(current: float, goal: Goal, thresholds: Thresholds) -> Evaluation:
    """Evaluate a KPI value against its goal.

    Args:
        current: Latest resolved metric value.
        goal: The KPI goal definition.
        thresholds: Warning / critical thresholds (percent of target).

    Returns:
        Evaluation with clamped progress and goal status.
    """
    progress = compute_progress(current, goal.target)
    status = classify_status(current, progress, goal, thresholds)
    return Evaluation(progress=progress, status=status)
