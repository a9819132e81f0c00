"""Value types shared by the KPI evaluation pipeline.

Plain dataclasses with no DB or HTTP dependencies. The store adapter maps
ORM rows onto these and back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# ---------------------------------------------------------------------------
# Enumerations (closed sets of string tags)
# ---------------------------------------------------------------------------

METRIC_SOURCES = ("analytics", "search", "custom")

COMPARISON_OPERATORS = (
    "greater_than",
    "less_than",
    "equal_to",
    "greater_or_equal",
    "less_or_equal",
    "between",
)

PERIOD_TYPES = ("daily", "weekly", "monthly", "quarterly", "yearly", "custom")

LIFECYCLE_STATUSES = ("active", "paused", "archived", "achieved")

GOAL_STATUSES = ("not_started", "on_track", "at_risk", "off_track", "achieved")

ALERT_TYPES = ("success", "warning", "danger", "info")

ALERT_LEVELS = ("high", "medium", "low")


# ---------------------------------------------------------------------------
# Definition
# ---------------------------------------------------------------------------


@dataclass
class MetricSpec:
    """Which upstream metric a KPI tracks."""
    type: str  # e.g. "ga4_sessions", "gsc_clicks", "custom_formula"
    source: str  # "analytics" | "search" | "custom"
    unit: str = ""
    formula: str | None = None  # only meaningful for custom_formula


@dataclass
class Goal:
    """Target value and how the current value is compared against it."""
    target: float
    operator: str = "greater_or_equal"
    min_value: float | None = None  # "between" lower bound
    max_value: float | None = None  # "between" upper bound, defaults to target
    deadline: datetime | None = None


@dataclass
class Period:
    """Reporting period. Informational for evaluation, used to pick the fetch range."""
    type: str = "monthly"
    start_date: str | None = None  # YYYY-MM-DD
    end_date: str | None = None


@dataclass
class DataSource:
    ga4_property_id: str | None = None
    gsc_site_url: str | None = None


@dataclass(frozen=True)
class Thresholds:
    """Alert thresholds as percent of target."""
    warning: float = 70.0
    critical: float = 50.0


@dataclass
class AlertPolicy:
    enabled: bool = True
    thresholds: Thresholds = field(default_factory=Thresholds)
    notify_email: bool = False
    notify_in_app: bool = True


@dataclass
class KPICurrentState:
    """Latest computed state of a KPI, overwritten every cycle."""
    value: float
    progress: float
    status: str
    last_updated: datetime


@dataclass(frozen=True)
class KPIHistoryEntry:
    date: str  # YYYY-MM-DD
    value: float
    progress: float
    status: str
    timestamp: datetime


@dataclass
class KPIDefinition:
    """A user-authored KPI together with its current state and history."""
    id: str
    user_id: str
    name: str
    metric: MetricSpec
    goal: Goal
    period: Period = field(default_factory=Period)
    data_source: DataSource = field(default_factory=DataSource)
    alerts: AlertPolicy = field(default_factory=AlertPolicy)
    description: str | None = None
    category: str | None = None
    status: str = "active"
    current: KPICurrentState | None = None  # None until first calculation
    history: list[KPIHistoryEntry] = field(default_factory=list)
    last_calculated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Evaluation:
    """Progress and goal status for one value."""
    progress: float  # clamped to 0-100
    status: str


@dataclass(frozen=True)
class AlertMetadata:
    """Snapshot of the numbers an alert was raised on."""
    current: float
    target: float
    progress: float
    status: str
    days_left: int | None = None
    required_daily_rate: int | None = None
    gap: float | None = None


@dataclass
class KPIAlert:
    id: str
    user_id: str
    kpi_id: str
    kpi_name: str
    type: str  # success / warning / danger / info
    level: str  # high / medium / low
    title: str
    message: str
    created_at: datetime
    metadata: AlertMetadata
    suggestions: list[str] = field(default_factory=list)
    action_required: bool = False
    acknowledged: bool = False
    acknowledged_at: datetime | None = None


@dataclass
class CalculationResult:
    """Outcome of one recomputation cycle."""
    kpi_id: str
    value: float
    previous_value: float | None
    change: float | None
    change_percent: float | None
    progress: float
    status: str
    calculated_at: datetime
    data_points: int
    confidence: str  # "high" | "low"
    alert: KPIAlert | None = None
