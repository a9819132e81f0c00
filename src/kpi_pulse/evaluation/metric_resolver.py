"""Metric resolver — map a KPI metric type onto a raw metrics bag.

The bag is the summary returned by the analytics / search fetch functions.
Field names are the upstream ones (camelCase). Missing fields are normal
when upstream data is partial and resolve to 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class MetricDefinition:
    """Catalogue entry for one metric type."""
    label: str
    description: str
    source: str  # "analytics" | "search" | "custom"
    unit: str
    field: str | None  # key in the raw bag, None for computed metrics


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    # Web analytics
    "ga4_sessions": MetricDefinition(
        "Sessions", "Number of visits to the site", "analytics", "sessions", "totalSessions",
    ),
    "ga4_users": MetricDefinition(
        "Users", "Number of active users", "analytics", "users", "totalUsers",
    ),
    "ga4_pageviews": MetricDefinition(
        "Page views", "Number of pages viewed", "analytics", "views", "totalPageViews",
    ),
    "ga4_bounce_rate": MetricDefinition(
        "Bounce rate", "Share of single-page sessions", "analytics", "%", "avgBounceRate",
    ),
    "ga4_avg_session_duration": MetricDefinition(
        "Avg. session duration", "Average time spent per session", "analytics", "s", "avgSessionDuration",
    ),
    "ga4_conversions": MetricDefinition(
        "Conversions", "Number of completed goals", "analytics", "conversions", "totalConversions",
    ),
    "ga4_conversion_rate": MetricDefinition(
        "Conversion rate", "Conversions per session", "analytics", "%", "conversionRate",
    ),
    # Search performance
    "gsc_clicks": MetricDefinition(
        "Clicks", "Clicks from search results", "search", "clicks", "totalClicks",
    ),
    "gsc_impressions": MetricDefinition(
        "Impressions", "Appearances in search results", "search", "impressions", "totalImpressions",
    ),
    "gsc_ctr": MetricDefinition(
        "CTR", "Clicks per impression", "search", "%", "avgCtr",
    ),
    "gsc_position": MetricDefinition(
        "Avg. position", "Average ranking in search results", "search", "", "avgPosition",
    ),
    # Computed
    "custom_formula": MetricDefinition(
        "Custom formula", "User-defined calculation", "custom", "", None,
    ),
}

METRIC_TYPES = tuple(METRIC_DEFINITIONS)


def metric_field(metric_type: str) -> str | None:
    """Return the raw bag key a metric type reads, or None."""
    definition = METRIC_DEFINITIONS.get(metric_type)
    return definition.field if definition else None


def has_metric_value(metric_type: str, raw: Mapping[str, Any] | None) -> bool:
    """True when the raw bag actually carries a usable number for the metric."""
    key = metric_field(metric_type)
    if key is None or not raw:
        return False
    return _to_number(raw.get(key)) is not None


def resolve_metric_value(metric_type: str, raw: Mapping[str, Any] | None) -> float:
    """Look up the value for *metric_type* in *raw*.

    Unknown metric types, ``custom_formula``, missing fields and
    non-numeric values all resolve to 0.0. Never raises.
    """
    key = metric_field(metric_type)
    if key is None or not raw:
        return 0.0
    value = _to_number(raw.get(key))
    return value if value is not None else 0.0


def _to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).replace(",", ""))
    except (ValueError, TypeError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number
