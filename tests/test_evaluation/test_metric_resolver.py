"""Tests for the metric resolver lookup table."""

from kpi_pulse.evaluation.metric_resolver import (
    METRIC_DEFINITIONS,
    has_metric_value,
    metric_field,
    resolve_metric_value,
)


class TestResolveMetricValue:
    def test_analytics_sessions(self):
        assert resolve_metric_value("ga4_sessions", {"totalSessions": 8000}) == 8000.0

    def test_search_clicks(self):
        raw = {"totalClicks": 420, "totalImpressions": 12000, "avgCtr": 3.5, "avgPosition": 8.2}
        assert resolve_metric_value("gsc_clicks", raw) == 420.0
        assert resolve_metric_value("gsc_position", raw) == 8.2

    def test_missing_field_is_zero(self):
        assert resolve_metric_value("ga4_conversions", {}) == 0.0

    def test_none_bag_is_zero(self):
        assert resolve_metric_value("ga4_users", None) == 0.0

    def test_field_from_other_source_is_zero(self):
        assert resolve_metric_value("gsc_clicks", {"totalSessions": 5}) == 0.0

    def test_custom_formula_is_zero(self):
        assert resolve_metric_value("custom_formula", {"totalSessions": 5}) == 0.0

    def test_unknown_metric_type_is_zero(self):
        assert resolve_metric_value("ga4_revenue", {"totalRevenue": 5}) == 0.0

    def test_non_numeric_value_is_zero(self):
        assert resolve_metric_value("ga4_sessions", {"totalSessions": "n/a"}) == 0.0

    def test_numeric_string_with_separator(self):
        assert resolve_metric_value("ga4_sessions", {"totalSessions": "1,250"}) == 1250.0

    def test_null_value_is_zero(self):
        assert resolve_metric_value("ga4_bounce_rate", {"avgBounceRate": None}) == 0.0


class TestHasMetricValue:
    def test_present(self):
        assert has_metric_value("ga4_sessions", {"totalSessions": 0}) is True

    def test_absent(self):
        assert has_metric_value("ga4_sessions", {"totalUsers": 10}) is False

    def test_custom_formula(self):
        assert has_metric_value("custom_formula", {"anything": 1}) is False


class TestMetricCatalogue:
    def test_every_non_custom_metric_has_a_field(self):
        for metric_type, definition in METRIC_DEFINITIONS.items():
            if metric_type == "custom_formula":
                assert definition.field is None
            else:
                assert definition.field, metric_type

    def test_sources_match_prefix(self):
        for metric_type, definition in METRIC_DEFINITIONS.items():
            if metric_type.startswith("ga4_"):
                assert definition.source == "analytics"
            elif metric_type.startswith("gsc_"):
                assert definition.source == "search"

    def test_metric_field(self):
        assert metric_field("ga4_pageviews") == "totalPageViews"
        assert metric_field("nope") is None
