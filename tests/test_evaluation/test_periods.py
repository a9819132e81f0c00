"""Tests for period → fetch date range resolution."""

from datetime import date

from kpi_pulse.evaluation.kpi_types import Period
from kpi_pulse.evaluation.periods import resolve_date_range

TODAY = date(2026, 8, 20)


class TestResolveDateRange:
    def test_daily(self):
        assert resolve_date_range(Period("daily"), TODAY) == (TODAY, TODAY)

    def test_weekly(self):
        assert resolve_date_range(Period("weekly"), TODAY) == (date(2026, 8, 14), TODAY)

    def test_monthly(self):
        assert resolve_date_range(Period("monthly"), TODAY) == (date(2026, 8, 1), TODAY)

    def test_quarterly(self):
        assert resolve_date_range(Period("quarterly"), TODAY) == (date(2026, 7, 1), TODAY)

    def test_yearly(self):
        assert resolve_date_range(Period("yearly"), TODAY) == (date(2026, 1, 1), TODAY)

    def test_custom_without_dates(self):
        assert resolve_date_range(Period("custom"), TODAY) == (date(2026, 7, 22), TODAY)

    def test_explicit_dates_win(self):
        period = Period("monthly", start_date="2026-05-01", end_date="2026-05-31")
        assert resolve_date_range(period, TODAY) == (date(2026, 5, 1), date(2026, 5, 31))

    def test_invalid_date_ignored(self):
        period = Period("daily", start_date="not-a-date")
        assert resolve_date_range(period, TODAY) == (TODAY, TODAY)

    def test_reversed_dates_swapped(self):
        period = Period("custom", start_date="2026-06-30", end_date="2026-06-01")
        assert resolve_date_range(period, TODAY) == (date(2026, 6, 1), date(2026, 6, 30))
