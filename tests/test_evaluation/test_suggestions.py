"""Tests for the remediation suggestion table."""

from kpi_pulse.evaluation.suggestions import SUGGESTIONS, get_suggestions


class TestSuggestions:
    def test_every_combination_non_empty(self):
        for severity in ("critical", "warning"):
            for source in ("analytics", "search", "custom"):
                assert get_suggestions(severity, source), (severity, source)

    def test_sets_are_distinct(self):
        values = list(SUGGESTIONS.values())
        assert len(set(values)) == len(values)

    def test_returns_a_copy(self):
        first = get_suggestions("critical", "analytics")
        first.append("mutated")
        assert "mutated" not in get_suggestions("critical", "analytics")

    def test_unknown_source_falls_back_to_custom(self):
        assert get_suggestions("warning", "crm") == list(SUGGESTIONS[("warning", "custom")])
