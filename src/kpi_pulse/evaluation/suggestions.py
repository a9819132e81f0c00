"""Remediation suggestions for danger / warning KPI alerts.

A lookup table keyed by (severity, metric source). Every key maps to a
distinct, non-empty tuple.
"""

from __future__ import annotations

SUGGESTIONS: dict[tuple[str, str], tuple[str, ...]] = {
    ("critical", "analytics"): (
        "Launch a paid advertising campaign to boost traffic",
        "Step up social media and email marketing",
        "Run a limited-time promotion",
        "Analyse user behaviour to find the biggest drop-off",
        "Review whether the target is still realistic",
    ),
    ("critical", "search"): (
        "Publish or refresh content for the pages that matter most",
        "Invest in backlink building",
        "Fix site performance and Core Web Vitals issues",
        "Revisit the target keyword set",
        "Review whether the target is still realistic",
    ),
    ("critical", "custom"): (
        "Identify the inputs driving the shortfall",
        "Escalate to the KPI owner for immediate action",
        "Review whether the target is still realistic",
    ),
    ("warning", "analytics"): (
        "Dig into the data to locate the bottleneck",
        "Strengthen content marketing",
        "Re-examine the target audience",
        "Improve the user experience on key pages",
    ),
    ("warning", "search"): (
        "Strengthen on-page SEO",
        "Add high-quality content",
        "Re-analyse search intent for core queries",
        "Improve internal linking",
    ),
    ("warning", "custom"): (
        "Check the inputs feeding this KPI for recent changes",
        "Agree on corrective actions with the KPI owner",
    ),
}


def get_suggestions(severity: str, source: str) -> list[str]:
    """Return the suggestion list for a severity ("critical" | "warning") and source.

    Unknown sources fall back to the "custom" set.
    """
    key = (severity, source) if (severity, source) in SUGGESTIONS else (severity, "custom")
    return list(SUGGESTIONS.get(key, ()))
