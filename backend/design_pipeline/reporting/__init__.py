"""Grouping vs. validation comparison metrics."""

from .comparison import (
    ComparisonMetrics,
    compare_stage_results,
    generate_analysis_report,
    identify_issues,
)

__all__ = [
    "ComparisonMetrics",
    "compare_stage_results",
    "generate_analysis_report",
    "identify_issues",
]
