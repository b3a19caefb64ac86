"""Grouping vs. visual-validation comparison metrics.

Summarises how the validation stage changed the grouping stage's output.
The accuracy and efficiency figures are rough heuristics without ground
truth; treat them as illustrative, not as quality measurements.
"""

from __future__ import annotations

from typing import Iterable, List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from design_pipeline.models import AnalysisResult, GroupingResult

# Groups per screen assumed to represent a complete decomposition
IDEAL_GROUP_COUNT = 8

# Nominal duration (seconds) assumed for a vision call when estimating efficiency
NOMINAL_VISION_SECONDS = 60.0

INTERACTIVE_TYPES = ("button", "input", "navigation")
STRUCTURAL_TYPES = ("card", "container", "list")


class _Metrics(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ImprovementMetrics(_Metrics):
    component_count: int
    confidence_change: float
    processing_efficiency: float


class CoverageMetrics(_Metrics):
    text: int
    interactive: int
    structural: int


class AccuracyMetrics(_Metrics):
    grouping_accuracy: float
    validation_accuracy: float
    overall_improvement: float


class PerformanceMetrics(_Metrics):
    grouping_ms: float
    validation_ms: float
    total_ms: float


class ComparisonMetrics(_Metrics):
    improvement: ImprovementMetrics
    coverage: CoverageMetrics
    accuracy: AccuracyMetrics
    performance: PerformanceMetrics


def _count(analysis: AnalysisResult, types: Iterable[str]) -> int:
    wanted = set(types)
    return sum(1 for c in analysis.components if c.type.value in wanted)


def estimate_grouping_accuracy(grouping: GroupingResult) -> float:
    completeness = min(len(grouping.groups) / IDEAL_GROUP_COUNT, 1.0)
    return round((completeness + grouping.confidence) / 2 * 100, 2)


def estimate_validation_accuracy(analysis: AnalysisResult) -> float:
    if not analysis.components:
        return round(analysis.confidence / 3 * 100, 2)
    completeness = min(len(analysis.components) / IDEAL_GROUP_COUNT, 1.0)
    mapped = sum(1 for c in analysis.components if c.target_mapping.component_name)
    mapping_ratio = mapped / len(analysis.components)
    return round((completeness + analysis.confidence + mapping_ratio) / 3 * 100, 2)


def estimate_efficiency(grouping: GroupingResult, analysis: AnalysisResult) -> float:
    """Relative components-per-second change; 0.0 when the ratio is undefined."""
    if not grouping.groups or grouping.processing_time_ms <= 0:
        return 0.0
    grouping_rate = len(grouping.groups) / (grouping.processing_time_ms / 1000)
    vision_rate = len(analysis.components) / NOMINAL_VISION_SECONDS
    return round((vision_rate - grouping_rate) / grouping_rate * 100, 2)


def compare_stage_results(
    grouping: GroupingResult,
    analysis: AnalysisResult,
    validation_time_ms: float = 0.0,
) -> ComparisonMetrics:
    """Compare a grouping result with the analysis validated from it."""
    grouping_accuracy = estimate_grouping_accuracy(grouping)
    validation_accuracy = estimate_validation_accuracy(analysis)
    return ComparisonMetrics(
        improvement=ImprovementMetrics(
            component_count=len(analysis.components) - len(grouping.groups),
            confidence_change=round((analysis.confidence - grouping.confidence) * 100, 2),
            processing_efficiency=estimate_efficiency(grouping, analysis),
        ),
        coverage=CoverageMetrics(
            text=_count(analysis, ("text",)),
            interactive=_count(analysis, INTERACTIVE_TYPES),
            structural=_count(analysis, STRUCTURAL_TYPES),
        ),
        accuracy=AccuracyMetrics(
            grouping_accuracy=grouping_accuracy,
            validation_accuracy=validation_accuracy,
            overall_improvement=round(validation_accuracy - grouping_accuracy, 2),
        ),
        performance=PerformanceMetrics(
            grouping_ms=grouping.processing_time_ms,
            validation_ms=validation_time_ms,
            total_ms=grouping.processing_time_ms + validation_time_ms,
        ),
    )


def identify_issues(metrics: ComparisonMetrics) -> List[str]:
    issues: List[str] = []
    if metrics.improvement.confidence_change < 5:
        issues.append("Low confidence improvement - consider refining the prompts")
    if metrics.coverage.text < 2:
        issues.append("Few text elements identified - grouping may need better text analysis")
    if metrics.coverage.interactive < 3:
        issues.append("Few interactive elements identified - check button/input detection")
    if metrics.performance.total_ms > 45000:
        issues.append("Processing time too high - consider optimization")
    if metrics.improvement.confidence_change < 0:
        issues.append("Confidence decreased - visual validation contradicts the grouping")
    return issues


def _signed(value: float) -> str:
    return f"+{value:.1f}" if value > 0 else f"{value:.1f}"


def generate_analysis_report(metrics: ComparisonMetrics) -> str:
    """Human-readable summary of the comparison."""
    imp, cov, acc, perf = (
        metrics.improvement, metrics.coverage, metrics.accuracy, metrics.performance,
    )
    if imp.component_count > 0:
        summary = (
            f"Visual validation added {imp.component_count} component(s) with a "
            f"{imp.confidence_change:.1f} point confidence change."
        )
    else:
        summary = "Visual validation confirmed and refined the semantic groups."

    lines = [
        "Two-Stage Analysis Report",
        "",
        "Improvement:",
        f"  Component detection: {'+' if imp.component_count > 0 else ''}"
        f"{imp.component_count} components",
        f"  Confidence change: {_signed(imp.confidence_change)} points",
        f"  Processing efficiency (estimate): {imp.processing_efficiency:.1f}%",
        "",
        "Coverage:",
        f"  Text elements: {cov.text}",
        f"  Interactive elements: {cov.interactive}",
        f"  Structural elements: {cov.structural}",
        "",
        "Accuracy (estimate):",
        f"  Grouping: {acc.grouping_accuracy:.1f}%",
        f"  Validation: {acc.validation_accuracy:.1f}%",
        f"  Overall: {_signed(acc.overall_improvement)}%",
        "",
        "Performance:",
        f"  Grouping: {perf.grouping_ms / 1000:.1f}s",
        f"  Validation: {perf.validation_ms / 1000:.1f}s",
        f"  Total: {perf.total_ms / 1000:.1f}s",
        "",
        f"Summary: {summary}",
    ]
    issues = identify_issues(metrics)
    if issues:
        lines.append("")
        lines.append("Issues:")
        lines.extend(f"  - {issue}" for issue in issues)
    return "\n".join(lines)
