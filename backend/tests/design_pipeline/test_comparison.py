"""Tests for design_pipeline.reporting.comparison."""

from __future__ import annotations

import pytest

from design_pipeline.models import (
    AnalysisResult,
    Bounds,
    ComponentType,
    GroupingResult,
    SemanticGroup,
    TargetMapping,
    ValidatedComponent,
)
from design_pipeline.reporting.comparison import (
    compare_stage_results,
    generate_analysis_report,
    identify_issues,
)


def _grouping(count: int, confidence: float, time_ms: float = 2000.0) -> GroupingResult:
    groups = [
        SemanticGroup(id=f"g{i}", name=f"G{i}", bounds=Bounds(), children=[f"n{i}"])
        for i in range(count)
    ]
    return GroupingResult(
        groups=groups, total_nodes=count, grouped_nodes=count,
        confidence=confidence, processing_time_ms=time_ms,
    )


def _analysis(types, confidence: float) -> AnalysisResult:
    components = [
        ValidatedComponent(
            id=f"c{i}", type=ComponentType(t), name=t,
            target_mapping=TargetMapping(component_name="Box"),
        )
        for i, t in enumerate(types)
    ]
    return AnalysisResult(components=components, confidence=confidence)


EIGHT = ["text", "text", "button", "button", "button", "input", "card", "container"]


class TestCompareStageResults:

    def test_component_and_confidence_deltas(self):
        metrics = compare_stage_results(_grouping(5, 0.7), _analysis(EIGHT, 0.85), 5000)
        assert metrics.improvement.component_count == 3
        assert metrics.improvement.confidence_change == 15.0

    def test_coverage_counts(self):
        metrics = compare_stage_results(_grouping(5, 0.7), _analysis(EIGHT, 0.85))
        assert metrics.coverage.text == 2
        assert metrics.coverage.interactive == 4
        assert metrics.coverage.structural == 2

    def test_accuracy_estimates(self):
        metrics = compare_stage_results(_grouping(5, 0.7), _analysis(EIGHT, 0.85))
        assert metrics.accuracy.grouping_accuracy == 66.25
        assert metrics.accuracy.validation_accuracy == 95.0
        assert metrics.accuracy.overall_improvement == 28.75

    def test_performance(self):
        metrics = compare_stage_results(_grouping(5, 0.7), _analysis(EIGHT, 0.85), 5000)
        assert metrics.performance.grouping_ms == 2000.0
        assert metrics.performance.validation_ms == 5000
        assert metrics.performance.total_ms == 7000.0

    def test_efficiency_placeholder(self):
        metrics = compare_stage_results(_grouping(5, 0.7), _analysis(EIGHT, 0.85))
        assert metrics.improvement.processing_efficiency == pytest.approx(-94.67)

    def test_efficiency_undefined_is_zero(self):
        metrics = compare_stage_results(_grouping(0, 0.5, time_ms=0), _analysis([], 0.6))
        assert metrics.improvement.processing_efficiency == 0.0

    def test_serialises_with_camel_case(self):
        metrics = compare_stage_results(_grouping(5, 0.7), _analysis(EIGHT, 0.85))
        dumped = metrics.model_dump(by_alias=True)
        assert dumped["improvement"]["confidenceChange"] == 15.0
        assert "totalMs" in dumped["performance"]


class TestIssues:

    def test_healthy_run_has_no_issues(self):
        metrics = compare_stage_results(_grouping(5, 0.7), _analysis(EIGHT, 0.85), 5000)
        assert identify_issues(metrics) == []

    def test_every_threshold(self):
        metrics = compare_stage_results(
            _grouping(5, 0.9, time_ms=30000), _analysis(["image"], 0.8), 20000,
        )
        issues = identify_issues(metrics)
        assert len(issues) == 5
        assert issues[0].startswith("Low confidence improvement")
        assert issues[-1].startswith("Confidence decreased")

    def test_report_mentions_deltas_and_issues(self):
        metrics = compare_stage_results(_grouping(5, 0.7), _analysis(EIGHT, 0.85), 5000)
        report = generate_analysis_report(metrics)
        assert "Component detection: +3 components" in report
        assert "Confidence change: +15.0 points" in report
        assert "Total: 7.0s" in report
        assert "Issues:" not in report

    def test_report_lists_issues(self):
        metrics = compare_stage_results(_grouping(3, 0.9), _analysis(["text"], 0.5))
        report = generate_analysis_report(metrics)
        assert "Issues:" in report
        assert "Confidence change: -40.0 points" in report
