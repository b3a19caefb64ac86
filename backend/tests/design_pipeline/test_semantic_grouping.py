"""Tests for design_pipeline.nodes.semantic_grouping - SemanticGroupingEngine.

Covers:
- Heuristic fallback on every non-OK call status and on schema-invalid payloads
- Child id resolution (unknown / duplicate ids dropped)
- Empty-group repair and grouped/ungrouped accounting
- Confidence clamping
"""

from __future__ import annotations

import pytest

from design_pipeline.integrations.llm_client import LLMCallStatus
from design_pipeline.models import GroupType
from design_pipeline.nodes.semantic_grouping import (
    FALLBACK_CONFIDENCE,
    SemanticGroupingEngine,
    build_fallback_result,
    unique_id,
)
from design_pipeline.nodes.structural_extractor import extract
from design_pipeline.prompts.grouping_prompt import build_grouping_prompt


@pytest.fixture
def twenty(make_descriptor):
    return [
        make_descriptor(f"n{i}", "text" if i % 2 else "rectangle", x=10, y=i * 40, text=f"Item {i}")
        for i in range(20)
    ]


def _assert_accounting(result):
    assert result.grouped_nodes + len(result.ungrouped_nodes) == result.total_nodes
    members = [cid for g in result.groups for cid in g.children]
    assert len(members) == len(set(members))
    assert all(g.children for g in result.groups)
    assert all(0.1 <= g.confidence <= 1.0 for g in result.groups)


# ─── Fallback ─────────────────────────────────────────────────────────


class TestFallback:

    @pytest.mark.asyncio
    async def test_call_failure_yields_fifteen_single_member_groups(self, twenty, model_client):
        engine = SemanticGroupingEngine(model_client(status=LLMCallStatus.TRANSPORT_ERROR))
        result = await engine.group({}, twenty)

        assert result.used_fallback is True
        assert result.confidence == FALLBACK_CONFIDENCE == 0.5
        assert len(result.groups) == 15
        assert all(len(g.children) == 1 for g in result.groups)
        assert [d.id for d in result.ungrouped_nodes] == ["n15", "n16", "n17", "n18", "n19"]
        _assert_accounting(result)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [
        LLMCallStatus.PARSE_ERROR, LLMCallStatus.TIMEOUT, LLMCallStatus.TRANSPORT_ERROR,
    ])
    async def test_every_failure_status_falls_back(self, twenty, model_client, status):
        result = await SemanticGroupingEngine(model_client(status=status)).group({}, twenty)
        assert result.used_fallback is True

    @pytest.mark.asyncio
    async def test_groups_not_a_list_falls_back(self, twenty, model_client):
        client = model_client({"groups": {"id": "x"}, "confidence": 0.9})
        result = await SemanticGroupingEngine(client).group({}, twenty)
        assert result.used_fallback is True

    def test_fallback_group_shape(self, make_descriptor):
        descriptors = [
            make_descriptor("t", "text", name="Pay Button", text="Pay"),
            make_descriptor("e", "ellipse", name="Dot"),
        ]
        result = build_fallback_result(descriptors)
        text_group, dot_group = result.groups
        assert text_group.id == "fallback-t"
        assert text_group.type == GroupType.TEXT
        assert text_group.properties == {"interactive": True, "text": "Pay"}
        assert dot_group.type == GroupType.OTHER
        assert result.ungrouped_nodes == []


# ─── Model output resolution ──────────────────────────────────────────


class TestModelOutput:

    @pytest.mark.asyncio
    async def test_valid_payload(self, checkout_tree, model_client):
        descriptors, _ = extract(checkout_tree)
        client = model_client({
            "layoutStructure": {"screenType": "payment", "mainSections": ["header", "actions"]},
            "groups": [
                {"id": "header", "name": "Header", "type": "container",
                 "bounds": {"x": 0, "y": 40, "width": 375, "height": 50},
                 "children": ["1:2", "1:3"], "confidence": 0.9},
                {"id": "pay", "name": "Pay Button", "type": "BUTTON",
                 "children": ["1:9", "1:10"], "confidence": 0.95},
            ],
            "confidence": 0.85,
        })
        result = await SemanticGroupingEngine(client).group(checkout_tree, descriptors)

        assert result.used_fallback is False
        assert result.confidence == 0.85
        assert result.layout_structure.screen_type == "payment"
        assert [g.id for g in result.groups] == ["header", "pay"]
        assert result.groups[1].type == GroupType.BUTTON
        assert result.grouped_nodes == 4
        assert len(result.ungrouped_nodes) == 6
        _assert_accounting(result)

        # One call with the grouping prompt; the file name reaches the prompt
        client.complete_json.assert_awaited_once()
        user_prompt = client.complete_json.await_args.args[1]
        assert 'Analyze the design "Checkout"' in user_prompt

    @pytest.mark.asyncio
    async def test_unknown_and_duplicate_children_dropped(self, twenty, model_client):
        client = model_client({"groups": [
            {"id": "a", "name": "A", "children": ["n0", "ghost", "n1"]},
            {"id": "b", "name": "B", "children": ["n1", "n2"]},
        ]})
        result = await SemanticGroupingEngine(client).group({}, twenty)
        assert result.groups[0].children == ["n0", "n1"]
        assert result.groups[1].children == ["n2"]
        _assert_accounting(result)

    @pytest.mark.asyncio
    async def test_duplicate_group_ids_disambiguated(self, twenty, model_client):
        client = model_client({"groups": [
            {"id": "row", "name": "Row", "children": ["n0"]},
            {"id": "row", "name": "Row", "children": ["n1"]},
        ]})
        result = await SemanticGroupingEngine(client).group({}, twenty)
        assert [g.id for g in result.groups] == ["row", "row-1"]

    @pytest.mark.asyncio
    async def test_disambiguated_id_never_collides_with_model_id(self, twenty, model_client):
        client = model_client({"groups": [
            {"id": "row-2", "name": "Row", "children": ["n0"]},
            {"id": "row", "name": "Row", "children": ["n1"]},
            {"id": "row", "name": "Row", "children": ["n2"]},
        ]})
        result = await SemanticGroupingEngine(client).group({}, twenty)
        assert [g.id for g in result.groups] == ["row-2", "row", "row-3"]

    def test_unique_id(self):
        assert unique_id("row", set(), 4) == "row"
        assert unique_id("row", {"row"}, 1) == "row-1"
        assert unique_id("row", {"row", "row-1", "row-2"}, 1) == "row-3"

    @pytest.mark.asyncio
    async def test_out_of_range_confidence_clamped(self, twenty, model_client):
        client = model_client({
            "groups": [
                {"id": "a", "name": "A", "children": ["n0"], "confidence": 7},
                {"id": "b", "name": "B", "children": ["n1"], "confidence": -1},
                {"id": "c", "name": "C", "children": ["n2"], "confidence": "high"},
            ],
            "confidence": 1.4,
        })
        result = await SemanticGroupingEngine(client).group({}, twenty)
        assert [g.confidence for g in result.groups] == [1.0, 0.1, 0.7]
        assert result.confidence == 1.0

    @pytest.mark.asyncio
    async def test_missing_bounds_and_type_get_defaults(self, twenty, model_client):
        client = model_client({"groups": [{"name": "Thing", "type": "widget", "children": ["n3"]}]})
        result = await SemanticGroupingEngine(client).group({}, twenty)
        group = result.groups[0]
        assert group.id == "group-0"
        assert group.type == GroupType.OTHER
        assert (group.bounds.width, group.bounds.height) == (100, 50)


# ─── Repair integration ───────────────────────────────────────────────


class TestRepairIntegration:

    @pytest.mark.asyncio
    async def test_empty_total_group_repaired_from_unclaimed_nodes(self, checkout_tree, model_client):
        descriptors, _ = extract(checkout_tree)
        client = model_client({"groups": [
            {"id": "total", "name": "Total Display", "children": []},
            {"id": "pay", "name": "Pay Button", "type": "button", "children": ["1:9", "1:10"]},
        ], "confidence": 0.8})
        result = await SemanticGroupingEngine(client).group(checkout_tree, descriptors)

        total = result.groups[0]
        assert total.id == "total"
        assert set(total.children) == {"1:7", "1:8"}
        _assert_accounting(result)

    @pytest.mark.asyncio
    async def test_unrepairable_empty_group_dropped(self, make_descriptor, model_client):
        descriptors = [make_descriptor("only", x=0, y=0)]
        client = model_client({"groups": [
            {"id": "a", "name": "A", "children": ["only"]},
            {"id": "ghost", "name": "Header", "children": ["missing"]},
        ]})
        result = await SemanticGroupingEngine(client).group({}, descriptors)
        assert [g.id for g in result.groups] == ["a"]
        _assert_accounting(result)


# ─── Prompt ───────────────────────────────────────────────────────────


class TestGroupingPrompt:

    def test_node_listing_is_capped(self, twenty):
        prompt = build_grouping_prompt(twenty, "Big", node_limit=5)
        assert "## Nodes (first 5 of 20)" in prompt
        assert "id=n4 " in prompt
        assert "id=n5 " not in prompt

    def test_sections_present(self, checkout_tree):
        descriptors, _ = extract(checkout_tree)
        prompt = build_grouping_prompt(descriptors, "Checkout")
        assert "Screen type: payment" in prompt
        assert "Vertical sections:" in prompt
        assert 'text="$96.00"' in prompt
        assert "fill=#1976d2" in prompt
