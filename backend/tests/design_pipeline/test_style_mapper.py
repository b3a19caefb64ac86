"""Tests for design_pipeline.nodes.style_mapper - StyleMapper + token palette."""

from __future__ import annotations

import pytest

from design_pipeline.models import (
    Bounds,
    ComponentDescriptor,
    ComponentType,
    DescriptorType,
    DesignTokenSet,
    Styling,
    TargetMapping,
    ValidatedComponent,
)
from design_pipeline.nodes.structural_extractor import extract
from design_pipeline.nodes.style_mapper import (
    StyleMapper,
    TARGET_RULES,
    build_color_token_map,
    build_design_system,
)


def _component(
    id, type="other", name="", node=None, bounds=(0, 0, 100, 40),
    properties=None, target="Box", props=None,
):
    x, y, w, h = bounds
    return ValidatedComponent(
        id=id,
        type=ComponentType(type),
        name=name,
        bounds=Bounds(x=x, y=y, width=w, height=h),
        properties=properties or {},
        target_mapping=TargetMapping(component_name=target, props=props or {}),
        figma_node_id=node,
    )


@pytest.fixture
def extracted(checkout_tree):
    return extract(checkout_tree)


@pytest.fixture
def mapper(extracted):
    return StyleMapper(extracted[0])


@pytest.fixture
def tokens(extracted):
    return extracted[1]


# ─── Target selection ─────────────────────────────────────────────────


class TestTargetRules:

    def test_rule_table_order(self):
        assert [r.name for r in TARGET_RULES] == [
            "button-name", "button-type", "card", "typography", "image", "container", "default",
        ]

    def test_pay_button(self, mapper, tokens):
        pay = _component("pay", "button", "Pay Button", "1:9", (24, 700, 327, 56),
                         target="Button", props={"disableElevation": True})
        mc = mapper.map([pay], tokens)[0]

        assert mc.target_component == "Button"
        assert mc.source_node_id == "1:9"
        assert mc.props == {
            "disableElevation": True, "variant": "contained", "size": "medium",
            "color": "primary", "fullWidth": True,
        }
        assert mc.style_attributes["backgroundColor"] == "#1976d2"
        assert mc.style_attributes["minHeight"] == 56
        assert mc.style_attributes["borderRadius"] == 8
        assert mc.token_refs == {"backgroundColor": "primary"}

    def test_secondary_button_outlined(self, mapper, tokens):
        back = _component("back", "button", "Back", "1:3", (320, 50, 32, 32))
        mc = mapper.map([back], tokens)[0]
        assert mc.target_component == "Button"
        assert mc.props["variant"] == "outlined"
        assert "fullWidth" not in mc.props

    def test_text_descriptor_is_typography(self, mapper, tokens):
        total = _component("total", "text", "Total", "1:8")
        mc = mapper.map([total], tokens)[0]
        assert mc.target_component == "Typography"
        assert mc.content == "$96.00"
        assert mc.props["variant"] == "h4"
        assert mc.style_attributes["fontFamily"] == "Inter"
        assert mc.style_attributes["fontWeight"] == 600

    def test_selected_card(self, mapper, tokens):
        card = _component("visa", "card", "Mastercard", "1:4", properties={"selected": True})
        mc = mapper.map([card], tokens)[0]
        assert mc.target_component == "Card"
        assert mc.props["sx"]["borderColor"] == "primary.main"
        assert mc.style_attributes["padding"] == "16px 16px 16px 16px"
        assert mc.style_attributes["gap"] == 8
        assert mc.token_refs == {"backgroundColor": "color3"}

    def test_unselected_card(self, mapper, tokens):
        card = _component("cash", "card", "Cash", "1:4")
        mc = mapper.map([card], tokens)[0]
        assert "borderColor" not in mc.props["sx"]

    def test_frame_is_container_box(self, mapper, tokens):
        mc = mapper.map([_component("screen", "other", "Screen", "1:1")], tokens)[0]
        assert mc.target_component == "Box"

    def test_image_fill_gets_asset_url(self, tokens):
        photo = ComponentDescriptor(
            id="img", name="Photo", type=DescriptorType.RECTANGLE,
            bounds=Bounds(width=80, height=80),
            styling=Styling(image_refs=["ref-1"]),
        )
        component = _component("img", "image", "Photo", "img")
        mc = StyleMapper([photo]).map([component], tokens, {"ref-1": "https://cdn/p.png"})[0]
        assert mc.target_component == "Box"
        assert mc.image_url == "https://cdn/p.png"
        assert mc.props["component"] == "img"
        assert mc.props["src"] == "https://cdn/p.png"

    def test_gradient_background_without_solid_fill(self, tokens):
        hero = ComponentDescriptor(
            id="hero", type=DescriptorType.FRAME, bounds=Bounds(width=10, height=10),
            raw_properties={"gradients": ["linear-gradient(90deg, #ff0000 0%, #0000ff 100%)"]},
        )
        mc = StyleMapper([hero]).map([_component("hero", node="hero")], tokens)[0]
        assert mc.style_attributes["background"].startswith("linear-gradient(90deg")


# ─── Content ──────────────────────────────────────────────────────────


class TestContent:

    def test_override_wins(self, mapper, tokens):
        total = _component("total", "text", "Total", "1:8")
        mc = mapper.map([total], tokens, content_overrides={"total": "TOTAL: $120.00"})[0]
        assert mc.content == "TOTAL: $120.00"

    def test_placeholder_inferred_from_name(self, mapper, tokens):
        total = _component("summary", "container", "Total Display")
        assert mapper.map([total], tokens)[0].content == "TOTAL: $0.00"

    def test_inference_can_be_disabled(self, mapper, tokens):
        total = _component("summary", "container", "Total Display")
        assert mapper.map([total], tokens, infer_content=False)[0].content is None

    def test_pay_and_confirm_placeholder(self, mapper, tokens):
        cta = _component("cta", "button", "Pay & Confirm")
        mc = mapper.map([cta], tokens)[0]
        assert mc.content == "PAY & CONFIRM"
        assert mc.target_component == "Button"


# ─── Whole-list properties ────────────────────────────────────────────


class TestMapping:

    def test_one_output_per_component_in_order(self, mapper, tokens):
        components = [
            _component("a", "text", "A", "1:2"),
            _component("b", "other", "Ghost", "does-not-exist"),
            _component("c", "button", "C", "1:9"),
        ]
        mapped = mapper.map(components, tokens)
        assert [m.id for m in mapped] == ["a", "b", "c"]
        assert mapped[1].source_node_id == "does-not-exist"
        assert mapped[1].style_attributes == {"width": 100, "height": 40}

    def test_idempotent(self, extracted):
        descriptors, tokens = extracted
        components = [
            _component("pay", "button", "Pay Button", "1:9"),
            _component("visa", "card", "Mastercard", "1:4", properties={"selected": True}),
            _component("total", "text", "Total", "1:8"),
        ]
        first = StyleMapper(descriptors).map(components, tokens)
        second = StyleMapper(descriptors).map(components, tokens)
        assert first == second


# ─── Token palette ────────────────────────────────────────────────────


class TestDesignSystem:

    def test_named_palette(self, tokens):
        palette = build_design_system(tokens)
        assert palette.colors == {
            "white": "#ffffff", "black": "#000000", "color3": "#f5f5f5", "primary": "#1976d2",
        }
        assert build_color_token_map(palette)["#1976d2"] == "primary"

    def test_typography_and_spacing_scale(self, tokens):
        palette = build_design_system(tokens)
        assert palette.typography["text-24"] == {"fontFamily": "Inter", "fontSize": 24, "fontWeight": 700}
        assert palette.typography["text-16"]["fontWeight"] == 500
        assert palette.spacing == {"xs": 8, "sm": 16, "md": 80}

    def test_empty_tokens(self):
        palette = build_design_system(DesignTokenSet())
        assert palette.colors == {}
        assert palette.spacing == {}
