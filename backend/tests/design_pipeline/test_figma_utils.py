"""Tests for design_pipeline.nodes.figma_utils."""

import pytest

from design_pipeline.nodes.figma_utils import (
    figma_color_to_hex,
    figma_corner_radius,
    figma_effects_to_shadows,
    figma_gradient_to_css,
    figma_padding,
    figma_strokes_to_border,
    figma_text_to_typography,
    first_solid_color,
    gradient_angle,
    visible_paints,
)


class TestColorToHex:

    def test_orange_rounds_half_up(self):
        assert figma_color_to_hex({"r": 1.0, "g": 0.5019, "b": 0.0}) == "#ff8000"

    def test_exact_half_channel_rounds_up(self):
        # 0.5 * 255 = 127.5 -> 128
        assert figma_color_to_hex({"r": 0.5, "g": 0.5, "b": 0.5}) == "#808080"

    def test_lowercase_output(self):
        assert figma_color_to_hex({"r": 0.6706, "g": 0.8039, "b": 0.9373}) == "#abcdef"

    def test_missing_channels_default_to_zero(self):
        assert figma_color_to_hex({"r": 1}) == "#ff0000"
        assert figma_color_to_hex({}) == "#000000"

    def test_out_of_range_clamped(self):
        assert figma_color_to_hex({"r": 1.5, "g": -0.2, "b": 1}) == "#ff00ff"

    def test_alpha_ignored(self):
        assert figma_color_to_hex({"r": 1, "g": 1, "b": 1, "a": 0.2}) == "#ffffff"


class TestPaints:

    def test_hidden_paints_skipped(self):
        paints = [
            {"type": "SOLID", "visible": False, "color": {"r": 1, "g": 0, "b": 0}},
            {"type": "SOLID", "color": {"r": 0, "g": 0, "b": 1}},
        ]
        assert first_solid_color(paints) == "#0000ff"

    def test_filter_by_type(self):
        paints = [{"type": "IMAGE", "imageRef": "abc"}, {"type": "SOLID", "color": {}}]
        assert len(visible_paints(paints, "IMAGE")) == 1

    def test_non_list_is_empty(self):
        assert visible_paints(None) == []
        assert first_solid_color("nope") is None


class TestGradients:

    def _fill(self, **kwargs):
        fill = {
            "type": "GRADIENT_LINEAR",
            "gradientStops": [
                {"color": {"r": 1, "g": 0, "b": 0, "a": 1}, "position": 0},
                {"color": {"r": 0, "g": 0, "b": 1, "a": 1}, "position": 1},
            ],
        }
        fill.update(kwargs)
        return fill

    def test_identity_transform_is_left_to_right(self):
        fill = self._fill(gradientTransform=[[1, 0, 0], [0, 1, 0]])
        assert figma_gradient_to_css(fill) == "linear-gradient(90deg, #ff0000 0%, #0000ff 100%)"

    def test_handles_used_without_transform(self):
        fill = self._fill(gradientHandlePositions=[{"x": 0.5, "y": 0}, {"x": 0.5, "y": 1}])
        assert gradient_angle(fill) == 180

    def test_default_angle_is_180(self):
        assert gradient_angle(self._fill()) == 180

    def test_angle_snaps_to_45(self):
        fill = self._fill(gradientHandlePositions=[{"x": 0, "y": 1}, {"x": 1, "y": 0.1}])
        assert gradient_angle(fill) == 45

    def test_fractional_stop_position(self):
        fill = self._fill()
        fill["gradientStops"][1]["position"] = 0.375
        assert "#0000ff 37.5%" in figma_gradient_to_css(fill)

    def test_no_stops_returns_none(self):
        assert figma_gradient_to_css({"gradientStops": []}) is None


class TestBordersAndShadows:

    def test_solid_stroke(self):
        node = {"strokes": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0}}], "strokeWeight": 2}
        assert figma_strokes_to_border(node) == {"width": 2, "style": "solid", "color": "#000000"}

    def test_dashed_stroke(self):
        node = {
            "strokes": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}}],
            "strokeWeight": 1,
            "strokeDashes": [4, 2],
        }
        assert figma_strokes_to_border(node)["style"] == "dashed"

    def test_zero_weight_has_no_border(self):
        node = {"strokes": [{"type": "SOLID", "color": {}}], "strokeWeight": 0}
        assert figma_strokes_to_border(node) is None

    def test_drop_shadow(self):
        effects = [{
            "type": "DROP_SHADOW",
            "offset": {"x": 0.0, "y": 4.0},
            "radius": 8.0,
            "spread": 0,
            "color": {"r": 0, "g": 0, "b": 0, "a": 0.25},
        }]
        assert figma_effects_to_shadows(effects) == ["0px 4px 8px 0px rgba(0, 0, 0, 0.25)"]

    def test_inner_shadow_prefixed_and_blur_ignored(self):
        effects = [
            {"type": "INNER_SHADOW", "offset": {"x": 1, "y": 1}, "radius": 2,
             "color": {"r": 1, "g": 1, "b": 1, "a": 1}},
            {"type": "LAYER_BLUR", "radius": 4},
            {"type": "DROP_SHADOW", "visible": False, "radius": 4},
        ]
        shadows = figma_effects_to_shadows(effects)
        assert shadows == ["inset 1px 1px 2px 0px rgba(255, 255, 255, 1)"]


class TestGeometryAndText:

    def test_uniform_radius(self):
        assert figma_corner_radius({"cornerRadius": 8}) == 8

    def test_mixed_radii_use_largest(self):
        assert figma_corner_radius({"rectangleCornerRadii": [4, 4, 12, 0]}) == 12

    def test_no_radius(self):
        assert figma_corner_radius({"cornerRadius": 0}) is None

    def test_typography(self):
        node = {"style": {
            "fontFamily": "Inter", "fontSize": 16, "fontWeight": 600,
            "lineHeightPx": 24, "textAlignHorizontal": "CENTER",
        }}
        assert figma_text_to_typography(node) == {
            "font_family": "Inter", "font_size": 16, "font_weight": 600,
            "line_height": 24, "text_align": "center",
        }

    def test_typography_absent(self):
        assert figma_text_to_typography({}) is None

    @pytest.mark.parametrize("node,expected", [
        ({"paddingTop": 8, "paddingLeft": 16}, {"top": 8, "right": 0, "bottom": 0, "left": 16}),
        ({}, None),
    ])
    def test_padding(self, node, expected):
        assert figma_padding(node) == expected
