"""Figma utility functions - color/gradient conversion + property extraction.

Provides deterministic conversion from Figma REST node fields to the
styling sub-structures of a ComponentDescriptor: colors, gradients,
borders, shadows, corner radius, typography and auto-layout spacing.
"""

import logging
import math
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Color / gradient utilities
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _channel(value: Any) -> int:
    if not isinstance(value, (int, float)):
        value = 0.0
    return max(0, min(255, round_half_up(value * 255)))


def figma_color_to_hex(color: Dict) -> str:
    """Convert Figma RGB float dict {r,g,b} to a lowercase 6-hex string.

    (1.0, 0.5019, 0.0) -> '#ff8000'. Alpha is not encoded.
    """
    color = color or {}
    r = _channel(color.get("r", 0))
    g = _channel(color.get("g", 0))
    b = _channel(color.get("b", 0))
    return f"#{r:02x}{g:02x}{b:02x}"


def visible_paints(paints: Any, paint_type: Optional[str] = None) -> List[Dict]:
    """Visible paint dicts of a fills/strokes list, optionally filtered by type."""
    if not isinstance(paints, list):
        return []
    result = []
    for paint in paints:
        if not isinstance(paint, dict) or not paint.get("visible", True):
            continue
        if paint_type and paint.get("type") != paint_type:
            continue
        result.append(paint)
    return result


def first_solid_color(paints: Any) -> Optional[str]:
    solids = visible_paints(paints, "SOLID")
    if not solids:
        return None
    return figma_color_to_hex(solids[0].get("color", {}))


def _snap_angle(angle: float) -> int:
    return (round_half_up(angle / 45.0) * 45) % 360


def _angle_from_transform(transform: Any) -> Optional[float]:
    """CSS angle of a gradient from its 2x3 ``gradientTransform``.

    The transform maps node space to gradient space, where the gradient runs
    along +x. Its inverse applied to (1, 0) gives the node-space direction.
    """
    try:
        (a, b, _c), (d, e, _f) = transform
        det = a * e - b * d
    except (TypeError, ValueError):
        return None
    if not det:
        return None
    dx, dy = e / det, -d / det
    return math.degrees(math.atan2(dx, -dy)) % 360


def _angle_from_handles(handles: Any) -> Optional[float]:
    if not isinstance(handles, list) or len(handles) < 2:
        return None
    p0, p1 = handles[0], handles[1]
    if not isinstance(p0, dict) or not isinstance(p1, dict):
        return None
    dx = p1.get("x", 0.5) - p0.get("x", 0.5)
    dy = p1.get("y", 0) - p0.get("y", 0)
    if dx == 0 and dy == 0:
        return None
    return math.degrees(math.atan2(dx, -dy)) % 360


def gradient_angle(fill: Dict) -> int:
    """Gradient angle in CSS degrees snapped to the nearest 45 (default 180)."""
    angle = _angle_from_transform(fill.get("gradientTransform"))
    if angle is None:
        angle = _angle_from_handles(fill.get("gradientHandlePositions"))
    if angle is None:
        return 180
    return _snap_angle(angle)


def _format_percent(position: Any) -> str:
    if not isinstance(position, (int, float)):
        position = 0
    pct = round(position * 100, 2)
    return f"{int(pct)}%" if pct == int(pct) else f"{pct}%"


def figma_gradient_to_css(fill: Dict) -> Optional[str]:
    """Convert a GRADIENT_LINEAR paint to a CSS linear-gradient() string."""
    stops = fill.get("gradientStops") or []
    parts = []
    for stop in stops:
        if not isinstance(stop, dict):
            continue
        color = figma_color_to_hex(stop.get("color", {}))
        parts.append(f"{color} {_format_percent(stop.get('position', 0))}")
    if not parts:
        return None
    return f"linear-gradient({gradient_angle(fill)}deg, {', '.join(parts)})"


# ---------------------------------------------------------------------------
# Figma property mapping helpers
# ---------------------------------------------------------------------------


def figma_strokes_to_border(node: Dict) -> Optional[Dict[str, Any]]:
    """Convert Figma strokes/strokeWeight to {width, style, color}."""
    color = first_solid_color(node.get("strokes"))
    if color is None:
        return None
    weight = node.get("strokeWeight", 1)
    if not isinstance(weight, (int, float)) or weight <= 0:
        return None
    style = "dashed" if node.get("strokeDashes") else "solid"
    return {"width": weight, "style": style, "color": color}


def figma_effects_to_shadows(effects: Any) -> List[str]:
    """Convert visible DROP_SHADOW / INNER_SHADOW effects to CSS box-shadow strings."""
    shadows: List[str] = []
    if not isinstance(effects, list):
        return shadows

    for effect in effects:
        if not isinstance(effect, dict) or not effect.get("visible", True):
            continue
        etype = effect.get("type", "")
        if etype not in ("DROP_SHADOW", "INNER_SHADOW"):
            continue
        offset = effect.get("offset") or {}
        color = effect.get("color") or {}
        alpha = color.get("a", 1.0)
        rgba = "rgba({}, {}, {}, {})".format(
            _channel(color.get("r", 0)),
            _channel(color.get("g", 0)),
            _channel(color.get("b", 0)),
            round(alpha, 2),
        )
        shadow = "{}px {}px {}px {}px {}".format(
            _num(offset.get("x", 0)),
            _num(offset.get("y", 0)),
            _num(effect.get("radius", 0)),
            _num(effect.get("spread", 0)),
            rgba,
        )
        if etype == "INNER_SHADOW":
            shadow = f"inset {shadow}"
        shadows.append(shadow)

    return shadows


def _num(value: Any) -> Any:
    """Render whole floats without a trailing .0."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def figma_corner_radius(node: Dict) -> Optional[float]:
    """Extract a uniform corner radius (largest corner when non-uniform)."""
    radii = node.get("rectangleCornerRadii")
    if isinstance(radii, list) and len(radii) == 4:
        numeric = [r for r in radii if isinstance(r, (int, float))]
        if numeric and max(numeric) > 0:
            return max(numeric)

    radius = node.get("cornerRadius", 0)
    if isinstance(radius, (int, float)) and radius > 0:
        return radius
    return None


def figma_text_to_typography(node: Dict) -> Optional[Dict[str, Any]]:
    """Extract typography info from a TEXT node."""
    style = node.get("style") or {}
    # Some exports use "typeStyle" instead of "style"
    if not style.get("fontFamily"):
        style = node.get("typeStyle") or style
    if not style:
        return None

    align_map = {
        "LEFT": "left", "CENTER": "center",
        "RIGHT": "right", "JUSTIFIED": "justify",
    }

    result: Dict[str, Any] = {}
    if style.get("fontFamily"):
        result["font_family"] = style["fontFamily"]
    if style.get("fontSize"):
        result["font_size"] = style["fontSize"]
    if style.get("fontWeight"):
        result["font_weight"] = style["fontWeight"]
    if style.get("lineHeightPx"):
        result["line_height"] = style["lineHeightPx"]
    if style.get("textAlignHorizontal"):
        result["text_align"] = align_map.get(style["textAlignHorizontal"], "left")

    return result or None


def figma_padding(node: Dict) -> Optional[Dict[str, float]]:
    """Auto-layout padding as {top, right, bottom, left}, or None when unset."""
    keys = {
        "top": "paddingTop", "right": "paddingRight",
        "bottom": "paddingBottom", "left": "paddingLeft",
    }
    padding = {}
    for side, key in keys.items():
        value = node.get(key)
        if isinstance(value, (int, float)):
            padding[side] = value
    if not padding:
        return None
    return {side: padding.get(side, 0) for side in keys}
