"""Structural extraction - Figma node tree to ComponentDescriptors + design tokens.

Walks the raw node tree depth-first and emits one flat descriptor per
geometric node, while mining the design-token set in the same pass.
Document, canvas and slice nodes are transparent: their children are
visited but they produce no descriptor.

Usage:
    descriptors, tokens = extract(file_json)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from design_pipeline.exceptions import NoExtractableStructureError
from design_pipeline.models import (
    BorderStyle,
    Bounds,
    ColorStyle,
    ComponentDescriptor,
    DescriptorType,
    DesignTokenSet,
    Padding,
    SpacingStyle,
    Styling,
    TypographyStyle,
)
from design_pipeline.nodes.figma_utils import (
    figma_color_to_hex,
    figma_corner_radius,
    figma_effects_to_shadows,
    figma_gradient_to_css,
    figma_padding,
    figma_strokes_to_border,
    figma_text_to_typography,
    first_solid_color,
    visible_paints,
)

logger = logging.getLogger(__name__)

TRANSPARENT_TYPES = frozenset({"DOCUMENT", "CANVAS", "SLICE"})

NODE_TYPE_MAP: Dict[str, DescriptorType] = {
    "TEXT": DescriptorType.TEXT,
    "RECTANGLE": DescriptorType.RECTANGLE,
    "ELLIPSE": DescriptorType.ELLIPSE,
    "FRAME": DescriptorType.FRAME,
    "SECTION": DescriptorType.FRAME,
    "GROUP": DescriptorType.GROUP,
    "COMPONENT": DescriptorType.COMPONENT,
    "COMPONENT_SET": DescriptorType.COMPONENT,
    "INSTANCE": DescriptorType.INSTANCE,
    # Drawable primitives are treated as generic shapes
    "VECTOR": DescriptorType.RECTANGLE,
    "LINE": DescriptorType.RECTANGLE,
    "STAR": DescriptorType.RECTANGLE,
    "REGULAR_POLYGON": DescriptorType.RECTANGLE,
    "BOOLEAN_OPERATION": DescriptorType.RECTANGLE,
}

_CONTAINER_TYPES = frozenset({
    DescriptorType.FRAME, DescriptorType.GROUP,
    DescriptorType.COMPONENT, DescriptorType.INSTANCE,
})

# Inferred sibling gaps outside (0, MAX_INFERRED_GAP) are not spacing tokens
MAX_INFERRED_GAP = 100.0


def _number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_bounds(node: Dict) -> Optional[Bounds]:
    box = node.get("absoluteBoundingBox")
    if not isinstance(box, dict):
        return None
    if not all(_number(box.get(k)) for k in ("x", "y", "width", "height")):
        return None
    return Bounds(x=box["x"], y=box["y"], width=box["width"], height=box["height"])


def resolve_roots(tree: Any) -> List[Dict]:
    """Locate traversable root nodes in a file, nodes or bare-node payload."""
    if not isinstance(tree, dict):
        raise NoExtractableStructureError(
            "no extractable structure: design tree is missing or not an object"
        )

    if isinstance(tree.get("document"), dict):
        return [tree["document"]]

    if isinstance(tree.get("nodes"), dict):
        roots = [
            entry["document"]
            for entry in tree["nodes"].values()
            if isinstance(entry, dict) and isinstance(entry.get("document"), dict)
        ]
        if roots:
            return roots

    if "type" in tree or "children" in tree:
        return [tree]

    raise NoExtractableStructureError(
        "no extractable structure: no document root found in design tree"
    )


class _OrderedSet:
    def __init__(self) -> None:
        self._items: Dict[Any, None] = {}

    def add(self, item: Any) -> None:
        if item is not None:
            self._items.setdefault(item, None)

    def ordered(self) -> List[Any]:
        return list(self._items)

    def sorted(self) -> List[Any]:
        return sorted(self._items)


class StructuralExtractor:
    """Single-run extractor; create a fresh instance per tree."""

    def __init__(self) -> None:
        self._descriptors: List[ComponentDescriptor] = []
        self._colors = _OrderedSet()
        self._gradients = _OrderedSet()
        self._families = _OrderedSet()
        self._sizes = _OrderedSet()
        self._weights = _OrderedSet()
        self._spacing = _OrderedSet()
        self._skipped = 0
        self._seen_ids: Set[str] = set()

    def extract(self, tree: Any) -> Tuple[List[ComponentDescriptor], DesignTokenSet]:
        for root in resolve_roots(tree):
            self._visit(root)

        tokens = DesignTokenSet(
            colors=self._colors.ordered(),
            gradients=self._gradients.ordered(),
            font_families=self._families.ordered(),
            font_sizes=self._sizes.sorted(),
            font_weights=self._weights.sorted(),
            spacing_values=self._spacing.sorted(),
        )
        logger.info(
            "StructuralExtractor: %d descriptors, %d colors, %d spacing values, "
            "%d nodes skipped",
            len(self._descriptors), len(tokens.colors),
            len(tokens.spacing_values), self._skipped,
        )
        return list(self._descriptors), tokens

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _visit(self, node: Any) -> None:
        if not isinstance(node, dict):
            self._skipped += 1
            return

        # A nodes payload may list a node alongside one of its ancestors
        node_id = node.get("id")
        if isinstance(node_id, str):
            if node_id in self._seen_ids:
                logger.debug("StructuralExtractor: node %s already visited, skipping subtree", node_id)
                return
            self._seen_ids.add(node_id)

        node_type = node.get("type", "")
        if node_type not in TRANSPARENT_TYPES:
            descriptor = self._build_descriptor(node)
            if descriptor is not None:
                self._descriptors.append(descriptor)
                self._mine_tokens(node, descriptor)
            else:
                self._skipped += 1

        children = node.get("children")
        if isinstance(children, list):
            for child in children:
                self._visit(child)
            self._mine_sibling_gaps(node, children)

    def _build_descriptor(self, node: Dict) -> Optional[ComponentDescriptor]:
        kind = NODE_TYPE_MAP.get(node.get("type", ""))
        node_id = node.get("id")
        bounds = parse_bounds(node)
        if kind is None or not isinstance(node_id, str) or bounds is None:
            logger.debug(
                "StructuralExtractor: skipping node id=%r type=%r (no geometry or unknown kind)",
                node_id, node.get("type"),
            )
            return None

        return ComponentDescriptor(
            id=node_id,
            name=str(node.get("name", "")),
            type=kind,
            bounds=bounds,
            styling=self._build_styling(node, kind),
            raw_properties=self._raw_properties(node, kind),
        )

    # ------------------------------------------------------------------
    # Styling
    # ------------------------------------------------------------------

    def _build_styling(self, node: Dict, kind: DescriptorType) -> Styling:
        fill_color = first_solid_color(node.get("fills"))
        border = figma_strokes_to_border(node)

        colors = None
        if fill_color or border:
            colors = ColorStyle(
                background=fill_color if kind != DescriptorType.TEXT else None,
                text=fill_color if kind == DescriptorType.TEXT else None,
                border=border["color"] if border else None,
            )

        typography = None
        if kind == DescriptorType.TEXT:
            typo = figma_text_to_typography(node)
            if typo:
                typography = TypographyStyle(**typo)

        spacing = None
        if kind in _CONTAINER_TYPES:
            padding = figma_padding(node)
            item_spacing = node.get("itemSpacing")
            layout_mode = node.get("layoutMode")
            if padding or _number(item_spacing) or layout_mode:
                spacing = SpacingStyle(
                    layout_mode=layout_mode if isinstance(layout_mode, str) else None,
                    padding=Padding(**padding) if padding else None,
                    item_spacing=item_spacing if _number(item_spacing) else None,
                )

        borders = None
        radius = figma_corner_radius(node) if kind != DescriptorType.TEXT else None
        if radius is not None or border:
            borders = BorderStyle(
                radius=radius,
                width=border["width"] if border else None,
                style=border["style"] if border else None,
                color=border["color"] if border else None,
            )

        image_refs = [
            paint["imageRef"]
            for paint in visible_paints(node.get("fills"), "IMAGE")
            if isinstance(paint.get("imageRef"), str) and paint["imageRef"]
        ]

        return Styling(
            colors=colors,
            typography=typography,
            spacing=spacing,
            borders=borders,
            shadows=figma_effects_to_shadows(node.get("effects")),
            image_refs=image_refs,
        )

    def _raw_properties(self, node: Dict, kind: DescriptorType) -> Dict[str, Any]:
        raw: Dict[str, Any] = {}
        if kind == DescriptorType.TEXT and isinstance(node.get("characters"), str):
            raw["characters"] = node["characters"]
        if isinstance(node.get("componentId"), str):
            raw["componentId"] = node["componentId"]
        if node.get("visible") is False:
            raw["visible"] = False
        if _number(node.get("opacity")) and node["opacity"] < 1:
            raw["opacity"] = node["opacity"]
        if isinstance(node.get("clipsContent"), bool):
            raw["clipsContent"] = node["clipsContent"]
        gradients = [
            css for css in (
                figma_gradient_to_css(p)
                for p in visible_paints(node.get("fills"), "GRADIENT_LINEAR")
            ) if css
        ]
        if gradients:
            raw["gradients"] = gradients
        return raw

    # ------------------------------------------------------------------
    # Token mining
    # ------------------------------------------------------------------

    def _mine_tokens(self, node: Dict, descriptor: ComponentDescriptor) -> None:
        for key in ("fills", "strokes"):
            for paint in visible_paints(node.get(key), "SOLID"):
                self._colors.add(figma_color_to_hex(paint.get("color", {})))

        for paint in visible_paints(node.get("fills"), "GRADIENT_LINEAR"):
            self._gradients.add(figma_gradient_to_css(paint))

        typo = descriptor.styling.typography
        if typo is not None:
            self._families.add(typo.font_family)
            self._sizes.add(typo.font_size)
            self._weights.add(typo.font_weight)

        spacing = descriptor.styling.spacing
        if spacing is not None:
            if spacing.padding is not None:
                for value in (spacing.padding.top, spacing.padding.right,
                              spacing.padding.bottom, spacing.padding.left):
                    if value > 0:
                        self._spacing.add(value)
            if spacing.item_spacing is not None and spacing.item_spacing > 0:
                self._spacing.add(spacing.item_spacing)

    def _mine_sibling_gaps(self, parent: Dict, children: List[Any]) -> None:
        horizontal = parent.get("layoutMode") == "HORIZONTAL"
        boxes = [b for b in (parse_bounds(c) for c in children if isinstance(c, dict)) if b]
        if len(boxes) < 2:
            return

        if horizontal:
            boxes.sort(key=lambda b: b.x)
            gaps = [nxt.x - prev.right for prev, nxt in zip(boxes, boxes[1:])]
        else:
            boxes.sort(key=lambda b: b.y)
            gaps = [nxt.y - prev.bottom for prev, nxt in zip(boxes, boxes[1:])]

        for gap in gaps:
            if 0 < gap < MAX_INFERRED_GAP:
                self._spacing.add(round(gap, 2))


def extract(tree: Any) -> Tuple[List[ComponentDescriptor], DesignTokenSet]:
    """Extract descriptors and design tokens from a Figma node tree.

    Raises:
        NoExtractableStructureError: when the tree is absent or has no root.
    """
    return StructuralExtractor().extract(tree)
