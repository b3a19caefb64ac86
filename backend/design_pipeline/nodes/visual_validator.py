"""Visual validation - reconcile semantic groups against a rendered screenshot.

One vision-model call per run. A successful response is backfilled with
documented defaults and each returned component is traced back to a
semantic group. Any call failure yields a deterministic analysis built
from the groups and their member descriptors; this stage never raises
for external-call failures.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Dict, List, Optional

from design_pipeline import settings
from design_pipeline.integrations.llm_client import ImageInput
from design_pipeline.models import (
    AnalysisResult,
    Bounds,
    ComponentDescriptor,
    ComponentType,
    DescriptorType,
    DesignSystemSummary,
    GroupingResult,
    LayoutKind,
    LayoutSummary,
    PaletteSummary,
    SemanticGroup,
    SpacingSummary,
    TargetMapping,
    TypographySummary,
    ValidatedComponent,
    clamp_confidence,
)
from design_pipeline.nodes.semantic_grouping import JsonModelClient, unique_id
from design_pipeline.prompts.validation_prompt import (
    VALIDATION_SYSTEM_PROMPT,
    build_validation_prompt,
)

logger = logging.getLogger(__name__)

FALLBACK_MAPPINGS: Dict[str, Dict[str, Any]] = {
    "button": {"component_name": "Button", "props": {"variant": "contained"}},
    "text": {"component_name": "Typography", "props": {"variant": "body1"}},
    "card": {"component_name": "Card", "props": {}},
    "navigation": {"component_name": "AppBar", "props": {}},
    "input": {"component_name": "TextField", "props": {}},
    "list": {"component_name": "List", "props": {}},
    "image": {"component_name": "Avatar", "props": {}},
    "container": {"component_name": "Box", "props": {}},
    "other": {"component_name": "Box", "props": {}},
}

FALLBACK_SUGGESTION = "Consider using a vision-capable model for more accurate visual analysis"
DEFAULT_SUGGESTION = "Visual validation completed"
MIN_FALLBACK_CONFIDENCE = 0.6


def fallback_mapping(component_type: str) -> TargetMapping:
    entry = FALLBACK_MAPPINGS.get(component_type, FALLBACK_MAPPINGS["other"])
    return TargetMapping(component_name=entry["component_name"], props=dict(entry["props"]))


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numbers(raw: Any, default: List[float]) -> List[float]:
    if isinstance(raw, list):
        values = [v for v in raw if _is_number(v)]
        if values:
            return values
    return list(default)


def _color(raw: Any, default: Optional[str]) -> Optional[str]:
    if isinstance(raw, str) and raw.startswith("#"):
        return raw.lower()
    return default


def _parse_bounds(raw: Any) -> Optional[Bounds]:
    if not isinstance(raw, dict):
        return None
    values = [raw.get(k) for k in ("x", "y", "width", "height")]
    if not all(_is_number(v) for v in values):
        return None
    return Bounds(x=values[0], y=values[1], width=values[2], height=values[3])


def _parse_component_type(raw: Any) -> ComponentType:
    try:
        return ComponentType(str(raw).lower())
    except ValueError:
        return ComponentType.OTHER


def parse_layout(raw: Any) -> LayoutSummary:
    if not isinstance(raw, dict):
        return LayoutSummary()
    defaults = LayoutSummary()
    try:
        structure = LayoutKind(str(raw.get("structure", "")).lower())
    except ValueError:
        structure = LayoutKind.MIXED
    spacing = raw.get("spacing") if isinstance(raw.get("spacing"), dict) else {}
    breakpoints = raw.get("breakpoints")
    return LayoutSummary(
        structure=structure,
        responsive=bool(raw.get("responsive", False)),
        breakpoints=(
            [str(b) for b in breakpoints]
            if isinstance(breakpoints, list) and breakpoints else defaults.breakpoints
        ),
        spacing_consistent=bool(spacing.get("consistent", False)),
        spacing_units=_numbers(spacing.get("units"), defaults.spacing_units),
    )


def parse_design_system(raw: Any) -> DesignSystemSummary:
    if not isinstance(raw, dict):
        return DesignSystemSummary()
    defaults = DesignSystemSummary()
    colors = raw.get("colors") if isinstance(raw.get("colors"), dict) else {}
    typography = raw.get("typography") if isinstance(raw.get("typography"), dict) else {}
    spacing = raw.get("spacing") if isinstance(raw.get("spacing"), dict) else {}
    family = typography.get("fontFamily")
    base_unit = spacing.get("baseUnit")
    return DesignSystemSummary(
        colors=PaletteSummary(
            primary=_color(colors.get("primary"), defaults.colors.primary),
            secondary=_color(colors.get("secondary"), defaults.colors.secondary),
            background=_color(colors.get("background"), defaults.colors.background),
            text=_color(colors.get("text"), defaults.colors.text),
            accent=_color(colors.get("accent"), None),
        ),
        typography=TypographySummary(
            font_family=family if isinstance(family, str) and family else "Roboto",
            sizes=_numbers(typography.get("sizes"), defaults.typography.sizes),
            weights=_numbers(typography.get("weights"), defaults.typography.weights),
        ),
        spacing=SpacingSummary(
            base_unit=base_unit if _is_number(base_unit) and base_unit > 0 else 8,
            scale=_numbers(spacing.get("scale"), defaults.spacing.scale),
        ),
        border_radius=_numbers(raw.get("borderRadius"), defaults.border_radius),
    )


# ---------------------------------------------------------------------------
# Group matching
# ---------------------------------------------------------------------------


def _center_distance(a: Bounds, b: Bounds) -> float:
    (ax, ay), (bx, by) = a.center, b.center
    return math.hypot(ax - bx, ay - by)


def _names_related(name: str, group: SemanticGroup) -> bool:
    a, b = name.lower().strip(), group.name.lower().strip()
    return bool(a) and bool(b) and (a in b or b in a)


def match_group(
    component_id: str,
    name: str,
    component_type: ComponentType,
    bounds: Optional[Bounds],
    groups: List[SemanticGroup],
) -> Optional[SemanticGroup]:
    """Find the semantic group a returned component corresponds to.

    Matching order: exact id, then center distance below the match
    threshold, then related name with the same type.
    """
    for group in groups:
        if group.id == component_id:
            return group
    if bounds is not None:
        for group in groups:
            if _center_distance(bounds, group.bounds) < settings.GROUP_MATCH_DISTANCE_PX:
                return group
    for group in groups:
        if group.type.value == component_type.value and _names_related(name, group):
            return group
    return None


def member_bounds(
    group: SemanticGroup, index: Dict[str, ComponentDescriptor],
) -> Optional[Bounds]:
    return Bounds.union([index[cid].bounds for cid in group.children if cid in index])


def _deviates(a: Bounds, b: Bounds, tolerance: float) -> bool:
    return any(
        abs(p - q) > tolerance
        for p, q in ((a.x, b.x), (a.y, b.y), (a.right, b.right), (a.bottom, b.bottom))
    )


# ---------------------------------------------------------------------------
# Fallback design system
# ---------------------------------------------------------------------------


def _members(
    groups: List[SemanticGroup], index: Dict[str, ComponentDescriptor],
) -> List[ComponentDescriptor]:
    return [index[cid] for g in groups for cid in g.children if cid in index]


def design_system_from_groups(
    groups: List[SemanticGroup],
    descriptors: List[ComponentDescriptor],
) -> DesignSystemSummary:
    """Derive a design-system summary purely from the groups' member descriptors."""
    index = {d.id: d for d in descriptors}
    defaults = DesignSystemSummary()

    colors: Dict[str, None] = {}
    sizes: set = set()
    weights: set = set()
    radii: set = set()
    font_family = "Roboto"
    spacings: set = set()

    for d in _members(groups, index):
        color = d.background_color
        if color and color != "#000000":
            colors.setdefault(color, None)
        typo = d.styling.typography
        if d.type == DescriptorType.TEXT and typo is not None:
            if typo.font_size:
                sizes.add(typo.font_size)
            if typo.font_weight:
                weights.add(typo.font_weight)
            if typo.font_family:
                font_family = typo.font_family
        if d.styling.borders is not None and d.styling.borders.radius:
            radii.add(d.styling.borders.radius)

    for group in groups:
        members = sorted(
            (index[cid] for cid in group.children if cid in index), key=lambda d: d.bounds.y
        )
        for prev, nxt in zip(members, members[1:]):
            gap = nxt.bounds.y - prev.bounds.bottom
            if 0 < gap < 100:
                spacings.add(round(gap, 2))

    palette = list(colors)[:5]
    scale = sorted(spacings)[:8]
    return DesignSystemSummary(
        colors=PaletteSummary(
            primary=palette[0] if palette else defaults.colors.primary,
            secondary=palette[1] if len(palette) > 1 else defaults.colors.secondary,
            accent=palette[2] if len(palette) > 2 else None,
        ),
        typography=TypographySummary(
            font_family=font_family,
            sizes=sorted(sizes) or [12, 14, 16, 18, 24],
            weights=sorted(weights) or [400, 500, 700],
        ),
        spacing=SpacingSummary(
            base_unit=scale[0] if scale else 8,
            scale=scale or [8, 16, 24, 32],
        ),
        border_radius=sorted(radii) or [4, 8, 16],
    )


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class VisualValidator:
    """Cross-validates semantic groups against a rendered image.

    Args:
        client: Vision-capable object exposing ``complete_json``.
        bounds_tolerance: Max edge deviation (px) from member geometry.
    """

    def __init__(self, client: JsonModelClient, bounds_tolerance: Optional[float] = None):
        self._client = client
        self._tolerance = (
            settings.BOUNDS_TOLERANCE_PX if bounds_tolerance is None else bounds_tolerance
        )

    async def validate(
        self,
        grouping: GroupingResult,
        image: ImageInput,
        descriptors: List[ComponentDescriptor],
        file_name: Optional[str] = None,
    ) -> AnalysisResult:
        start = time.monotonic()

        def _elapsed() -> float:
            return (time.monotonic() - start) * 1000

        if image is None:
            logger.warning("validation: no image supplied - using structural fallback")
            return self.build_fallback(grouping, descriptors, _elapsed(), "no rendered image supplied")

        prompt = build_validation_prompt(grouping, file_name)
        result = await self._client.complete_json(
            VALIDATION_SYSTEM_PROMPT, prompt, image=image, caller="VisualValidator"
        )
        if not result.ok:
            return self.build_fallback(grouping, descriptors, _elapsed(), result.status.value)

        payload = result.data or {}
        raw_components = payload.get("components", [])
        if not isinstance(raw_components, list):
            return self.build_fallback(
                grouping, descriptors, _elapsed(), "components missing or not a list"
            )

        index = {d.id: d for d in descriptors}
        components: List[ValidatedComponent] = []
        unmatched = 0
        matched_groups: set = set()
        component_ids: set = set()
        for i, raw in enumerate(raw_components):
            if not isinstance(raw, dict):
                continue
            # A group backs at most one component so node ids stay traceable
            remaining = [g for g in grouping.groups if g.id not in matched_groups]
            component, group = self._reconcile(raw, i, remaining, index)
            if group is None:
                unmatched += 1
            else:
                matched_groups.add(group.id)
            component_id = unique_id(component.id, component_ids, i)
            if component_id != component.id:
                component = component.model_copy(update={"id": component_id})
            component_ids.add(component_id)
            components.append(component)

        confidence = clamp_confidence(payload.get("confidence"))
        raw_suggestions = payload.get("suggestions")
        suggestions = [
            s for s in (raw_suggestions if isinstance(raw_suggestions, list) else [])
            if isinstance(s, str)
        ]
        suggestions = suggestions or [DEFAULT_SUGGESTION]
        suggestions.extend(self._quality_insights(
            unmatched, len(grouping.groups) - len(matched_groups), confidence
        ))

        analysis = AnalysisResult(
            components=components,
            layout=parse_layout(payload.get("layout")),
            design_system=(
                parse_design_system(payload["designSystem"])
                if isinstance(payload.get("designSystem"), dict)
                else design_system_from_groups(grouping.groups, descriptors)
            ),
            confidence=confidence,
            suggestions=suggestions,
            processing_time_ms=_elapsed(),
            used_fallback=False,
        )
        logger.info(
            "validation: %d components (%d unmatched), confidence=%.2f",
            len(components), unmatched, confidence,
        )
        return analysis

    def _reconcile(
        self,
        raw: Dict[str, Any],
        position: int,
        groups: List[SemanticGroup],
        index: Dict[str, ComponentDescriptor],
    ):
        component_id = str(raw.get("id") or f"component-{position}")
        name = str(raw.get("name") or "")
        ctype = _parse_component_type(raw.get("type"))
        bounds = _parse_bounds(raw.get("bounds"))
        properties = raw.get("properties") if isinstance(raw.get("properties"), dict) else {}

        group = match_group(component_id, name, ctype, bounds, groups)
        figma_node_id = None
        if group is not None:
            properties = {**properties, **group.properties, "confidence": group.confidence}
            figma_node_id = group.children[0] if group.children else None
            members = member_bounds(group, index)
            if members is not None and (
                bounds is None or _deviates(bounds, members, self._tolerance)
            ):
                bounds = members
            name = name or group.name

        mapping = self._target_mapping(raw, ctype)
        return ValidatedComponent(
            id=component_id,
            type=ctype,
            name=name,
            description=str(raw.get("description") or ""),
            bounds=bounds or Bounds(),
            properties=properties,
            target_mapping=mapping,
            source_group_id=group.id if group else None,
            figma_node_id=figma_node_id,
        ), group

    @staticmethod
    def _target_mapping(raw: Dict[str, Any], ctype: ComponentType) -> TargetMapping:
        for key, name_key in (("targetMapping", "componentName"), ("materialUIMapping", "component")):
            mapping = raw.get(key)
            if isinstance(mapping, dict) and isinstance(mapping.get(name_key), str) \
                    and mapping[name_key].strip():
                props = mapping.get("props")
                return TargetMapping(
                    component_name=mapping[name_key].strip(),
                    props=props if isinstance(props, dict) else {},
                )
        return fallback_mapping(ctype.value)

    @staticmethod
    def _quality_insights(unmatched: int, unconfirmed: int, confidence: float) -> List[str]:
        insights = []
        if unmatched:
            insights.append(
                f"{unmatched} component(s) could not be traced to a semantic group"
            )
        if unconfirmed > 0:
            insights.append(f"{unconfirmed} semantic group(s) were not confirmed visually")
        if confidence < 0.6:
            insights.append("Low visual confidence; review the component mapping manually")
        return insights

    def build_fallback(
        self,
        grouping: GroupingResult,
        descriptors: List[ComponentDescriptor],
        processing_time_ms: float = 0.0,
        reason: str = "",
    ) -> AnalysisResult:
        """Deterministic analysis: one component per group, mapped by type."""
        index = {d.id: d for d in descriptors}
        components = []
        component_ids: set = set()
        for i, group in enumerate(grouping.groups):
            ctype = ComponentType(group.type.value)
            component_id = unique_id(group.id, component_ids, i)
            component_ids.add(component_id)
            components.append(ValidatedComponent(
                id=component_id,
                type=ctype,
                name=group.name,
                description=group.description,
                bounds=member_bounds(group, index) or group.bounds,
                properties={
                    "interactive": bool(group.properties.get("interactive", False)),
                    **group.properties,
                },
                target_mapping=fallback_mapping(ctype.value),
                source_group_id=group.id,
                figma_node_id=group.children[0] if group.children else None,
            ))

        logger.warning(
            "validation: fallback analysis for %d group(s)%s",
            len(components), f" ({reason})" if reason else "",
        )
        suggestions = [FALLBACK_SUGGESTION]
        if reason:
            suggestions.append(f"Visual validation unavailable: {reason}")
        return AnalysisResult(
            components=components,
            layout=LayoutSummary(),
            design_system=design_system_from_groups(grouping.groups, descriptors),
            confidence=clamp_confidence(max(MIN_FALLBACK_CONFIDENCE, grouping.confidence)),
            suggestions=suggestions,
            processing_time_ms=processing_time_ms,
            used_fallback=True,
        )
