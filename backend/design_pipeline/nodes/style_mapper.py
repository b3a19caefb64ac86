"""Style mapping - validated components to target UI library components.

Deterministic and independent of any model: an ordered rule table picks
the Material-UI component for each ValidatedComponent, styling sub-structures
of its source descriptor become CSS-like style attributes, and text content
is taken literally or inferred from naming patterns. Mapping the same input
twice yields identical output.

Usage:
    mapper = StyleMapper(descriptors)
    mapped = mapper.map(analysis.components, tokens, asset_urls)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from design_pipeline.models import (
    ComponentDescriptor,
    ComponentType,
    DescriptorType,
    DesignTokenSet,
    MappedComponent,
    TokenPalette,
    ValidatedComponent,
)
from design_pipeline.nodes.spatial_analyzer import is_value_text

logger = logging.getLogger(__name__)

BUTTON_NAME_KEYWORDS = ("button", "btn", "add new")
CARD_NAME_KEYWORDS = ("card", "method", "visa", "mastercard", "paypal", "cash")
TYPOGRAPHY_NAME_KEYWORDS = ("text", "title", "label", "total", "payment")
PRIMARY_ACTION_KEYWORDS = ("primary", "pay", "confirm", "submit")
SELECTED_KEYWORDS = ("selected", "active")

_SPACING_SCALE = ("xs", "sm", "md", "lg", "xl", "xxl")


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Subject:
    """What the rules look at for one component."""

    component: ValidatedComponent
    descriptor: Optional[ComponentDescriptor]
    name: str

    @property
    def descriptor_type(self) -> Optional[DescriptorType]:
        return self.descriptor.type if self.descriptor else None

    def name_has(self, keywords) -> bool:
        return any(k in self.name for k in keywords)


@dataclass(frozen=True)
class TargetRule:
    name: str
    target: str
    matches: Callable[[_Subject], bool]


TARGET_RULES: List[TargetRule] = [
    TargetRule(
        "button-name", "Button",
        lambda s: s.name_has(BUTTON_NAME_KEYWORDS) or ("pay" in s.name and "confirm" in s.name),
    ),
    TargetRule("button-type", "Button", lambda s: s.component.type == ComponentType.BUTTON),
    TargetRule(
        "card", "Card",
        lambda s: s.name_has(CARD_NAME_KEYWORDS) or s.component.type == ComponentType.CARD,
    ),
    TargetRule(
        "typography", "Typography",
        lambda s: s.descriptor_type == DescriptorType.TEXT
        or s.component.type == ComponentType.TEXT
        or s.name_has(TYPOGRAPHY_NAME_KEYWORDS),
    ),
    TargetRule(
        "image", "Box",
        lambda s: s.descriptor_type == DescriptorType.RECTANGLE
        and bool(s.descriptor.styling.image_refs),
    ),
    TargetRule(
        "container", "Box",
        lambda s: s.descriptor_type in (DescriptorType.FRAME, DescriptorType.GROUP),
    ),
    TargetRule("default", "Box", lambda s: True),
]

# (name predicate, placeholder); first match wins
CONTENT_RULES: List[tuple] = [
    (lambda n: "pay" in n and "confirm" in n, "PAY & CONFIRM"),
    (lambda n: "add new" in n, "+ ADD NEW"),
    (lambda n: "select payment" in n, "Select Payment Method"),
    (lambda n: "total" in n, "TOTAL: $0.00"),
]


def select_target(subject: _Subject) -> TargetRule:
    return next(rule for rule in TARGET_RULES if rule.matches(subject))


# ---------------------------------------------------------------------------
# Style attributes
# ---------------------------------------------------------------------------


def _num(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _px(value: Any) -> str:
    return f"{_num(value)}px"


def build_style_attributes(
    component: ValidatedComponent,
    descriptor: Optional[ComponentDescriptor],
    target: str,
) -> Dict[str, Any]:
    """CSS-like style attributes from bounds and descriptor styling."""
    b = component.bounds
    sx: Dict[str, Any] = {"width": _num(b.width), "height": _num(b.height)}
    if target == "Button":
        sx["minWidth"] = _num(b.width)
        sx["minHeight"] = _num(b.height)

    if descriptor is None:
        return sx
    styling = descriptor.styling

    if styling.colors is not None:
        if styling.colors.background:
            sx["backgroundColor"] = styling.colors.background
        if styling.colors.text:
            sx["color"] = styling.colors.text
        if styling.colors.border:
            sx["borderColor"] = styling.colors.border

    gradients = descriptor.raw_properties.get("gradients") or []
    if gradients and "backgroundColor" not in sx:
        sx["background"] = gradients[0]

    typo = styling.typography
    if typo is not None:
        if typo.font_family:
            sx["fontFamily"] = typo.font_family
        if typo.font_size:
            sx["fontSize"] = _num(typo.font_size)
        if typo.font_weight:
            sx["fontWeight"] = _num(typo.font_weight)
        if typo.line_height:
            sx["lineHeight"] = _px(typo.line_height)
        if typo.text_align:
            sx["textAlign"] = typo.text_align

    spacing = styling.spacing
    if spacing is not None and spacing.padding is not None:
        p = spacing.padding
        sx["padding"] = " ".join(_px(v) for v in (p.top, p.right, p.bottom, p.left))
    if spacing is not None and spacing.item_spacing:
        sx["gap"] = _num(spacing.item_spacing)

    borders = styling.borders
    if borders is not None:
        if borders.radius:
            sx["borderRadius"] = _num(borders.radius)
        if borders.width and borders.color:
            sx["border"] = f"{_px(borders.width)} {borders.style or 'solid'} {borders.color}"

    if styling.shadows:
        sx["boxShadow"] = ", ".join(styling.shadows)

    return sx


# ---------------------------------------------------------------------------
# Props
# ---------------------------------------------------------------------------


def _is_selected(subject: _Subject) -> bool:
    props = subject.component.properties
    return (
        props.get("selected") is True
        or props.get("state") == "selected"
        or subject.name_has(SELECTED_KEYWORDS)
    )


def build_props(subject: _Subject, rule: TargetRule, content: Optional[str]) -> Dict[str, Any]:
    props: Dict[str, Any] = dict(subject.component.target_mapping.props)
    component = subject.component

    if rule.target == "Button":
        primary = subject.name_has(PRIMARY_ACTION_KEYWORDS)
        props["variant"] = "contained" if primary else "outlined"
        props["size"] = "large" if component.bounds.height > 60 else "medium"
        if "pay" in subject.name or "confirm" in subject.name:
            props["color"] = "primary"
            props["fullWidth"] = True

    elif rule.target == "Card":
        props["variant"] = "outlined"
        sx = {"cursor": "pointer", "&:hover": {"boxShadow": 2}}
        if _is_selected(subject):
            sx["borderColor"] = "primary.main"
            sx["borderWidth"] = 2
        props["sx"] = sx

    elif rule.target == "Typography":
        text = (content or "").lower()
        if "total" in subject.name or "total" in text or is_value_text(content or ""):
            props["variant"] = "h4"
            props["fontWeight"] = "bold"
        elif subject.name_has(("title", "header", "heading")) or (
            "payment" in subject.name and "method" not in subject.name
        ):
            props["variant"] = "h5"
        else:
            props["variant"] = "body1"

    elif rule.name == "image":
        props["component"] = "img"
        props["alt"] = component.name or (subject.descriptor.name if subject.descriptor else "")

    return props


# ---------------------------------------------------------------------------
# Design-system palette
# ---------------------------------------------------------------------------


def _is_grey(hex_color: str) -> bool:
    body = hex_color.lstrip("#")
    return len(body) == 6 and body[0:2] == body[2:4] == body[4:6]


def build_design_system(tokens: DesignTokenSet) -> TokenPalette:
    """Name the mined tokens: palette roles, a typography scale and spacing steps."""
    colors: Dict[str, str] = {}
    chromatic = 0
    for i, hex_color in enumerate(tokens.colors):
        if hex_color == "#ffffff":
            name = "white"
        elif hex_color == "#000000":
            name = "black"
        elif not _is_grey(hex_color) and chromatic < 2:
            name = ("primary", "secondary")[chromatic]
            chromatic += 1
        else:
            name = f"color{i + 1}"
        colors.setdefault(name, hex_color)

    family = tokens.font_families[0] if tokens.font_families else "Roboto"
    light = tokens.font_weights[0] if tokens.font_weights else 400
    heavy = tokens.font_weights[-1] if tokens.font_weights else 700
    typography: Dict[str, Dict[str, Any]] = {}
    for size in tokens.font_sizes:
        typography[f"text-{_num(size)}"] = {
            "fontFamily": family,
            "fontSize": _num(size),
            "fontWeight": _num(heavy if size >= 20 else light),
        }

    spacing = {
        step: _num(value)
        for step, value in zip(_SPACING_SCALE, tokens.spacing_values)
    }
    return TokenPalette(
        colors=colors, typography=typography, spacing=spacing,
        gradients=list(tokens.gradients),
    )


def build_color_token_map(palette: TokenPalette) -> Dict[str, str]:
    """Build hex -> token name reverse lookup from a palette."""
    reverse: Dict[str, str] = {}
    for name, hex_val in palette.colors.items():
        reverse.setdefault(hex_val.lower(), name)
    return reverse


# ---------------------------------------------------------------------------
# Mapper
# ---------------------------------------------------------------------------


class StyleMapper:
    """Maps ValidatedComponents onto target components using their source descriptors."""

    def __init__(self, descriptors: List[ComponentDescriptor]):
        self._index = {d.id: d for d in descriptors}

    def source_descriptor(self, component: ValidatedComponent) -> Optional[ComponentDescriptor]:
        if component.figma_node_id and component.figma_node_id in self._index:
            return self._index[component.figma_node_id]
        return self._index.get(component.id)

    def map(
        self,
        components: List[ValidatedComponent],
        tokens: DesignTokenSet,
        asset_urls: Optional[Dict[str, str]] = None,
        content_overrides: Optional[Dict[str, str]] = None,
        infer_content: bool = True,
    ) -> List[MappedComponent]:
        """Produce exactly one MappedComponent per ValidatedComponent, in order."""
        asset_urls = asset_urls or {}
        overrides = content_overrides or {}
        color_tokens = build_color_token_map(build_design_system(tokens))

        mapped = [
            self._map_one(c, asset_urls, overrides, infer_content, color_tokens)
            for c in components
        ]
        logger.info("StyleMapper: mapped %d component(s)", len(mapped))
        return mapped

    def _map_one(
        self,
        component: ValidatedComponent,
        asset_urls: Dict[str, str],
        overrides: Dict[str, str],
        infer_content: bool,
        color_tokens: Dict[str, str],
    ) -> MappedComponent:
        descriptor = self.source_descriptor(component)
        name = " ".join(
            n for n in (component.name, descriptor.name if descriptor else "") if n
        ).lower()
        subject = _Subject(component=component, descriptor=descriptor, name=name)
        rule = select_target(subject)

        content = self._content(subject, overrides, infer_content)
        style = build_style_attributes(component, descriptor, rule.target)
        token_refs = {
            key: color_tokens[style[key]]
            for key in ("backgroundColor", "color", "borderColor")
            if isinstance(style.get(key), str) and style[key] in color_tokens
        }
        image_url = self._image_url(component, descriptor, asset_urls)
        props = build_props(subject, rule, content)
        if image_url and rule.name == "image":
            props["src"] = image_url

        return MappedComponent(
            id=component.id,
            name=component.name or (descriptor.name if descriptor else ""),
            target_component=rule.target,
            props=props,
            style_attributes=style,
            token_refs=token_refs,
            content=content,
            image_url=image_url,
            source_node_id=descriptor.id if descriptor else component.figma_node_id,
        )

    @staticmethod
    def _content(
        subject: _Subject, overrides: Dict[str, str], infer_content: bool,
    ) -> Optional[str]:
        component = subject.component
        for key in (component.id, component.figma_node_id):
            if key and key in overrides:
                return overrides[key]
        if subject.descriptor is not None and subject.descriptor.characters:
            return subject.descriptor.characters
        text = component.properties.get("text")
        if isinstance(text, str) and text:
            return text
        if infer_content:
            for predicate, placeholder in CONTENT_RULES:
                if predicate(subject.name):
                    return placeholder
        return None

    @staticmethod
    def _image_url(
        component: ValidatedComponent,
        descriptor: Optional[ComponentDescriptor],
        asset_urls: Dict[str, str],
    ) -> Optional[str]:
        keys = [component.figma_node_id, component.id]
        if descriptor is not None:
            keys.append(descriptor.id)
            keys.extend(descriptor.styling.image_refs)
        for key in keys:
            if key and asset_urls.get(key):
                return asset_urls[key]
        return None
