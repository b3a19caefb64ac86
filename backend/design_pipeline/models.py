"""Pydantic models for the design analysis pipeline.

Every entity is immutable once produced. Later stages build new entities
that reference earlier ones by id. Models serialise with camelCase aliases
and accept either snake_case or camelCase field names on input.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class DescriptorType(str, Enum):
    TEXT = "text"
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    FRAME = "frame"
    GROUP = "group"
    COMPONENT = "component"
    INSTANCE = "instance"


class GroupType(str, Enum):
    BUTTON = "button"
    TEXT = "text"
    CARD = "card"
    NAVIGATION = "navigation"
    INPUT = "input"
    LIST = "list"
    IMAGE = "image"
    CONTAINER = "container"
    OTHER = "other"


class ComponentType(str, Enum):
    """Component vocabulary of the visual validation stage."""

    BUTTON = "button"
    INPUT = "input"
    TEXT = "text"
    IMAGE = "image"
    CARD = "card"
    HEADER = "header"
    NAVIGATION = "navigation"
    FORM = "form"
    LIST = "list"
    MODAL = "modal"
    CONTAINER = "container"
    OTHER = "other"


class LayoutKind(str, Enum):
    GRID = "grid"
    FLEXBOX = "flexbox"
    ABSOLUTE = "absolute"
    MIXED = "mixed"


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class Bounds(_Frozen):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @classmethod
    def union(cls, boxes: List["Bounds"]) -> Optional["Bounds"]:
        """Smallest box enclosing every box in ``boxes`` (None when empty)."""
        if not boxes:
            return None
        left = min(b.x for b in boxes)
        top = min(b.y for b in boxes)
        right = max(b.right for b in boxes)
        bottom = max(b.bottom for b in boxes)
        return cls(x=left, y=top, width=right - left, height=bottom - top)


# ---------------------------------------------------------------------------
# Structural extraction
# ---------------------------------------------------------------------------


class ColorStyle(_Frozen):
    background: Optional[str] = None
    text: Optional[str] = None
    border: Optional[str] = None


class TypographyStyle(_Frozen):
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    font_weight: Optional[float] = None
    line_height: Optional[float] = None
    text_align: Optional[str] = None


class Padding(_Frozen):
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0


class SpacingStyle(_Frozen):
    layout_mode: Optional[str] = None
    padding: Optional[Padding] = None
    item_spacing: Optional[float] = None


class BorderStyle(_Frozen):
    radius: Optional[float] = None
    width: Optional[float] = None
    style: Optional[str] = None
    color: Optional[str] = None


class Styling(_Frozen):
    """Tagged styling structure; absent sub-structures stay None."""

    colors: Optional[ColorStyle] = None
    typography: Optional[TypographyStyle] = None
    spacing: Optional[SpacingStyle] = None
    borders: Optional[BorderStyle] = None
    shadows: List[str] = Field(default_factory=list)
    image_refs: List[str] = Field(default_factory=list)


class ComponentDescriptor(_Frozen):
    id: str
    name: str = ""
    type: DescriptorType
    bounds: Bounds
    styling: Styling = Field(default_factory=Styling)
    raw_properties: Dict[str, Any] = Field(default_factory=dict)

    @property
    def characters(self) -> str:
        return self.raw_properties.get("characters") or ""

    @property
    def background_color(self) -> Optional[str]:
        return self.styling.colors.background if self.styling.colors else None


class DesignTokenSet(_Frozen):
    colors: List[str] = Field(default_factory=list)
    gradients: List[str] = Field(default_factory=list)
    font_families: List[str] = Field(default_factory=list)
    font_sizes: List[float] = Field(default_factory=list)
    font_weights: List[float] = Field(default_factory=list)
    spacing_values: List[float] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Semantic grouping
# ---------------------------------------------------------------------------


class SemanticGroup(_Frozen):
    id: str
    name: str
    type: GroupType = GroupType.OTHER
    description: str = ""
    bounds: Bounds = Field(default_factory=Bounds)
    children: List[str] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(0.7, ge=0.1, le=1.0)


class LayoutStructure(_Frozen):
    screen_type: str = "general"
    main_sections: List[str] = Field(default_factory=list)
    user_flow: str = "User interacts with interface"


class GroupingResult(_Frozen):
    layout_structure: Optional[LayoutStructure] = None
    groups: List[SemanticGroup] = Field(default_factory=list)
    total_nodes: int = 0
    grouped_nodes: int = 0
    ungrouped_nodes: List[ComponentDescriptor] = Field(default_factory=list)
    confidence: float = Field(0.5, ge=0.1, le=1.0)
    processing_time_ms: float = 0.0
    used_fallback: bool = False


# ---------------------------------------------------------------------------
# Visual validation
# ---------------------------------------------------------------------------


class TargetMapping(_Frozen):
    component_name: str
    props: Dict[str, Any] = Field(default_factory=dict)


class ValidatedComponent(_Frozen):
    id: str
    type: ComponentType = ComponentType.OTHER
    name: str = ""
    description: str = ""
    bounds: Bounds = Field(default_factory=Bounds)
    properties: Dict[str, Any] = Field(default_factory=dict)
    target_mapping: TargetMapping
    source_group_id: Optional[str] = None
    figma_node_id: Optional[str] = None


class LayoutSummary(_Frozen):
    structure: LayoutKind = LayoutKind.MIXED
    responsive: bool = False
    breakpoints: List[str] = Field(default_factory=lambda: ["xs", "sm", "md", "lg"])
    spacing_consistent: bool = False
    spacing_units: List[float] = Field(default_factory=lambda: [8, 16, 24])


class PaletteSummary(_Frozen):
    primary: str = "#1976d2"
    secondary: str = "#dc004e"
    background: str = "#ffffff"
    text: str = "#333333"
    accent: Optional[str] = None


class TypographySummary(_Frozen):
    font_family: str = "Roboto"
    sizes: List[float] = Field(default_factory=lambda: [14, 16, 18, 24])
    weights: List[float] = Field(default_factory=lambda: [400, 500, 700])


class SpacingSummary(_Frozen):
    base_unit: float = 8
    scale: List[float] = Field(default_factory=lambda: [8, 16, 24, 32])


class DesignSystemSummary(_Frozen):
    colors: PaletteSummary = Field(default_factory=PaletteSummary)
    typography: TypographySummary = Field(default_factory=TypographySummary)
    spacing: SpacingSummary = Field(default_factory=SpacingSummary)
    border_radius: List[float] = Field(default_factory=lambda: [4, 8, 12])


class AnalysisResult(_Frozen):
    components: List[ValidatedComponent] = Field(default_factory=list)
    layout: LayoutSummary = Field(default_factory=LayoutSummary)
    design_system: DesignSystemSummary = Field(default_factory=DesignSystemSummary)
    confidence: float = Field(0.7, ge=0.1, le=1.0)
    suggestions: List[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0
    used_fallback: bool = False


# ---------------------------------------------------------------------------
# Style mapping
# ---------------------------------------------------------------------------


class MappedComponent(_Frozen):
    id: str
    name: str = ""
    target_component: str
    props: Dict[str, Any] = Field(default_factory=dict)
    style_attributes: Dict[str, Any] = Field(default_factory=dict)
    token_refs: Dict[str, str] = Field(default_factory=dict)
    content: Optional[str] = None
    image_url: Optional[str] = None
    source_node_id: Optional[str] = None


class TokenPalette(_Frozen):
    """Named design-system view of a DesignTokenSet."""

    colors: Dict[str, str] = Field(default_factory=dict)
    typography: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    spacing: Dict[str, float] = Field(default_factory=dict)
    gradients: List[str] = Field(default_factory=list)


def clamp_confidence(value: Any, default: float = 0.7) -> float:
    """Coerce ``value`` into [0.1, 1.0]; non-numeric values use ``default``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        value = default
    return max(0.1, min(1.0, float(value)))
