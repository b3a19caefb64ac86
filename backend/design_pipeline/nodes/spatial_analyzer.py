"""Spatial analysis over ComponentDescriptors.

Pure, deterministic geometry and keyword heuristics used to build the
grouping context and to repair empty groups: type distribution, container
statistics, containment nesting, proximity clusters, axis alignment,
interaction candidates, text classification, vertical banding/sectioning,
layout patterns and design-purpose inference.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from design_pipeline.models import Bounds, ComponentDescriptor, DescriptorType

DEFAULT_CLUSTER_THRESHOLD = 100.0
DEFAULT_ALIGNMENT_TOLERANCE = 10.0
DEFAULT_SECTION_GAP = 50.0

INTERACTION_NAME_KEYWORDS = ("button", "pay", "confirm", "back")
INTERACTIVE_TEXT_KEYWORDS = (
    "pay", "confirm", "back", "add", "button",
    "click", "tap", "next", "continue", "cancel",
)
HEADER_TEXT_KEYWORDS = ("Payment", "Total")

_VALUE_RE = re.compile(r"^\$?\d")

# Design-purpose keyword categories; declaration order breaks ties
CONTEXT_KEYWORDS: Dict[str, List[str]] = {
    "payment": ["payment", "pay", "card", "total", "$", "amount", "paypal", "mastercard"],
    "navigation": ["back", "close", "menu", "home", "settings"],
    "form": ["form", "input", "submit", "save", "cancel", "required"],
    "modal": ["close", "confirm", "cancel", "ok", "modal"],
    "ecommerce": ["cart", "checkout", "buy", "order", "price", "shipping"],
}

EXPECTED_FLOWS: Dict[str, str] = {
    "payment": "User reviews payment details, selects payment method, confirms transaction",
    "navigation": "User navigates between different sections or screens",
    "form": "User fills out form fields and submits information",
    "modal": "User views information and makes a decision (confirm/cancel)",
    "ecommerce": "User browses products, adds to cart, proceeds to checkout",
    "general": "User interacts with interface elements to complete tasks",
}

PATTERN_EXPECTATIONS: Dict[str, List[str]] = {
    "payment": [
        "Header with back navigation and payment title",
        "Payment method selection (cards, PayPal, etc.)",
        "Amount/total display",
        "Primary payment action button",
    ],
    "navigation": [
        "Navigation bar or menu structure",
        "Back/close buttons",
        "Menu items or navigation links",
    ],
    "form": [
        "Form fields with labels",
        "Input validation indicators",
        "Submit/save action buttons",
    ],
    "modal": [
        "Modal header with title",
        "Content area",
        "Action buttons (confirm/cancel)",
    ],
    "ecommerce": [
        "Product information display",
        "Price and quantity controls",
        "Add to cart/buy buttons",
    ],
    "general": ["Logical grouping of related elements", "Clear visual hierarchy"],
}


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class VerticalSection:
    start_y: float
    end_y: float
    members: List[ComponentDescriptor] = field(default_factory=list)

    @property
    def types(self) -> List[str]:
        seen: Dict[str, None] = {}
        for d in self.members:
            seen.setdefault(d.type.value, None)
        return list(seen)

    @property
    def key_elements(self) -> List[str]:
        return [d.name for d in self.members[:3]]


@dataclass
class DesignContext:
    screen_type: str
    score: int
    matched_keywords: List[str]
    confidence_label: str
    expected_flow: str
    pattern_expectations: List[str]


@dataclass
class ContainerStats:
    count: int
    average_area: float
    large: int
    small: int


# ---------------------------------------------------------------------------
# Basic statistics
# ---------------------------------------------------------------------------


def type_distribution(descriptors: List[ComponentDescriptor]) -> Dict[str, int]:
    dist: Dict[str, int] = {}
    for d in descriptors:
        dist[d.type.value] = dist.get(d.type.value, 0) + 1
    return dist


def analyze_containers(descriptors: List[ComponentDescriptor]) -> ContainerStats:
    """Size statistics of frame/group containers."""
    containers = [
        d for d in descriptors
        if d.type in (DescriptorType.FRAME, DescriptorType.GROUP)
    ]
    if not containers:
        return ContainerStats(count=0, average_area=0.0, large=0, small=0)
    areas = [d.bounds.width * d.bounds.height for d in containers]
    avg = sum(areas) / len(areas)
    return ContainerStats(
        count=len(containers),
        average_area=round(avg, 2),
        large=sum(1 for a in areas if a > avg * 2),
        small=sum(1 for a in areas if a < avg * 0.5),
    )


def overall_bounds(descriptors: List[ComponentDescriptor]) -> Optional[Bounds]:
    return Bounds.union([d.bounds for d in descriptors])


def _contains(outer: Bounds, inner: Bounds) -> bool:
    return (
        outer.x <= inner.x and outer.y <= inner.y
        and outer.right >= inner.right and outer.bottom >= inner.bottom
    )


def find_containment(descriptors: List[ComponentDescriptor]) -> Dict[str, List[str]]:
    """Map each container id to the ids it directly contains.

    A descriptor's parent is the smallest other box that fully contains it;
    identical boxes are resolved by input order (earlier contains later).
    """
    index = {id(d): i for i, d in enumerate(descriptors)}
    nesting: Dict[str, List[str]] = {}
    for inner in descriptors:
        parent: Optional[ComponentDescriptor] = None
        for outer in descriptors:
            if outer is inner or not _contains(outer.bounds, inner.bounds):
                continue
            if outer.bounds == inner.bounds and index[id(outer)] > index[id(inner)]:
                continue
            if parent is None or (
                outer.bounds.width * outer.bounds.height
                < parent.bounds.width * parent.bounds.height
            ):
                parent = outer
        if parent is not None:
            nesting.setdefault(parent.id, []).append(inner.id)
    return nesting


def containment_depth(descriptors: List[ComponentDescriptor]) -> int:
    """Deepest containment chain length (0 when nothing nests)."""
    nesting = find_containment(descriptors)
    parent_of = {child: parent for parent, kids in nesting.items() for child in kids}
    deepest = 0
    for node_id in parent_of:
        depth, current = 0, node_id
        while current in parent_of and depth <= len(descriptors):
            current = parent_of[current]
            depth += 1
        deepest = max(deepest, depth)
    return deepest


# ---------------------------------------------------------------------------
# Proximity / alignment
# ---------------------------------------------------------------------------


def center_distance(a: Bounds, b: Bounds) -> float:
    (ax, ay), (bx, by) = a.center, b.center
    return math.hypot(ax - bx, ay - by)


def find_spatial_clusters(
    descriptors: List[ComponentDescriptor],
    threshold: float = DEFAULT_CLUSTER_THRESHOLD,
) -> List[List[ComponentDescriptor]]:
    """Connected components of the proximity graph (center distance < threshold).

    Every descriptor lands in exactly one cluster; isolated descriptors form
    single-member clusters. Clusters are ordered by their first member.
    """
    n = len(descriptors)
    visited = [False] * n
    clusters: List[List[ComponentDescriptor]] = []

    for start in range(n):
        if visited[start]:
            continue
        visited[start] = True
        stack = [start]
        members = []
        while stack:
            i = stack.pop()
            members.append(i)
            for j in range(n):
                if not visited[j] and center_distance(
                    descriptors[i].bounds, descriptors[j].bounds
                ) < threshold:
                    visited[j] = True
                    stack.append(j)
        clusters.append([descriptors[i] for i in sorted(members)])

    return clusters


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def find_axis_alignments(
    descriptors: List[ComponentDescriptor],
    axis: str = "y",
    tolerance: float = DEFAULT_ALIGNMENT_TOLERANCE,
) -> List[List[ComponentDescriptor]]:
    """Bucket descriptors sharing a (rounded) coordinate on ``axis``.

    ``axis="y"`` finds rows, ``axis="x"`` finds columns. Buckets with at
    least two members are returned ordered by bucket coordinate, each sorted
    along the orthogonal axis.
    """
    if axis not in ("x", "y"):
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")
    if tolerance <= 0:
        raise ValueError(f"tolerance must be positive, got {tolerance!r}")
    other = "x" if axis == "y" else "y"

    buckets: Dict[float, List[ComponentDescriptor]] = {}
    for d in descriptors:
        key = _round_half_up(getattr(d.bounds, axis) / tolerance) * tolerance
        buckets.setdefault(key, []).append(d)

    return [
        sorted(members, key=lambda d: getattr(d.bounds, other))
        for key, members in sorted(buckets.items())
        if len(members) >= 2
    ]


# ---------------------------------------------------------------------------
# Interaction / text heuristics
# ---------------------------------------------------------------------------


def find_interaction_candidates(
    descriptors: List[ComponentDescriptor],
) -> List[ComponentDescriptor]:
    candidates = []
    for d in descriptors:
        name = d.name.lower()
        if any(k in name for k in INTERACTION_NAME_KEYWORDS):
            candidates.append(d)
        elif d.type == DescriptorType.TEXT and d.bounds.height > 20:
            candidates.append(d)
        elif (
            d.type in (DescriptorType.RECTANGLE, DescriptorType.ELLIPSE)
            and d.bounds.width >= 50 and d.bounds.height >= 30
        ):
            candidates.append(d)
    return candidates


def text_of(d: ComponentDescriptor) -> str:
    return d.characters or d.name


def is_interactive_text(text: str) -> bool:
    lower = text.lower()
    return any(k in lower for k in INTERACTIVE_TEXT_KEYWORDS)


def is_value_text(text: str) -> bool:
    return bool(_VALUE_RE.match(text.strip()))


def is_header_text(text: str, y: float, top_third_limit: float) -> bool:
    if len(text) >= 20:
        return False
    if any(k in text for k in HEADER_TEXT_KEYWORDS):
        return True
    if y < top_third_limit:
        return True
    return any(c.isalpha() for c in text) and text == text.upper()


def classify_text(
    descriptors: List[ComponentDescriptor],
) -> Dict[str, List[ComponentDescriptor]]:
    """Split text descriptors into interactive / header / value lists (may overlap)."""
    texts = [d for d in descriptors if d.type == DescriptorType.TEXT]
    result: Dict[str, List[ComponentDescriptor]] = {
        "interactive": [], "header": [], "value": [],
    }
    canvas = overall_bounds(descriptors)
    limit = canvas.y + canvas.height / 3 if canvas else 0.0

    for d in texts:
        text = text_of(d)
        if is_interactive_text(text):
            result["interactive"].append(d)
        if is_header_text(text, d.bounds.y, limit):
            result["header"].append(d)
        if is_value_text(text):
            result["value"].append(d)
    return result


# ---------------------------------------------------------------------------
# Vertical structure
# ---------------------------------------------------------------------------


def section_by_vertical_band(
    descriptors: List[ComponentDescriptor],
) -> Dict[str, List[ComponentDescriptor]]:
    """Assign each descriptor to the top/middle/bottom third of the canvas."""
    bands: Dict[str, List[ComponentDescriptor]] = {"top": [], "middle": [], "bottom": []}
    canvas = overall_bounds(descriptors)
    if canvas is None:
        return bands
    for d in descriptors:
        bands[band_of(d, canvas)].append(d)
    return bands


def band_of(d: ComponentDescriptor, canvas: Bounds) -> str:
    if canvas.height <= 0:
        return "top"
    rel = (d.bounds.y - canvas.y) / canvas.height
    if rel < 1 / 3:
        return "top"
    if rel < 2 / 3:
        return "middle"
    return "bottom"


def merge_vertical_sections(
    descriptors: List[ComponentDescriptor],
    gap: float = DEFAULT_SECTION_GAP,
) -> List[VerticalSection]:
    """Split descriptors into sections wherever the vertical gap exceeds ``gap``."""
    ordered = sorted(descriptors, key=lambda d: d.bounds.y)
    sections: List[VerticalSection] = []
    current: Optional[VerticalSection] = None
    previous: Optional[ComponentDescriptor] = None

    for d in ordered:
        if current is None or d.bounds.y - previous.bounds.bottom > gap:
            current = VerticalSection(start_y=d.bounds.y, end_y=d.bounds.bottom)
            sections.append(current)
        current.members.append(d)
        current.end_y = max(current.end_y, d.bounds.bottom)
        previous = d

    return sections


def identify_layout_patterns(descriptors: List[ComponentDescriptor]) -> List[str]:
    patterns = []
    canvas = overall_bounds(descriptors)
    if canvas is None:
        return patterns

    buttons = [d for d in descriptors if "button" in d.name.lower()]
    if len(buttons) >= 3:
        patterns.append(f"Button grid pattern with {len(buttons)} buttons")

    headers = [d for d in descriptors if d.bounds.y < canvas.y + 100]
    if headers:
        patterns.append(f"Header pattern with {len(headers)} elements")

    bottom = [d for d in descriptors if d.bounds.y > canvas.y + canvas.height * 0.8]
    if bottom:
        patterns.append(f"Bottom action area with {len(bottom)} elements")

    rows = find_axis_alignments(descriptors, "y")
    if len(rows) > 1:
        patterns.append(f"Horizontal layout with {len(rows)} aligned rows")

    return patterns


def infer_design_context(descriptors: List[ComponentDescriptor]) -> DesignContext:
    """Infer the screen's purpose by keyword-category scoring over text content."""
    corpus = " ".join(
        text_of(d) for d in descriptors if d.type == DescriptorType.TEXT
    ).lower()

    best_type, best_score, best_matches = "general", 0, []
    for category, keywords in CONTEXT_KEYWORDS.items():
        matches = [k for k in keywords if k in corpus]
        if len(matches) > best_score:
            best_type, best_score, best_matches = category, len(matches), matches

    if best_score > 2:
        label = "High"
    elif best_score > 0:
        label = "Medium"
    else:
        label = "Low"

    return DesignContext(
        screen_type=best_type,
        score=best_score,
        matched_keywords=best_matches,
        confidence_label=label,
        expected_flow=EXPECTED_FLOWS[best_type],
        pattern_expectations=PATTERN_EXPECTATIONS[best_type],
    )
