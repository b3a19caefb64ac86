"""Semantic Grouping Prompt Templates

Input: flat ComponentDescriptor list + spatial analysis summaries
Output: JSON {layoutStructure?, groups[], confidence} grouping low-level
        nodes into 5-12 developer-facing UI components
"""

from __future__ import annotations

from typing import List, Optional

from design_pipeline.models import ComponentDescriptor
from design_pipeline.nodes import spatial_analyzer as sa

GROUPING_SYSTEM_PROMPT = """\
You are a UI structure analyst who groups design-tool nodes into the logical \
components a developer would build. Combine related nodes (a background \
shape plus its label is one button), recognise interactive elements and \
repeated collections, and respect the visual hierarchy of the screen.

Always respond with one valid JSON object matching the requested format."""

GROUPING_USER_PROMPT = """\
Analyze the design "{file_name}": group its {node_count} technical nodes into \
semantic UI components and describe how the screen is laid out.

## Design Context
{design_context}

## Layout Sections
{layout_analysis}

## Structure
{structural_analysis}

## Text Content
{text_content}

## Spatial Relationships
{spatial_analysis}

## Nodes (first {listed_count} of {node_count})
{node_listing}

## Instructions
1. Produce 5-12 groups that mirror the real screen sections (header, main \
content, summary, actions), not isolated shapes.
2. Nodes on the same row usually form one horizontal group; evenly spaced \
repeats usually form a list.
3. A background shape with overlapping text is a single button or card.
4. Every group lists the ids of its member nodes in `children`; use only ids \
from the node list and never put a node in two groups.
5. `type` is one of: button, text, card, navigation, input, list, image, \
container, other.
6. `confidence` values are between 0.1 and 1.0.

## Response Format
{{
  "layoutStructure": {{
    "screenType": "payment|form|navigation|modal|ecommerce|general",
    "mainSections": ["header", "content", "summary", "actions"],
    "userFlow": "short description of the main user journey"
  }},
  "groups": [
    {{
      "id": "header-section",
      "name": "Header Section",
      "type": "container",
      "description": "Top bar with back navigation and title",
      "bounds": {{"x": 0, "y": 0, "width": 375, "height": 96}},
      "children": ["<node id>", "<node id>"],
      "properties": {{"section": "header", "layout": "horizontal"}},
      "confidence": 0.9
    }}
  ],
  "confidence": 0.85
}}

Return only the JSON object."""


# ---------------------------------------------------------------------------
# Section builders
# ---------------------------------------------------------------------------


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


def describe_design_context(descriptors: List[ComponentDescriptor]) -> str:
    ctx = sa.infer_design_context(descriptors)
    lines = [
        f"- Screen type: {ctx.screen_type} (confidence: {ctx.confidence_label})",
        f"- Keyword evidence: {', '.join(ctx.matched_keywords) or 'none'}",
        f"- Expected user flow: {ctx.expected_flow}",
        "- Expected patterns:",
    ]
    lines.extend(f"  * {p}" for p in ctx.pattern_expectations)
    return "\n".join(lines)


def describe_layout(descriptors: List[ComponentDescriptor]) -> str:
    canvas = sa.overall_bounds(descriptors)
    if canvas is None:
        return "- No geometry available"

    bands = sa.section_by_vertical_band(descriptors)
    sections = sa.merge_vertical_sections(descriptors)
    lines = [
        f"- Canvas: {_fmt(canvas.width)}x{_fmt(canvas.height)} at "
        f"({_fmt(canvas.x)}, {_fmt(canvas.y)})",
        f"- Top third: {len(bands['top'])} nodes, middle third: "
        f"{len(bands['middle'])} nodes, bottom third: {len(bands['bottom'])} nodes",
        f"- Vertical sections: {len(sections)}",
    ]
    for i, section in enumerate(sections, 1):
        lines.append(
            f"  {i}. y {_fmt(section.start_y)}-{_fmt(section.end_y)}: "
            f"{len(section.members)} nodes ({', '.join(section.types)}); "
            f"key elements: {', '.join(section.key_elements)}"
        )
    patterns = sa.identify_layout_patterns(descriptors)
    if patterns:
        lines.append("- Patterns:")
        lines.extend(f"  * {p}" for p in patterns)
    return "\n".join(lines)


def describe_structure(descriptors: List[ComponentDescriptor]) -> str:
    dist = sa.type_distribution(descriptors)
    containers = sa.analyze_containers(descriptors)
    candidates = sa.find_interaction_candidates(descriptors)
    lines = [
        "- Node types: " + ", ".join(f"{t}={n}" for t, n in sorted(dist.items())),
        f"- Containers: {containers.count} (avg area {_fmt(containers.average_area)}, "
        f"{containers.large} large, {containers.small} small)",
        f"- Containment depth: {sa.containment_depth(descriptors)}",
        f"- Interaction candidates: {len(candidates)}",
    ]
    for d in candidates[:10]:
        lines.append(
            f"  * {d.type.value} \"{d.name}\" ({_fmt(d.bounds.width)}x{_fmt(d.bounds.height)})"
        )
    return "\n".join(lines)


def describe_text(descriptors: List[ComponentDescriptor]) -> str:
    texts = [d for d in descriptors if d.type.value == "text"]
    if not texts:
        return "- No text nodes"
    classes = sa.classify_text(descriptors)
    lines = [f"- {len(texts)} text nodes"]
    for d in texts[:20]:
        tags = [name for name, members in classes.items() if d in members]
        suffix = f" [{', '.join(tags)}]" if tags else ""
        lines.append(
            f"  * \"{sa.text_of(d)}\" at ({_fmt(d.bounds.x)}, {_fmt(d.bounds.y)}){suffix}"
        )
    return "\n".join(lines)


def describe_spatial(descriptors: List[ComponentDescriptor]) -> str:
    clusters = [c for c in sa.find_spatial_clusters(descriptors) if len(c) > 1]
    rows = sa.find_axis_alignments(descriptors, "y")
    columns = sa.find_axis_alignments(descriptors, "x")
    lines = [
        f"- Proximity clusters (>1 node): {len(clusters)}",
        f"- Aligned rows: {len(rows)}",
        f"- Aligned columns: {len(columns)}",
    ]
    for i, cluster in enumerate(clusters[:5], 1):
        lines.append(f"  cluster {i}: {', '.join(d.name for d in cluster[:6])}")
    return "\n".join(lines)


def format_node(d: ComponentDescriptor) -> str:
    b = d.bounds
    line = (
        f"- id={d.id} type={d.type.value} name=\"{d.name}\" "
        f"bounds=({_fmt(b.x)}, {_fmt(b.y)}, {_fmt(b.width)}x{_fmt(b.height)})"
    )
    if d.characters:
        line += f" text=\"{d.characters[:60]}\""
    if d.background_color:
        line += f" fill={d.background_color}"
    return line


def build_grouping_prompt(
    descriptors: List[ComponentDescriptor],
    file_name: Optional[str] = None,
    node_limit: int = 50,
) -> str:
    """Build the grouping user prompt from descriptors and their spatial analysis."""
    listed = descriptors[:node_limit]
    return GROUPING_USER_PROMPT.format(
        file_name=file_name or "Untitled",
        node_count=len(descriptors),
        design_context=describe_design_context(descriptors),
        layout_analysis=describe_layout(descriptors),
        structural_analysis=describe_structure(descriptors),
        text_content=describe_text(descriptors),
        spatial_analysis=describe_spatial(descriptors),
        listed_count=len(listed),
        node_listing="\n".join(format_node(d) for d in listed),
    )
