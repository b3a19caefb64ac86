"""Visual Validation Prompt Templates

Input: rendered screenshot + semantic groups from the grouping stage
Output: JSON {components[], layout, designSystem, confidence, suggestions}
        confirming/adjusting each group and mapping it onto a Material-UI
        component
"""

from __future__ import annotations

from typing import List, Optional

from design_pipeline.models import GroupingResult, SemanticGroup

VALIDATION_SYSTEM_PROMPT = """\
You are a visual UI reviewer. You receive a screenshot of a design together \
with component groups derived from its structure, and you check every group \
against what is actually visible. Map each confirmed component onto the \
Material-UI component library and report the design system you observe.

Always respond with one valid JSON object matching the requested format."""

VALIDATION_USER_PROMPT = """\
The design "{file_name}" was pre-processed into semantic groups. Validate \
them against the attached screenshot.

## Pre-Processing Summary
- Groups identified: {group_count}
- Structural confidence: {confidence_pct}%
- Nodes processed: {total_nodes}
{layout_line}
## Groups
{group_listing}

## Tasks
1. Confirm each group, or adjust its type, name and bounds when the \
screenshot disagrees. Keep the group `id` so components can be traced back.
2. Add visual properties the structure could not capture (colors, emphasis, \
icons).
3. Record interactive states you can see (selected, hover, disabled).
4. Map every component to a Material-UI component in `targetMapping`.
5. Report missing interactive elements in `suggestions`.

## Response Format
{{
  "components": [
    {{
      "id": "<group id>",
      "type": "button|input|text|image|card|header|navigation|form|list|modal|container|other",
      "name": "Back Button",
      "description": "Returns to the previous screen",
      "bounds": {{"x": 24, "y": 50, "width": 45, "height": 45}},
      "properties": {{"interactive": true, "hasIcon": true}},
      "targetMapping": {{"componentName": "IconButton", "props": {{"color": "default"}}}}
    }}
  ],
  "layout": {{
    "structure": "grid|flexbox|absolute|mixed",
    "responsive": true,
    "breakpoints": ["xs", "sm", "md", "lg"],
    "spacing": {{"consistent": true, "units": [8, 16, 24]}}
  }},
  "designSystem": {{
    "colors": {{"primary": "#1976d2", "secondary": "#dc004e", "background": "#ffffff", "text": "#333333"}},
    "typography": {{"fontFamily": "Roboto", "sizes": [14, 16, 24], "weights": [400, 700]}},
    "spacing": {{"baseUnit": 8, "scale": [8, 16, 24]}},
    "borderRadius": [4, 8]
  }},
  "confidence": 0.85,
  "suggestions": ["..."]
}}

Validate and enhance; do not re-identify the screen from scratch. \
Return only the JSON object."""


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


def format_group(group: SemanticGroup) -> str:
    b = group.bounds
    return (
        f"- [{group.id}] {group.type.value.upper()} \"{group.name}\" "
        f"({_fmt(b.width)}×{_fmt(b.height)}) at ({_fmt(b.x)}, {_fmt(b.y)}) "
        f"- {group.description or 'no description'} [{len(group.children)} nodes]"
    )


def build_validation_prompt(grouping: GroupingResult, file_name: Optional[str] = None) -> str:
    layout_line = ""
    if grouping.layout_structure is not None:
        ls = grouping.layout_structure
        layout_line = (
            f"- Screen type: {ls.screen_type}; sections: "
            f"{', '.join(ls.main_sections) or 'n/a'}; flow: {ls.user_flow}\n"
        )
    listing: List[str] = [format_group(g) for g in grouping.groups]
    return VALIDATION_USER_PROMPT.format(
        file_name=file_name or "Untitled",
        group_count=len(grouping.groups),
        confidence_pct=round(grouping.confidence * 100),
        total_nodes=grouping.total_nodes,
        layout_line=layout_line,
        group_listing="\n".join(listing) or "- (no groups)",
    )
