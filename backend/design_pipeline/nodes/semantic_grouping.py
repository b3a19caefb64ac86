"""Semantic grouping - cluster low-level descriptors into logical UI components.

One reasoning-model call per run, no retries. Any failure (transport,
timeout, unparseable or schema-invalid output) routes to a deterministic
heuristic fallback, so this stage never raises for external-call failures.

Run states (logged): BUILDING_CONTEXT -> AWAITING_MODEL ->
PARSING_OK | PARSING_FAILED -> REPAIRING -> DONE.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Protocol

from design_pipeline import settings
from design_pipeline.integrations.llm_client import ImageInput, LLMCallResult
from design_pipeline.models import (
    Bounds,
    ComponentDescriptor,
    DescriptorType,
    GroupingResult,
    GroupType,
    LayoutStructure,
    SemanticGroup,
    clamp_confidence,
)
from design_pipeline.nodes.group_repair import repair_empty_groups
from design_pipeline.prompts.grouping_prompt import GROUPING_SYSTEM_PROMPT, build_grouping_prompt

logger = logging.getLogger(__name__)

DEFAULT_GROUP_BOUNDS = Bounds(x=0, y=0, width=100, height=50)
FALLBACK_CONFIDENCE = 0.5

_FALLBACK_TYPE_MAP = {
    DescriptorType.TEXT: GroupType.TEXT,
    DescriptorType.RECTANGLE: GroupType.CONTAINER,
    DescriptorType.FRAME: GroupType.CONTAINER,
    DescriptorType.GROUP: GroupType.CONTAINER,
}


class JsonModelClient(Protocol):
    async def complete_json(
        self, system_prompt: str, user_prompt: str,
        image: ImageInput = None, caller: str = "LLM",
    ) -> LLMCallResult: ...


def unique_id(candidate: str, taken: set, index: int) -> str:
    """Return ``candidate``, or the first ``candidate-<n>`` (n >= index) not in ``taken``."""
    if candidate not in taken:
        return candidate
    suffix = index
    while f"{candidate}-{suffix}" in taken:
        suffix += 1
    return f"{candidate}-{suffix}"


def _parse_bounds(raw: Any) -> Bounds:
    if isinstance(raw, dict):
        values = [raw.get(k) for k in ("x", "y", "width", "height")]
        if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
            return Bounds(x=values[0], y=values[1], width=values[2], height=values[3])
    return DEFAULT_GROUP_BOUNDS


def _parse_group_type(raw: Any) -> GroupType:
    try:
        return GroupType(str(raw).lower())
    except ValueError:
        return GroupType.OTHER


def _parse_layout(raw: Any) -> Optional[LayoutStructure]:
    if not isinstance(raw, dict):
        return None
    sections = raw.get("mainSections")
    return LayoutStructure(
        screen_type=str(raw.get("screenType") or "general"),
        main_sections=[str(s) for s in sections] if isinstance(sections, list) else [],
        user_flow=str(raw.get("userFlow") or "User interacts with interface"),
    )


def build_fallback_result(
    descriptors: List[ComponentDescriptor],
    processing_time_ms: float = 0.0,
    limit: Optional[int] = None,
) -> GroupingResult:
    """Wrap the first ``limit`` descriptors in single-member groups."""
    limit = settings.FALLBACK_GROUP_LIMIT if limit is None else limit
    head, rest = descriptors[:limit], descriptors[limit:]
    groups = []
    for d in head:
        properties: Dict[str, Any] = {"interactive": "button" in d.name.lower()}
        if d.characters:
            properties["text"] = d.characters
        groups.append(SemanticGroup(
            id=f"fallback-{d.id}",
            name=d.name or f"{d.type.value} Component",
            type=_FALLBACK_TYPE_MAP.get(d.type, GroupType.OTHER),
            description=f"Individual {d.type.value} component",
            bounds=d.bounds,
            children=[d.id],
            properties=properties,
            confidence=FALLBACK_CONFIDENCE,
        ))

    return GroupingResult(
        layout_structure=None,
        groups=groups,
        total_nodes=len(descriptors),
        grouped_nodes=len(head),
        ungrouped_nodes=list(rest),
        confidence=FALLBACK_CONFIDENCE,
        processing_time_ms=processing_time_ms,
        used_fallback=True,
    )


class SemanticGroupingEngine:
    """Groups descriptors via one reasoning-model call with heuristic fallback.

    Args:
        client: Object exposing ``complete_json`` (e.g. ReasoningClient).
        prompt_node_limit: Descriptors listed verbatim in the prompt.
    """

    def __init__(self, client: JsonModelClient, prompt_node_limit: Optional[int] = None):
        self._client = client
        self._node_limit = prompt_node_limit or settings.PROMPT_NODE_LIMIT

    async def group(
        self,
        tree: Any,
        descriptors: List[ComponentDescriptor],
    ) -> GroupingResult:
        start = time.monotonic()

        def _elapsed() -> float:
            return (time.monotonic() - start) * 1000

        file_name = tree.get("name") if isinstance(tree, dict) else None
        logger.info("grouping: BUILDING_CONTEXT (%d descriptors)", len(descriptors))
        prompt = build_grouping_prompt(descriptors, file_name, self._node_limit)

        logger.info("grouping: AWAITING_MODEL")
        result = await self._client.complete_json(
            GROUPING_SYSTEM_PROMPT, prompt, caller="SemanticGrouping"
        )
        if not result.ok:
            logger.warning(
                "grouping: PARSING_FAILED (%s) - using heuristic fallback", result.status.value
            )
            return build_fallback_result(descriptors, _elapsed())

        payload = result.data or {}
        raw_groups = payload.get("groups")
        if not isinstance(raw_groups, list):
            logger.warning("grouping: PARSING_FAILED (groups missing or not a list) - fallback")
            return build_fallback_result(descriptors, _elapsed())

        logger.info("grouping: PARSING_OK (%d raw groups)", len(raw_groups))
        groups = self._resolve_groups(raw_groups, descriptors)

        claimed = {cid for g in groups for cid in g.children}
        available = [d for d in descriptors if d.id not in claimed]
        empty = sum(1 for g in groups if not g.children)
        logger.info("grouping: REPAIRING (%d empty groups, %d available)", empty, len(available))
        groups, _ = repair_empty_groups(groups, available, descriptors)

        claimed = {cid for g in groups for cid in g.children}
        ungrouped = [d for d in descriptors if d.id not in claimed]
        grouping = GroupingResult(
            layout_structure=_parse_layout(payload.get("layoutStructure")),
            groups=groups,
            total_nodes=len(descriptors),
            grouped_nodes=len(descriptors) - len(ungrouped),
            ungrouped_nodes=ungrouped,
            confidence=clamp_confidence(payload.get("confidence")),
            processing_time_ms=_elapsed(),
            used_fallback=False,
        )
        logger.info(
            "grouping: DONE (%d groups, %d/%d grouped, confidence=%.2f)",
            len(groups), grouping.grouped_nodes, grouping.total_nodes, grouping.confidence,
        )
        return grouping

    def _resolve_groups(
        self,
        raw_groups: List[Any],
        descriptors: List[ComponentDescriptor],
    ) -> List[SemanticGroup]:
        known = {d.id for d in descriptors}
        claimed: set = set()
        seen_ids: set = set()
        groups: List[SemanticGroup] = []

        for index, raw in enumerate(raw_groups):
            if not isinstance(raw, dict):
                continue
            children = []
            raw_children = raw.get("children")
            for cid in raw_children if isinstance(raw_children, list) else []:
                cid = str(cid)
                if cid in known and cid not in claimed:
                    children.append(cid)
                    claimed.add(cid)
            dropped = len(raw_children) - len(children) if isinstance(raw_children, list) else 0
            if dropped:
                logger.info("grouping: dropped %d unresolved/duplicate child id(s)", dropped)

            group_id = unique_id(str(raw.get("id") or f"group-{index}"), seen_ids, index)
            seen_ids.add(group_id)

            properties = raw.get("properties")
            groups.append(SemanticGroup(
                id=group_id,
                name=str(raw.get("name") or "Unnamed Group"),
                type=_parse_group_type(raw.get("type")),
                description=str(raw.get("description") or ""),
                bounds=_parse_bounds(raw.get("bounds")),
                children=children,
                properties=properties if isinstance(properties, dict) else {},
                confidence=clamp_confidence(raw.get("confidence")),
            ))

        return groups
