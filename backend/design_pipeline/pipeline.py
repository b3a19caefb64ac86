"""Design analysis pipeline orchestration.

extract → group → validate → map → compare. Stages run sequentially inside
one task; grouping and validation make exactly one external call each and
degrade to their heuristic fallback instead of raising. The only error a
caller sees from ``run`` is NoExtractableStructureError.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from pydantic import Field

from design_pipeline import config, settings
from design_pipeline.exceptions import NoExtractableStructureError
from design_pipeline.integrations.figma_client import (
    FigmaClient,
    FigmaClientError,
    get_main_frames,
    parse_figma_url,
)
from design_pipeline.integrations.llm_client import ImageInput, ReasoningClient
from design_pipeline.models import (
    AnalysisResult,
    ComponentDescriptor,
    DesignTokenSet,
    GroupingResult,
    MappedComponent,
    TokenPalette,
    _Frozen,
)
from design_pipeline.nodes.semantic_grouping import JsonModelClient, SemanticGroupingEngine
from design_pipeline.nodes.structural_extractor import StructuralExtractor
from design_pipeline.nodes.style_mapper import StyleMapper, build_design_system
from design_pipeline.nodes.visual_validator import VisualValidator
from design_pipeline.reporting.comparison import ComparisonMetrics, compare_stage_results

logger = logging.getLogger(__name__)


class PipelineResult(_Frozen):
    """Everything one pipeline run produced."""

    file_name: Optional[str] = None
    descriptors: List[ComponentDescriptor] = Field(default_factory=list)
    tokens: DesignTokenSet = Field(default_factory=DesignTokenSet)
    grouping: GroupingResult
    analysis: AnalysisResult
    mapped_components: List[MappedComponent] = Field(default_factory=list)
    design_system: TokenPalette = Field(default_factory=TokenPalette)
    comparison: ComparisonMetrics
    total_time_ms: float = 0.0


class DesignAnalysisPipeline:
    """Runs the four analysis stages over one design tree.

    Args:
        grouping_client: Reasoning client for semantic grouping.
            Defaults to a ReasoningClient on GROUPING_MODEL.
        vision_client: Vision client for validation.
            Defaults to a ReasoningClient on VISION_MODEL.
        prompt_node_limit: Descriptors listed verbatim in the grouping prompt.
        bounds_tolerance: Max deviation (px) before validated bounds snap back.
    """

    def __init__(
        self,
        grouping_client: Optional[JsonModelClient] = None,
        vision_client: Optional[JsonModelClient] = None,
        prompt_node_limit: Optional[int] = None,
        bounds_tolerance: Optional[float] = None,
    ):
        self._owned: List[ReasoningClient] = []
        if grouping_client is None:
            grouping_client = ReasoningClient(
                model=config.GROUPING_MODEL,
                timeout=settings.GROUPING_TIMEOUT,
                max_tokens=settings.GROUPING_MAX_TOKENS,
                temperature=settings.GROUPING_TEMPERATURE,
            )
            self._owned.append(grouping_client)
        if vision_client is None:
            vision_client = ReasoningClient(
                model=config.VISION_MODEL,
                timeout=settings.VALIDATION_TIMEOUT,
                max_tokens=settings.VALIDATION_MAX_TOKENS,
                temperature=settings.VALIDATION_TEMPERATURE,
            )
            self._owned.append(vision_client)

        self._grouping = SemanticGroupingEngine(grouping_client, prompt_node_limit)
        self._validator = VisualValidator(vision_client, bounds_tolerance)

    async def close(self) -> None:
        """Close the HTTP clients this pipeline created itself."""
        for client in self._owned:
            await client.close()

    async def run(
        self,
        tree: Any,
        image: ImageInput = None,
        asset_urls: Optional[Dict[str, str]] = None,
        file_name: Optional[str] = None,
    ) -> PipelineResult:
        """Analyse ``tree`` (and optionally its rendered ``image``).

        Raises:
            NoExtractableStructureError: the tree yields no descriptors.
        """
        start = time.monotonic()
        if file_name is None and isinstance(tree, dict):
            file_name = tree.get("name")

        descriptors, tokens = StructuralExtractor().extract(tree)
        if not descriptors:
            raise NoExtractableStructureError(
                "no extractable structure: the design tree contains no drawable nodes"
            )
        logger.info("pipeline: extracted %d descriptors from %r", len(descriptors), file_name)

        grouping = await self._grouping.group(tree, descriptors)
        analysis = await self._validator.validate(grouping, image, descriptors, file_name)

        mapped = StyleMapper(descriptors).map(analysis.components, tokens, asset_urls)
        palette = build_design_system(tokens)
        comparison = compare_stage_results(grouping, analysis, analysis.processing_time_ms)

        total_ms = (time.monotonic() - start) * 1000
        logger.info(
            "pipeline: done in %.0fms (groups=%d, components=%d, fallback=%s/%s)",
            total_ms, len(grouping.groups), len(mapped),
            grouping.used_fallback, analysis.used_fallback,
        )
        return PipelineResult(
            file_name=file_name,
            descriptors=descriptors,
            tokens=tokens,
            grouping=grouping,
            analysis=analysis,
            mapped_components=mapped,
            design_system=palette,
            comparison=comparison,
            total_time_ms=total_ms,
        )

    async def run_figma(self, figma: FigmaClient, url_or_key: str) -> PipelineResult:
        """Fetch a design from the Figma API and analyse it.

        A URL with ``node-id`` analyses that node; otherwise the first main
        frame of the file is analysed. Raises FigmaClientError when the file
        cannot be fetched; a failed image export only drops the image.
        """
        file_key, node_id = parse_figma_url(url_or_key)

        if node_id:
            data = await figma.get_file_nodes(file_key, [node_id])
            entry = (data.get("nodes") or {}).get(node_id) or {}
            tree: Any = entry.get("document") or {}
            file_name = data.get("name")
        else:
            file_json = await figma.get_file(file_key)
            file_name = file_json.get("name")
            frames = get_main_frames(file_json)
            if not frames:
                raise NoExtractableStructureError(
                    f"no extractable structure: file {file_key} has no frames"
                )
            tree = frames[0]
            node_id = tree.get("id")

        image: Optional[str] = None
        asset_urls: Dict[str, str] = {}
        if node_id:
            try:
                images = await figma.get_images(file_key, [node_id])
                image = images.get(node_id)
            except FigmaClientError as e:
                logger.warning("pipeline: image export failed for %s: %s", node_id, e)
        try:
            asset_urls = await figma.get_image_fills(file_key)
        except FigmaClientError as e:
            logger.warning("pipeline: image fills unavailable for %s: %s", file_key, e)

        return await self.run(tree, image=image, asset_urls=asset_urls, file_name=file_name)
