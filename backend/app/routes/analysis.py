"""Design analysis API endpoints.

Runs the extract → group → validate → map pipeline on a posted node tree,
or on a design fetched from the Figma REST API.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from design_pipeline import config, settings
from design_pipeline.exceptions import NoExtractableStructureError
from design_pipeline.integrations.figma_client import (
    FigmaClient,
    FigmaClientError,
    parse_figma_url,
)
from design_pipeline.pipeline import DesignAnalysisPipeline, PipelineResult

logger = logging.getLogger("api.routes.analysis")

router = APIRouter(prefix="/api/v1/analysis", tags=["analysis"])


# --- Schemas ---


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class AnalysisRunRequest(_Request):
    """Request for POST /api/v1/analysis/run."""

    tree: Any = Field(..., description="Figma file, nodes or bare-node JSON")
    image_url: Optional[str] = Field(
        None, description="Rendered screenshot (http(s) or data URL) for visual validation",
    )
    asset_urls: Dict[str, str] = Field(
        default_factory=dict, description="Node id or image ref → asset URL",
    )
    file_name: Optional[str] = None


class FigmaRunRequest(_Request):
    """Request for POST /api/v1/analysis/run-figma."""

    figma_url: str = Field(
        ...,
        description=(
            "Figma URL or file key, e.g. https://www.figma.com/design/{fileKey}/{name}?node-id={nodeId}"
        ),
    )


# --- Dependencies ---


async def get_pipeline() -> AsyncGenerator[DesignAnalysisPipeline, None]:
    """Fresh pipeline per request; its HTTP clients are closed afterwards."""
    pipeline = DesignAnalysisPipeline()
    try:
        yield pipeline
    finally:
        await pipeline.close()


# --- Endpoints ---


@router.post("/run", response_model=PipelineResult)
async def run_analysis(
    payload: AnalysisRunRequest,
    pipeline: DesignAnalysisPipeline = Depends(get_pipeline),
):
    """Analyse a posted design tree.

    Usage:
        POST /api/v1/analysis/run
        { "tree": {...}, "imageUrl": "https://...", "fileName": "Checkout" }
    """
    try:
        result = await pipeline.run(
            payload.tree,
            image=payload.image_url,
            asset_urls=payload.asset_urls,
            file_name=payload.file_name,
        )
    except NoExtractableStructureError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info(
        f"run: file={result.file_name!r}, descriptors={len(result.descriptors)}, "
        f"components={len(result.mapped_components)}"
    )
    return result


@router.post("/run-figma", response_model=PipelineResult)
async def run_figma_analysis(
    payload: FigmaRunRequest,
    pipeline: DesignAnalysisPipeline = Depends(get_pipeline),
):
    """Fetch a design from Figma and analyse it.

    Requires FIGMA_TOKEN environment variable.
    """
    if not config.FIGMA_TOKEN:
        raise HTTPException(
            status_code=400,
            detail=(
                "Figma integration not configured. "
                "Set FIGMA_TOKEN environment variable with a valid Figma Personal Access Token."
            ),
        )

    try:
        parse_figma_url(payload.figma_url)
        client = FigmaClient(token=config.FIGMA_TOKEN, timeout=settings.FIGMA_HTTP_TIMEOUT)
    except FigmaClientError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return await pipeline.run_figma(client, payload.figma_url)
    except NoExtractableStructureError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except FigmaClientError as e:
        raise HTTPException(status_code=502, detail=f"Figma API error: {e}")
    finally:
        await client.close()
