"""FastAPI Application Entry Point.

Configures the app, lifespan, CORS, and includes the analysis routes.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from design_pipeline import config
from design_pipeline.logging_config import get_api_logger, get_pipeline_logger

logger = get_api_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and warn about missing integrations."""
    get_pipeline_logger()

    if not config.LLM_API_KEY:
        logger.warning(
            "OPENAI_API_KEY not set - grouping and validation will use their "
            "heuristic fallbacks on every run."
        )
    if not config.FIGMA_TOKEN:
        logger.warning(
            "FIGMA_TOKEN not set - /api/v1/analysis/run-figma endpoint will be unavailable. "
            "Set FIGMA_TOKEN in .env or environment to enable Figma integration."
        )

    yield


app = FastAPI(title="Design Analysis API", version="1.0.0", lifespan=lifespan)

# CORS configuration - configurable via CORS_ORIGINS env var (comma-separated)
_default_origins = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",") if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from .routes.analysis import router as analysis_router  # noqa: E402

app.include_router(analysis_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=config.API_HOST, port=config.API_PORT)
