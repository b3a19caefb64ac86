"""Root conftest for API tests.

Provides:
- Mocked reasoning / vision clients (no network)
- A DesignAnalysisPipeline built on those clients
- FastAPI AsyncClient with the pipeline dependency overridden
"""

from __future__ import annotations

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from design_pipeline.integrations.llm_client import LLMCallResult, LLMCallStatus
from design_pipeline.pipeline import DesignAnalysisPipeline


# ---------------------------------------------------------------------------
# Model client mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def failing_model_client():
    """Model client whose every call times out (forces heuristic fallbacks)."""
    client = MagicMock()
    client.complete_json = AsyncMock(
        return_value=LLMCallResult(status=LLMCallStatus.TIMEOUT, error="no response within 1s")
    )
    return client


@pytest.fixture
def pipeline(failing_model_client) -> DesignAnalysisPipeline:
    return DesignAnalysisPipeline(failing_model_client, failing_model_client)


# ---------------------------------------------------------------------------
# FastAPI test client - overrides the per-request pipeline dependency
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(pipeline) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI routes."""
    from app.main import app
    from app.routes.analysis import get_pipeline

    app.dependency_overrides[get_pipeline] = lambda: pipeline
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
