"""Pipeline configuration constants - single source of truth for all env vars."""

import os

# Server binding - used by the FastAPI entrypoint / uvicorn
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Reasoning / vision model endpoint (OpenAI-compatible chat completions)
LLM_API_KEY = os.getenv("OPENAI_API_KEY", "")
LLM_API_BASE = os.getenv("LLM_API_BASE", "https://api.openai.com/v1")

# Model used for semantic grouping (text only)
GROUPING_MODEL = os.getenv("GROUPING_MODEL", "gpt-3.5-turbo")

# Model used for visual validation (must accept image input)
VISION_MODEL = os.getenv("VISION_MODEL", "gpt-4o")

# Figma REST API - Personal Access Token for design file access
FIGMA_TOKEN = os.getenv("FIGMA_TOKEN", "")
