"""Reasoning / vision model client for the analysis pipeline.

Talks to an OpenAI-compatible ``/chat/completions`` endpoint and returns an
``LLMCallResult`` instead of raising: every failure mode (transport error,
non-success status, timeout, unparseable payload) is a distinct status so
callers can route to their heuristic fallback.

Environment:
    OPENAI_API_KEY - API key (a missing key yields TRANSPORT_ERROR results)
    LLM_API_BASE   - endpoint base URL

Usage:
    client = ReasoningClient(model="gpt-4o", timeout=90.0)
    result = await client.complete_json(system_prompt, user_prompt, image=url)
    if result.ok:
        payload = result.data
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import httpx

from design_pipeline import config
from design_pipeline.nodes.llm_utils import parse_llm_json

logger = logging.getLogger("design_pipeline.integrations.llm")

ImageInput = Union[str, bytes, None]


class LLMCallStatus(str, Enum):
    OK = "ok"
    PARSE_ERROR = "parse_error"
    TRANSPORT_ERROR = "transport_error"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class LLMCallResult:
    status: LLMCallStatus
    data: Optional[Dict[str, Any]] = None
    error: str = ""
    raw_text: str = ""
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is LLMCallStatus.OK


def image_to_url(image: ImageInput) -> Optional[str]:
    """Return an http(s)/data URL for a URL string or raw image bytes."""
    if image is None:
        return None
    if isinstance(image, bytes):
        mime = "image/jpeg" if image[:2] == b"\xff\xd8" else "image/png"
        encoded = base64.b64encode(image).decode("ascii")
        return f"data:{mime};base64,{encoded}"
    return image


class ReasoningClient:
    """Async chat-completions client returning structured JSON payloads.

    Args:
        api_key: API key. Falls back to OPENAI_API_KEY env var.
        base_url: Endpoint base URL. Falls back to LLM_API_BASE.
        model: Model name sent with each request.
        timeout: Whole-call timeout in seconds.
        max_tokens: Completion token limit.
        temperature: Sampling temperature.
        json_mode: Ask the endpoint for a JSON object response format.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
        max_tokens: int = 3000,
        temperature: float = 0.1,
        json_mode: bool = True,
    ):
        self._api_key = api_key if api_key is not None else config.LLM_API_KEY
        self._base_url = (base_url or config.LLM_API_BASE).rstrip("/")
        self.model = model or config.GROUPING_MODEL
        self.timeout = timeout
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._json_mode = json_mode
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self.timeout,
                limits=httpx.Limits(max_connections=5, max_keepalive_connections=3),
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _build_body(
        self, system_prompt: str, user_prompt: str, image_url: Optional[str],
    ) -> Dict[str, Any]:
        user_content: Union[str, List[Dict[str, Any]]] = user_prompt
        if image_url:
            user_content = [
                {"type": "text", "text": user_prompt},
                {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
            ]
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }
        if self._json_mode and not image_url:
            body["response_format"] = {"type": "json_object"}
        return body

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        image: ImageInput = None,
        caller: str = "LLM",
    ) -> LLMCallResult:
        """Make one chat-completion call and parse its content as a JSON object.

        Never raises for call failures; the outcome is carried by the status.
        """
        start = time.monotonic()

        def _result(status: LLMCallStatus, **kwargs: Any) -> LLMCallResult:
            elapsed = (time.monotonic() - start) * 1000
            if status is not LLMCallStatus.OK:
                logger.warning(
                    "%s: model call failed (%s): %s", caller, status.value, kwargs.get("error", "")
                )
            return LLMCallResult(status=status, duration_ms=elapsed, **kwargs)

        if not self._api_key:
            return _result(
                LLMCallStatus.TRANSPORT_ERROR,
                error="API key not configured. Set OPENAI_API_KEY environment variable.",
            )

        body = self._build_body(system_prompt, user_prompt, image_to_url(image))
        client = await self._get_client()

        try:
            resp = await asyncio.wait_for(
                client.post("/chat/completions", json=body), timeout=self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return _result(LLMCallStatus.TIMEOUT, error=f"no response within {self.timeout}s")
        except httpx.HTTPError as e:
            return _result(LLMCallStatus.TRANSPORT_ERROR, error=f"{type(e).__name__}: {e}")

        if resp.status_code != 200:
            return _result(
                LLMCallStatus.TRANSPORT_ERROR,
                error=f"API error {resp.status_code}: {resp.text[:200]}",
            )

        try:
            envelope = resp.json()
            content = envelope["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            return _result(LLMCallStatus.PARSE_ERROR, error=f"malformed response envelope: {e}")

        if not isinstance(content, str) or not content.strip():
            return _result(LLMCallStatus.PARSE_ERROR, error="empty response content")

        data = parse_llm_json(content, caller=caller)
        if not isinstance(data, dict):
            return _result(
                LLMCallStatus.PARSE_ERROR,
                error="response is not a JSON object",
                raw_text=content,
            )

        result = _result(LLMCallStatus.OK, data=data, raw_text=content)
        logger.info("%s: model call ok in %.0fms (model=%s)", caller, result.duration_ms, self.model)
        return result
