"""Figma REST API client for the design analysis pipeline.

Fetches file trees, rendered frame images and image-fill asset URLs from
Figma using Personal Access Token (PAT) authentication.

Environment (read through design_pipeline.config):
    FIGMA_TOKEN - Figma Personal Access Token (required)

Usage:
    client = FigmaClient()
    file_key = extract_file_key("https://www.figma.com/file/AbC123xyz456/Checkout")
    file_json = await client.get_file(file_key)
    frames = get_main_frames(file_json)
    images = await client.get_images(file_key, [frames[0]["id"]])
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx

from design_pipeline import config

logger = logging.getLogger("design_pipeline.integrations.figma")

FIGMA_API_BASE = "https://api.figma.com"

_FILE_KEY_RE = re.compile(r"figma\.com/(?:design|file|proto)/([a-zA-Z0-9_-]+)")
_NODE_ID_RE = re.compile(r"node-id=([^&]+)")

# Frames smaller than this on either side are not considered screens
MIN_MAIN_FRAME_SIZE = 200


class FigmaClientError(Exception):
    """Raised when a Figma API call fails."""


def extract_file_key(url_or_key: str) -> str:
    """Return the file key from a Figma URL, or the input when it already is a key."""
    value = (url_or_key or "").strip()
    if "/" not in value and len(value) > 10:
        return value
    match = _FILE_KEY_RE.search(value)
    if not match:
        raise FigmaClientError(f"Invalid Figma URL or file key: {url_or_key!r}")
    return match.group(1)


def parse_figma_url(url: str) -> Tuple[str, Optional[str]]:
    """Parse a Figma URL into (file_key, node_id).

    Node ID format: URL uses '16650-538', API uses '16650:538'.
    """
    file_key = extract_file_key(url)
    node_match = _NODE_ID_RE.search(url)
    node_id = None
    if node_match:
        node_id = node_match.group(1).replace("%3A", ":").replace("-", ":")
    return file_key, node_id


def get_main_frames(file_json: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Top-level screen frames of a file response.

    Frames larger than 200x200 whose names do not start with '_' or '.'
    qualify; when none do, every frame not starting with '_' is returned.
    """
    document = file_json.get("document") or {}
    frames: List[Dict[str, Any]] = []
    for page in document.get("children") or []:
        for child in page.get("children") or []:
            if isinstance(child, dict) and child.get("type") == "FRAME":
                frames.append(child)

    def _size(frame: Dict) -> Tuple[float, float]:
        box = frame.get("absoluteBoundingBox") or {}
        return box.get("width", 0) or 0, box.get("height", 0) or 0

    main = [
        f for f in frames
        if _size(f)[0] > MIN_MAIN_FRAME_SIZE
        and _size(f)[1] > MIN_MAIN_FRAME_SIZE
        and not str(f.get("name", "")).startswith(("_", "."))
    ]
    if main:
        return main
    return [f for f in frames if not str(f.get("name", "")).startswith("_")]


class FigmaClient:
    """Async Figma REST API client.

    Args:
        token: Figma PAT. Falls back to config.FIGMA_TOKEN.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self._token = token or config.FIGMA_TOKEN
        if not self._token:
            raise FigmaClientError(
                "Figma token not configured. Set FIGMA_TOKEN environment variable "
                "or pass token= to FigmaClient()."
            )
        self._client: Optional[httpx.AsyncClient] = None
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=FIGMA_API_BASE,
                headers={"X-FIGMA-TOKEN": self._token},
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=5, max_keepalive_connections=3),
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: Optional[Dict] = None) -> Dict[str, Any]:
        """Make a GET request to the Figma API."""
        client = await self._get_client()
        try:
            resp = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise FigmaClientError(f"Figma API timeout: {path}") from e
        except httpx.HTTPError as e:
            raise FigmaClientError(f"Figma API connection error: {path}") from e

        if resp.status_code == 403:
            raise FigmaClientError(
                "Figma API returned 403 Forbidden. Check that FIGMA_TOKEN is valid "
                "and has file_content:read scope."
            )
        if resp.status_code == 404:
            raise FigmaClientError(f"Figma resource not found: {path}")
        if resp.status_code == 429:
            raise FigmaClientError("Figma API rate limit exceeded. Retry later.")
        if resp.status_code != 200:
            raise FigmaClientError(
                f"Figma API error {resp.status_code}: {resp.text[:200]}"
            )

        return resp.json()

    # ------------------------------------------------------------------
    # Core API methods
    # ------------------------------------------------------------------

    async def get_file(self, file_key: str, depth: Optional[int] = None) -> Dict[str, Any]:
        """Fetch a whole Figma file.

        GET /v1/files/:key
        """
        params = {"depth": str(depth)} if depth else None
        data = await self._get(f"/v1/files/{file_key}", params=params)
        logger.info(f"get_file: file={file_key}, name={data.get('name', '')!r}")
        return data

    async def get_file_nodes(
        self,
        file_key: str,
        node_ids: List[str],
    ) -> Dict[str, Any]:
        """Fetch specific nodes from a Figma file.

        GET /v1/files/:key/nodes?ids=...
        """
        data = await self._get(
            f"/v1/files/{file_key}/nodes", params={"ids": ",".join(node_ids)}
        )
        logger.info(
            f"get_file_nodes: file={file_key}, requested={len(node_ids)}, "
            f"returned={len(data.get('nodes', {}))}"
        )
        return data

    async def get_images(
        self,
        file_key: str,
        node_ids: List[str],
        fmt: str = "png",
        scale: float = 2,
    ) -> Dict[str, Optional[str]]:
        """Render nodes and return {node_id: image_url}; failed renders map to None.

        GET /v1/images/:key?ids=...&format=...&scale=...
        """
        data = await self._get(
            f"/v1/images/{file_key}",
            params={"ids": ",".join(node_ids), "format": fmt, "scale": str(scale)},
        )
        if data.get("err"):
            raise FigmaClientError(f"Figma image render error: {data['err']}")
        images = data.get("images") or {}
        failed = [nid for nid, url in images.items() if not url]
        if failed:
            logger.warning(f"get_images: render failed for {len(failed)} node(s): {failed[:5]}")
        return images

    async def get_image_fills(self, file_key: str) -> Dict[str, str]:
        """Resolve image-fill references to download URLs.

        GET /v1/files/:key/images
        """
        data = await self._get(f"/v1/files/{file_key}/images")
        return (data.get("meta") or {}).get("images") or {}
