"""Fixtures for design_pipeline tests.

Provides:
- A small checkout-screen Figma file (document → canvas → frame)
- Factories for descriptors, groups and mocked model clients
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from design_pipeline.integrations.llm_client import LLMCallResult, LLMCallStatus
from design_pipeline.models import (
    Bounds,
    ColorStyle,
    ComponentDescriptor,
    DescriptorType,
    GroupType,
    SemanticGroup,
    Styling,
)


def _box(x, y, w, h) -> Dict[str, float]:
    return {"x": x, "y": y, "width": w, "height": h}


def _solid(r, g, b) -> Dict[str, Any]:
    return {"type": "SOLID", "color": {"r": r, "g": g, "b": b, "a": 1}}


# ---------------------------------------------------------------------------
# Figma tree
# ---------------------------------------------------------------------------


@pytest.fixture
def checkout_tree() -> Dict[str, Any]:
    """Checkout screen: header, payment card, total row and pay button."""
    return {
        "name": "Checkout",
        "document": {
            "id": "0:0",
            "type": "DOCUMENT",
            "children": [{
                "id": "0:1",
                "type": "CANVAS",
                "name": "Page 1",
                "children": [{
                    "id": "1:1",
                    "type": "FRAME",
                    "name": "Checkout",
                    "absoluteBoundingBox": _box(0, 0, 375, 812),
                    "fills": [_solid(1, 1, 1)],
                    "children": [
                        {
                            "id": "1:2", "type": "TEXT", "name": "Header Title",
                            "characters": "Checkout",
                            "absoluteBoundingBox": _box(24, 50, 200, 30),
                            "fills": [_solid(0, 0, 0)],
                            "style": {"fontFamily": "Inter", "fontSize": 24, "fontWeight": 700},
                        },
                        {
                            "id": "1:3", "type": "RECTANGLE", "name": "Back Button",
                            "absoluteBoundingBox": _box(320, 50, 32, 32),
                        },
                        {
                            "id": "1:4", "type": "FRAME", "name": "Payment Card",
                            "absoluteBoundingBox": _box(24, 200, 327, 120),
                            "fills": [_solid(0.9608, 0.9608, 0.9608)],
                            "cornerRadius": 12,
                            "layoutMode": "VERTICAL",
                            "itemSpacing": 8,
                            "paddingTop": 16, "paddingRight": 16,
                            "paddingBottom": 16, "paddingLeft": 16,
                            "children": [
                                {
                                    "id": "1:5", "type": "TEXT", "name": "Card Label",
                                    "characters": "Mastercard",
                                    "absoluteBoundingBox": _box(40, 216, 120, 20),
                                },
                                {
                                    "id": "1:6", "type": "TEXT", "name": "Card Number",
                                    "characters": "**** 4242",
                                    "absoluteBoundingBox": _box(40, 244, 160, 20),
                                },
                            ],
                        },
                        {
                            "id": "1:7", "type": "TEXT", "name": "Total Label",
                            "characters": "TOTAL",
                            "absoluteBoundingBox": _box(24, 600, 80, 20),
                        },
                        {
                            "id": "1:8", "type": "TEXT", "name": "Total Value",
                            "characters": "$96.00",
                            "absoluteBoundingBox": _box(280, 600, 70, 20),
                            "style": {"fontFamily": "Inter", "fontSize": 18, "fontWeight": 600},
                        },
                        {
                            "id": "1:9", "type": "RECTANGLE", "name": "Pay Button",
                            "absoluteBoundingBox": _box(24, 700, 327, 56),
                            "fills": [_solid(0.098, 0.463, 0.824)],
                            "cornerRadius": 8,
                        },
                        {
                            "id": "1:10", "type": "TEXT", "name": "Pay Label",
                            "characters": "Pay now",
                            "absoluteBoundingBox": _box(150, 716, 80, 24),
                            "fills": [_solid(1, 1, 1)],
                            "style": {"fontFamily": "Inter", "fontSize": 16, "fontWeight": 500},
                        },
                        # Transparent and malformed nodes produce no descriptor
                        {"id": "1:11", "type": "SLICE", "name": "Export Slice"},
                        {"id": "1:12", "type": "VECTOR", "name": "Broken Icon"},
                    ],
                }],
            }],
        },
    }


CHECKOUT_IDS = ["1:1", "1:2", "1:3", "1:4", "1:5", "1:6", "1:7", "1:8", "1:9", "1:10"]


@pytest.fixture
def checkout_ids():
    return list(CHECKOUT_IDS)


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_descriptor():
    """Factory: make_descriptor("n1", "text", 0, 0, 10, 10, text="Hi")."""

    def _make(
        id: str,
        type: str = "rectangle",
        x: float = 0, y: float = 0, w: float = 10, h: float = 10,
        name: Optional[str] = None,
        text: Optional[str] = None,
        background: Optional[str] = None,
    ) -> ComponentDescriptor:
        raw = {"characters": text} if text is not None else {}
        styling = Styling(colors=ColorStyle(background=background)) if background else Styling()
        return ComponentDescriptor(
            id=id,
            name=name if name is not None else id,
            type=DescriptorType(type),
            bounds=Bounds(x=x, y=y, width=w, height=h),
            styling=styling,
            raw_properties=raw,
        )

    return _make


@pytest.fixture
def make_group():
    """Factory: make_group("g1", ["n1"], type="button", bounds=(0, 0, 10, 10))."""

    def _make(
        id: str,
        children=None,
        type: str = "container",
        name: Optional[str] = None,
        bounds=(0, 0, 100, 100),
        confidence: float = 0.8,
        properties: Optional[Dict[str, Any]] = None,
    ) -> SemanticGroup:
        x, y, w, h = bounds
        return SemanticGroup(
            id=id,
            name=name or id,
            type=GroupType(type),
            bounds=Bounds(x=x, y=y, width=w, height=h),
            children=list(children or []),
            properties=properties or {},
            confidence=confidence,
        )

    return _make


# ---------------------------------------------------------------------------
# Model client mocks
# ---------------------------------------------------------------------------


def ok_result(data: Dict[str, Any]) -> LLMCallResult:
    return LLMCallResult(status=LLMCallStatus.OK, data=data, duration_ms=12.0)


def failed_result(status: LLMCallStatus = LLMCallStatus.TRANSPORT_ERROR) -> LLMCallResult:
    return LLMCallResult(status=status, error="boom", duration_ms=3.0)


@pytest.fixture
def model_client():
    """Factory: model_client(data) or model_client(status=LLMCallStatus.TIMEOUT)."""

    def _make(data: Optional[Dict[str, Any]] = None, status: Optional[LLMCallStatus] = None):
        client = MagicMock()
        result = failed_result(status) if status is not None else ok_result(data or {})
        client.complete_json = AsyncMock(return_value=result)
        return client

    return _make
