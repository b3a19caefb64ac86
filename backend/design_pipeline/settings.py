"""Pipeline runtime settings - tunable parameters for analysis runs.

All values read from environment variables with sensible defaults.
Import from here instead of hardcoding.

Infrastructure config (API host, model names, tokens) stays in
design_pipeline/config.py.
"""

from __future__ import annotations

import os


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


# =====================================================================
# External calls
# =====================================================================

# Whole-call timeouts (seconds); a timeout routes the stage to its fallback
GROUPING_TIMEOUT = _float("GROUPING_TIMEOUT", 60.0)
VALIDATION_TIMEOUT = _float("VALIDATION_TIMEOUT", 90.0)
FIGMA_HTTP_TIMEOUT = _float("FIGMA_HTTP_TIMEOUT", 60.0)

GROUPING_MAX_TOKENS = _int("GROUPING_MAX_TOKENS", 3000)
GROUPING_TEMPERATURE = _float("GROUPING_TEMPERATURE", 0.1)
VALIDATION_MAX_TOKENS = _int("VALIDATION_MAX_TOKENS", 4000)
VALIDATION_TEMPERATURE = _float("VALIDATION_TEMPERATURE", 0.1)


# =====================================================================
# Semantic grouping
# =====================================================================

# Descriptors listed verbatim in the grouping prompt
PROMPT_NODE_LIMIT = _int("PROMPT_NODE_LIMIT", 50)

# Single-member groups emitted by the heuristic fallback
FALLBACK_GROUP_LIMIT = _int("FALLBACK_GROUP_LIMIT", 15)

# Proximity repair for empty groups without a section rule
REPAIR_PROXIMITY_PX = _float("REPAIR_PROXIMITY_PX", 100.0)
REPAIR_MAX_CLAIMS = _int("REPAIR_MAX_CLAIMS", 3)


# =====================================================================
# Visual validation
# =====================================================================

# Center distance under which a returned component matches a group
GROUP_MATCH_DISTANCE_PX = _float("GROUP_MATCH_DISTANCE_PX", 50.0)

# Max edge deviation from member geometry before bounds are snapped back
BOUNDS_TOLERANCE_PX = _float("BOUNDS_TOLERANCE_PX", 16.0)
