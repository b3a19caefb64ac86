"""Auto-repair for semantic groups returned without members.

The model sometimes names a sensible section ("Total Display") but leaves
``children`` empty. Each empty group is offered to an ordered rule table
keyed on its normalised name; the first matching rule claims descriptors
from an explicit pool of still-unclaimed descriptors. The pool is passed in
and the remainder returned, so no descriptor is claimed twice in one run.
Groups that stay empty are dropped.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional, Tuple

from design_pipeline import settings
from design_pipeline.models import Bounds, ComponentDescriptor, DescriptorType, SemanticGroup
from design_pipeline.nodes.spatial_analyzer import band_of, is_value_text, overall_bounds, text_of

logger = logging.getLogger(__name__)

Claimer = Callable[[SemanticGroup, List[ComponentDescriptor], Bounds], List[ComponentDescriptor]]

_NAV_NAME_KEYWORDS = ("back", "nav", "menu", "close")
_PAYMENT_NAME_KEYWORDS = ("cash", "visa", "mastercard", "paypal", "card", "method")
_PAYMENT_TEXT_KEYWORDS = ("payment", "add", "card")
_ACTION_KEYWORDS = ("pay", "confirm", "button", "submit", "continue")


def normalize_name(name: str) -> str:
    return " ".join(name.lower().replace("-", " ").replace("_", " ").split())


def _contains_any(text: str, keywords) -> bool:
    lower = text.lower()
    return any(k in lower for k in keywords)


# ---------------------------------------------------------------------------
# Claimers
# ---------------------------------------------------------------------------


def _claim_header(group, pool, canvas):
    return [
        d for d in pool
        if band_of(d, canvas) == "top" and (
            d.type == DescriptorType.TEXT
            or d.type == DescriptorType.INSTANCE
            or _contains_any(d.name, _NAV_NAME_KEYWORDS)
        )
    ]


def _claim_payment_methods(group, pool, canvas):
    return [
        d for d in pool
        if band_of(d, canvas) == "middle" and (
            _contains_any(d.name, _PAYMENT_NAME_KEYWORDS)
            or (d.type == DescriptorType.TEXT
                and _contains_any(d.characters, _PAYMENT_TEXT_KEYWORDS))
            or d.type in (DescriptorType.RECTANGLE, DescriptorType.INSTANCE)
        )
    ]


def _claim_total(group, pool, canvas):
    return [
        d for d in pool
        if d.type == DescriptorType.TEXT
        and band_of(d, canvas) in ("middle", "bottom")
        and ("total" in text_of(d).lower() or is_value_text(text_of(d)))
    ]


def _claim_primary_action(group, pool, canvas):
    return [
        d for d in pool
        if band_of(d, canvas) == "bottom" and (
            _contains_any(d.name, _ACTION_KEYWORDS)
            or _contains_any(d.characters, _ACTION_KEYWORDS)
            or d.bounds.width > 200
        )
    ]


def _claim_nearest(group, pool, canvas):
    def _distance(d: ComponentDescriptor) -> float:
        return math.hypot(d.bounds.x - group.bounds.x, d.bounds.y - group.bounds.y)

    nearby = [d for d in pool if _distance(d) < settings.REPAIR_PROXIMITY_PX]
    nearby.sort(key=_distance)
    return nearby[:settings.REPAIR_MAX_CLAIMS]


# Ordered (name predicate, claimer) table; the last rule always matches
REPAIR_RULES: List[Tuple[str, Callable[[str], bool], Claimer]] = [
    ("header", lambda n: "header" in n, _claim_header),
    ("payment methods", lambda n: "payment" in n or "method" in n, _claim_payment_methods),
    ("total display", lambda n: "total" in n or "summary" in n, _claim_total),
    ("primary action", lambda n: "action" in n or "button" in n or "cta" in n,
     _claim_primary_action),
    ("nearest", lambda n: True, _claim_nearest),
]


def repair_empty_groups(
    groups: List[SemanticGroup],
    available: List[ComponentDescriptor],
    descriptors: Optional[List[ComponentDescriptor]] = None,
) -> Tuple[List[SemanticGroup], List[ComponentDescriptor]]:
    """Fill empty groups from ``available`` and drop those that stay empty.

    Args:
        groups: Groups after child resolution; non-empty groups pass through.
        available: Descriptors not yet claimed by any group.
        descriptors: Full descriptor list, used for canvas banding.

    Returns:
        (repaired groups in original order, remaining available pool)
    """
    pool = list(available)
    canvas = overall_bounds(descriptors or available) or Bounds()
    repaired: List[SemanticGroup] = []

    for group in groups:
        if group.children:
            repaired.append(group)
            continue

        name = normalize_name(group.name)
        rule_name, claimer = next(
            (rn, claim) for rn, predicate, claim in REPAIR_RULES if predicate(name)
        )
        claimed = claimer(group, pool, canvas) if pool else []
        if not claimed:
            logger.info("repair: dropping empty group %r (rule=%s)", group.name, rule_name)
            continue

        claimed_ids = {d.id for d in claimed}
        pool = [d for d in pool if d.id not in claimed_ids]
        repaired.append(group.model_copy(update={"children": [d.id for d in claimed]}))
        logger.info(
            "repair: group %r claimed %d node(s) via %s rule",
            group.name, len(claimed), rule_name,
        )

    return repaired, pool
