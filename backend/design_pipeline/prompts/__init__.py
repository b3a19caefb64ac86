"""Prompt templates for the semantic grouping and visual validation calls."""

from .grouping_prompt import GROUPING_SYSTEM_PROMPT, build_grouping_prompt
from .validation_prompt import VALIDATION_SYSTEM_PROMPT, build_validation_prompt

__all__ = [
    "GROUPING_SYSTEM_PROMPT",
    "VALIDATION_SYSTEM_PROMPT",
    "build_grouping_prompt",
    "build_validation_prompt",
]
