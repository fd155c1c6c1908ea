"""Thinking-mode support utilities.

Decides, from the model identifier alone, whether a request should ask for
extended reasoning and which form of thinking configuration the model
family understands:

- Gemini 3 models take a qualitative ``thinkingLevel``
- Gemini 2.5 and every other thinking-capable model take a numeric
  ``thinkingBudget``
"""

from __future__ import annotations

from typing import Any, Optional

from agbridge.core.logging import get_logger
from agbridge.models.config import ThinkingSettings

logger = get_logger()

THINKING_MODEL_MARKERS = ("thinking", "gemini-3", "opus")


def is_gemini3_model(model: Optional[str]) -> bool:
    """Check if model is Gemini 3 (not Gemini 1.x or 2.x).

    Args:
        model: Model name to check

    Returns:
        True if the model is Gemini 3, False otherwise
    """
    if not model or not isinstance(model, str):
        return False
    return "gemini-3" in model.lower()


def is_gemini25_model(model: Optional[str]) -> bool:
    if not model or not isinstance(model, str):
        return False
    return "gemini-2.5" in model.lower()


def is_thinking_model(model: Optional[str]) -> bool:
    """Check whether the model should run with extended reasoning enabled."""
    if not model or not isinstance(model, str):
        return False
    model_lower = model.lower()
    return any(marker in model_lower for marker in THINKING_MODEL_MARKERS)


def build_thinking_config(model: str, settings: ThinkingSettings) -> dict[str, Any]:
    """Build the ``thinkingConfig`` block for a thinking-capable model."""
    if is_gemini3_model(model):
        return {"includeThoughts": True, "thinkingLevel": settings.level}
    if is_gemini25_model(model):
        return {"includeThoughts": True, "thinkingBudget": settings.budget}
    # Claude and other reasoning models
    return {"includeThoughts": True, "thinkingBudget": settings.budget}


def apply_thinking_config(
    model: str,
    generation_config: dict[str, Any],
    settings: ThinkingSettings,
) -> dict[str, Any]:
    """Return a copy of ``generation_config`` with thinking enabled if the model calls for it.

    When thinking is enabled and the requested output cap is missing or
    below ``settings.min_output_tokens``, the cap is raised to
    ``settings.boosted_output_tokens`` so reasoning cannot starve the
    visible answer.
    """
    if not is_thinking_model(model) or "thinkingConfig" in generation_config:
        return generation_config

    result = dict(generation_config)
    result["thinkingConfig"] = build_thinking_config(model, settings)

    max_output = result.get("maxOutputTokens")
    if not max_output or max_output < settings.min_output_tokens:
        result["maxOutputTokens"] = settings.boosted_output_tokens

    logger.debug(
        f"Thinking enabled for {model}: {result['thinkingConfig']}, "
        f"maxOutputTokens={result['maxOutputTokens']}"
    )
    return result
