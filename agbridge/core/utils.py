"""Shared utility functions."""

from typing import Optional

from agbridge.core.config import get_config


def resolve_model(model: str, aliases: Optional[dict[str, str]] = None) -> str:
    """Map a public model name to the name the internal protocol expects.

    Args:
        model: Model name as sent by the client.
        aliases: Alias table; defaults to the configured one.

    Returns:
        The internal model name, or the input unchanged if it has no alias.

    Examples:
        >>> resolve_model("gemini-3-pro")
        "gemini-3-pro-high"
        >>> resolve_model("some-new-model")
        "some-new-model"
    """
    if aliases is None:
        aliases = get_config().model_aliases
    return aliases.get(model, model)
