"""Configuration management for the bridge.

Settings come from environment variables (optionally loaded from a .env
file) layered over the defaults declared on BridgeConfig.
"""

import os
from typing import Any, Optional

from dotenv import load_dotenv

from agbridge.models.config import BridgeConfig

load_dotenv()


class EnvConfig:
    """Bridge configuration from environment variables.

    Unset variables are left as None so that model defaults apply.
    """

    def __init__(self):
        self.log_level: Optional[str] = os.environ.get("LOG_LEVEL")
        self.log_file: Optional[str] = os.environ.get("LOG_FILE")
        self.thinking_level: Optional[str] = os.environ.get("THINKING_LEVEL")
        self.thinking_budget: Optional[str] = os.environ.get("THINKING_BUDGET")
        self.thinking_min_output_tokens: Optional[str] = os.environ.get(
            "THINKING_MIN_OUTPUT_TOKENS"
        )
        self.thinking_boosted_output_tokens: Optional[str] = os.environ.get(
            "THINKING_BOOSTED_OUTPUT_TOKENS"
        )

    @classmethod
    def from_env(cls) -> "EnvConfig":
        """Load configuration from environment variables"""
        return cls()

    def to_bridge_config(self) -> BridgeConfig:
        """Build a validated BridgeConfig from the values that are set"""
        thinking: dict[str, Any] = {}
        if self.thinking_level:
            thinking["level"] = self.thinking_level
        if self.thinking_budget:
            thinking["budget"] = self.thinking_budget
        if self.thinking_min_output_tokens:
            thinking["min_output_tokens"] = self.thinking_min_output_tokens
        if self.thinking_boosted_output_tokens:
            thinking["boosted_output_tokens"] = self.thinking_boosted_output_tokens

        data: dict[str, Any] = {"thinking": thinking}
        if self.log_level:
            data["log_level"] = self.log_level
        if self.log_file:
            data["log_file"] = self.log_file
        return BridgeConfig.model_validate(data)


_cached_config: Optional[BridgeConfig] = None


def set_config(config: BridgeConfig) -> None:
    """Set the runtime configuration"""
    global _cached_config
    _cached_config = config


def clear_config_cache() -> None:
    """Clear the configuration cache"""
    global _cached_config
    _cached_config = None


def get_config() -> BridgeConfig:
    """Get current runtime configuration, loading it from the environment once."""
    global _cached_config
    if _cached_config is None:
        _cached_config = get_env_config().to_bridge_config()
    return _cached_config


def get_env_config() -> EnvConfig:
    """Get environment configuration"""
    return EnvConfig.from_env()
