"""Configuration models"""

from typing import Dict, Literal, Optional
from pydantic import BaseModel, Field, field_validator


DEFAULT_MODEL_ALIASES: Dict[str, str] = {
    # Claude models
    "claude-3-5-sonnet-20241022": "claude-3-5-sonnet@20241022",
    "claude-3-5-sonnet-v2-20241022": "claude-3-5-sonnet-v2@20241022",
    "claude-sonnet-4-20250514": "claude-sonnet-4@20250514",
    "claude-sonnet-4.5-20250514": "claude-sonnet-4-5@20250514",
    "claude-opus-4.5-20250514": "claude-opus-4-5-20250514",
    # Convenience aliases
    "claude-sonnet-4.5": "claude-sonnet-4-5@20250514",
    "claude-sonnet-4": "claude-sonnet-4@20250514",
    "claude-opus-4.5": "claude-opus-4-5-20250514",
    # Gemini models
    "gemini-2.5-flash": "gemini-2.5-flash",
    "gemini-2.5-pro": "gemini-2.5-pro",
    "gemini-3-flash": "gemini-3-flash",
    "gemini-3-pro": "gemini-3-pro-high",
}


class ThinkingSettings(BaseModel):
    """Extended-reasoning defaults applied to thinking-capable models"""

    level: Literal["low", "medium", "high"] = Field(
        default="medium", description="Qualitative effort for Gemini 3 models"
    )
    budget: int = Field(
        default=16000, gt=0, description="Reasoning token budget for other models"
    )
    min_output_tokens: int = Field(
        default=8192,
        gt=0,
        description="Output caps below this are raised when thinking is enabled",
    )
    boosted_output_tokens: int = Field(
        default=65535,
        gt=0,
        description="Output cap used when the requested cap is missing or too low",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class BridgeConfig(BaseModel):
    """Runtime configuration for the bridge"""

    thinking: ThinkingSettings = Field(default_factory=ThinkingSettings)
    model_aliases: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_MODEL_ALIASES),
        description="Public model name to internal model name",
    )
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level
