"""Data models and schemas"""
from .config import BridgeConfig, ThinkingSettings, DEFAULT_MODEL_ALIASES
from .openai import (
    ChatCompletionRequest,
    ChatMessage,
    ContentPart,
    FunctionCall,
    FunctionDefinition,
    Tool,
    ToolCall,
    ToolChoiceFunction,
)

__all__ = [
    "BridgeConfig",
    "ThinkingSettings",
    "DEFAULT_MODEL_ALIASES",
    "ChatCompletionRequest",
    "ChatMessage",
    "ContentPart",
    "FunctionCall",
    "FunctionDefinition",
    "Tool",
    "ToolCall",
    "ToolChoiceFunction",
]
