"""Shared test fixtures and configuration"""
from typing import Any, Callable, Generator

import pytest

from agbridge.core.config import clear_config_cache
from agbridge.models.config import ThinkingSettings

# 2023-11-14T22:13:20.5Z; exactly representable so millisecond ids are stable
FIXED_NOW = 1700000000.5
FIXED_MILLIS = 1700000000500
FIXED_SECONDS = 1700000000

CONFIG_ENV_VARS = (
    "LOG_LEVEL",
    "LOG_FILE",
    "THINKING_LEVEL",
    "THINKING_BUDGET",
    "THINKING_MIN_OUTPUT_TOKENS",
    "THINKING_BOOSTED_OUTPUT_TOKENS",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run every test against default configuration"""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def fixed_clock() -> Callable[[], float]:
    """Clock frozen at FIXED_NOW"""
    return lambda: FIXED_NOW


@pytest.fixture
def fixed_millis() -> int:
    return FIXED_MILLIS


@pytest.fixture
def fixed_seconds() -> int:
    return FIXED_SECONDS


@pytest.fixture
def thinking_settings() -> ThinkingSettings:
    return ThinkingSettings()


@pytest.fixture
def simple_request() -> dict[str, Any]:
    """Minimal chat completion request"""
    return {
        "model": "gemini-2.5-flash",
        "messages": [{"role": "user", "content": "hi"}],
    }


@pytest.fixture
def tool_request() -> dict[str, Any]:
    """Request with a full tool-calling round trip in its history"""
    return {
        "model": "gemini-2.5-flash",
        "messages": [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "What's the weather in Paris?"},
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "call_abc",
                        "type": "function",
                        "function": {
                            "name": "get_weather",
                            "arguments": '{"city": "Paris"}',
                        },
                    }
                ],
            },
            {
                "role": "tool",
                "tool_call_id": "call_abc",
                "name": "get_weather",
                "content": '{"temperature": 21, "unit": "celsius"}',
            },
        ],
        "tools": [
            {
                "type": "function",
                "function": {
                    "name": "get_weather",
                    "description": "Get the current weather",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "city": {"type": "string", "description": "City name"},
                            "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
                        },
                        "required": ["city"],
                        "additionalProperties": False,
                    },
                },
            }
        ],
        "tool_choice": "auto",
    }


@pytest.fixture
def internal_text_response() -> dict[str, Any]:
    """Enveloped Antigravity response with plain text"""
    return {
        "response": {
            "candidates": [
                {
                    "content": {
                        "role": "model",
                        "parts": [{"text": "Hello"}, {"text": ", world"}],
                    },
                    "finishReason": "STOP",
                }
            ]
        },
        "traceId": "abc123",
    }


@pytest.fixture
def internal_tool_response() -> dict[str, Any]:
    """Bare Antigravity response with two function calls"""
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [
                        {"functionCall": {"name": "get_weather", "args": {"city": "Paris"}}},
                        {"functionCall": {"name": "get_time", "args": {"tz": "CET"}}},
                    ],
                },
                "finishReason": "STOP",
            }
        ]
    }
