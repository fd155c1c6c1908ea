# Antigravity -> OpenAI Response Transformer (non-streaming)
#
# Converts a complete Antigravity generateContent response into an
# OpenAI Chat Completion response.

import json
import time
from typing import Any, Optional

from .unified import Clock, completion_id, epoch_seconds, map_finish_reason, tool_call_id


def unwrap_envelope(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the inner document of an optional ``{"response": {...}}`` envelope."""
    inner = payload.get("response")
    if isinstance(inner, dict):
        return inner
    return payload


def first_candidate(payload: Any) -> Optional[dict[str, Any]]:
    """Return the first candidate of a (possibly enveloped) response, if any.

    Payloads of the wrong shape yield None rather than raising.
    """
    if not isinstance(payload, dict):
        return None
    candidates = unwrap_envelope(payload).get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    if not isinstance(candidates[0], dict):
        return None
    return candidates[0]


def candidate_parts(candidate: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
    if not candidate:
        return []
    content = candidate.get("content")
    if not isinstance(content, dict):
        return []
    parts = content.get("parts")
    if not isinstance(parts, list):
        return []
    return [part for part in parts if isinstance(part, dict)]


def part_text(part: dict[str, Any]) -> Optional[str]:
    """Return the part's text if it is a non-empty string."""
    text = part.get("text")
    if isinstance(text, str) and text:
        return text
    return None


def serialize_args(function_call: dict[str, Any]) -> str:
    return json.dumps(function_call.get("args", {}), ensure_ascii=False)


class ResponseTransformer:
    """
    Maps a whole internal-protocol response to a ``chat.completion`` object.

    Only the first candidate is used. Token usage is not reported upstream,
    so the usage block is always zeros.
    """

    def __init__(self, clock: Clock = time.time) -> None:
        self.clock = clock

    def transform(self, internal: dict[str, Any], model: str) -> dict[str, Any]:
        """
        Transform an Antigravity response into an OpenAI response.

        Args:
            internal: Antigravity response document, enveloped or not
            model: Public model name to report back to the client

        Returns:
            OpenAI chat completion response
        """
        candidate = first_candidate(internal)

        text_segments: list[str] = []
        tool_calls: list[dict[str, Any]] = []

        for part in candidate_parts(candidate):
            text = part_text(part)
            if text:
                text_segments.append(text)
            function_call = part.get("functionCall")
            if isinstance(function_call, dict):
                tool_calls.append(
                    {
                        "id": tool_call_id(len(tool_calls), self.clock),
                        "type": "function",
                        "function": {
                            "name": function_call.get("name", ""),
                            "arguments": serialize_args(function_call),
                        },
                    }
                )

        content = "".join(text_segments)
        message: dict[str, Any] = {
            "role": "assistant",
            "content": content or None,
        }
        if tool_calls:
            message["tool_calls"] = tool_calls

        finish_reason = map_finish_reason(
            candidate.get("finishReason") if candidate else None, default="stop"
        )

        return {
            "id": completion_id(self.clock),
            "object": "chat.completion",
            "created": epoch_seconds(self.clock),
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "message": message,
                    "finish_reason": finish_reason,
                }
            ],
            "usage": {
                "prompt_tokens": 0,
                "completion_tokens": 0,
                "total_tokens": 0,
            },
        }


def transform_response(
    internal: dict[str, Any], model: str, clock: Clock = time.time
) -> dict[str, Any]:
    """Transform a complete Antigravity response with a one-off transformer."""
    return ResponseTransformer(clock).transform(internal, model)
