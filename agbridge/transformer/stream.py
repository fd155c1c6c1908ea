# Streaming Utilities
#
# SSE (Server-Sent Events) parsing and serialization, and the per-stream
# state machine that turns Antigravity stream events into OpenAI
# chat.completion.chunk objects.

import codecs
import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from agbridge.core.logging import get_logger

from .response import candidate_parts, first_candidate, part_text, serialize_args
from .unified import (
    DONE_SENTINEL,
    Clock,
    completion_id,
    epoch_seconds,
    map_finish_reason,
    tool_call_id,
)

logger = get_logger()


# =============================================================================
# SSE Event Types
# =============================================================================


@dataclass
class SseEvent:
    """SSE event parsed from stream."""

    event: Optional[str] = None
    data: Optional[str] = None
    id: Optional[str] = None
    retry: Optional[int] = None


# =============================================================================
# SSE Parser
# =============================================================================


_LINE_SPLIT = re.compile(r"\r?\n")
_FRAME_BOUNDARY = re.compile(r"\r?\n\r?\n")


def parse_sse_chunk(text: str) -> list[SseEvent]:
    """
    Parse SSE text into events.

    An event is dispatched at every blank line, and once more at end of
    input if data is still pending. Callers feeding a live stream should
    hold back the trailing partial frame themselves (see ``SseParser``).
    """
    events: list[SseEvent] = []
    current = SseEvent()

    for line in _LINE_SPLIT.split(text):
        if not line.strip():
            if current.data is not None:
                events.append(current)
            current = SseEvent()
            continue

        if ":" not in line:
            continue

        name, _, value = line.partition(":")
        name = name.strip()
        value = value.lstrip()

        if name == "data":
            if current.data is not None:
                current.data += "\n" + value
            else:
                current.data = value
        elif name == "event":
            current.event = value
        elif name == "id":
            current.id = value
        elif name == "retry":
            try:
                current.retry = int(value)
            except ValueError:
                logger.debug(f"Ignoring non-integer SSE retry field: {value!r}")

    if current.data is not None:
        events.append(current)

    return events


class SseParser:
    """Buffered SSE parser for a live byte stream.

    Bytes are decoded incrementally so a multi-byte character split across
    reads survives. Only complete frames are parsed; the trailing partial
    frame stays buffered until more input arrives or ``flush`` is called.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: Union[bytes, str]) -> list[SseEvent]:
        """Parse incoming data and return complete events."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        boundaries = list(_FRAME_BOUNDARY.finditer(self._buffer))
        if not boundaries:
            return []

        end = boundaries[-1].end()
        complete, self._buffer = self._buffer[:end], self._buffer[end:]
        return parse_sse_chunk(complete)

    def flush(self) -> list[SseEvent]:
        """Parse whatever is left at end of stream."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        if not remainder:
            return []
        return parse_sse_chunk(remainder)

    def remaining(self) -> str:
        """Get remaining buffer content."""
        return self._buffer

    def clear(self) -> None:
        """Clear the buffer."""
        self._buffer = ""
        self._decoder.reset()


# =============================================================================
# SSE Serializer Functions
# =============================================================================


def format_sse_event(event: Optional[str], data: str) -> str:
    """Format an SSE event for transmission."""
    output = ""
    if event:
        output += f"event: {event}\n"
    for line in data.split("\n"):
        output += f"data: {line}\n"
    output += "\n"
    return output


def format_sse_data(data: str) -> str:
    """Format SSE data without event type."""
    return format_sse_event(None, data)


def format_sse_done() -> str:
    return f"data: {DONE_SENTINEL}\n\n"


# =============================================================================
# Stream State
# =============================================================================


@dataclass
class StreamState:
    """
    Mutable state for one response stream.

    Owned by exactly one connection; never shared between streams.
    """

    id: str
    created: int
    model: str
    has_emitted_role: bool = False
    tool_call_index: int = 0
    # Opaque reasoning token from the upstream, kept for cache resumption
    # and never sent to the client
    last_thought_signature: Optional[str] = None
    clock: Clock = field(default=time.time, repr=False)

    @classmethod
    def create(cls, model: str, clock: Clock = time.time) -> "StreamState":
        return cls(
            id=completion_id(clock),
            created=epoch_seconds(clock),
            model=model,
            clock=clock,
        )

    def chunk(
        self, delta: dict[str, Any], finish_reason: Optional[str] = None
    ) -> dict[str, Any]:
        """Build a chat.completion.chunk carrying ``delta``."""
        return {
            "id": self.id,
            "object": "chat.completion.chunk",
            "created": self.created,
            "model": self.model,
            "choices": [
                {
                    "index": 0,
                    "delta": delta,
                    "finish_reason": finish_reason,
                }
            ],
        }


# =============================================================================
# Stream Event Transformer
# =============================================================================


def transform_stream_event(event: SseEvent, state: StreamState) -> list[dict[str, Any]]:
    """
    Transform one Antigravity SSE event into OpenAI stream chunks.

    Never raises on malformed payloads and never emits the stream
    terminator; the caller sends ``[DONE]`` once the byte source ends.

    Args:
        event: Parsed SSE event
        state: State of the stream the event belongs to, updated in place

    Returns:
        Chunks in the order their source parts appeared
    """
    data = event.data
    if not data or data == DONE_SENTINEL:
        return []

    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        logger.warning(f"Skipping unparseable stream payload: {data[:200]!r}")
        return []

    if not isinstance(payload, dict):
        return []

    candidate = first_candidate(payload)
    if candidate is None:
        return []

    chunks: list[dict[str, Any]] = []

    if not state.has_emitted_role:
        chunks.append(state.chunk({"role": "assistant", "content": ""}))
        state.has_emitted_role = True

    for part in candidate_parts(candidate):
        # Thought text has no dedicated public field; it goes out as content
        text = part_text(part)
        if text:
            chunks.append(state.chunk({"content": text}))

        signature = part.get("thoughtSignature")
        if isinstance(signature, str) and signature:
            state.last_thought_signature = signature

        function_call = part.get("functionCall")
        if isinstance(function_call, dict):
            index = state.tool_call_index
            chunks.append(
                state.chunk(
                    {
                        "tool_calls": [
                            {
                                "index": index,
                                "id": tool_call_id(index, state.clock),
                                "type": "function",
                                "function": {
                                    "name": function_call.get("name", ""),
                                    "arguments": serialize_args(function_call),
                                },
                            }
                        ]
                    }
                )
            )
            state.tool_call_index += 1

    if candidate.get("finishReason"):
        chunks.append(state.chunk({}, map_finish_reason(candidate["finishReason"])))

    return chunks


class StreamingResponseTransformer:
    """Stream transformer bound to a single ``StreamState``."""

    def __init__(
        self,
        model: str,
        clock: Clock = time.time,
        state: Optional[StreamState] = None,
    ) -> None:
        self.state = state or StreamState.create(model, clock)

    def transform(self, event: SseEvent) -> list[dict[str, Any]]:
        return transform_stream_event(event, self.state)
