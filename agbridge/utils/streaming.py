"""Streaming utilities for relaying Antigravity SSE streams to OpenAI clients"""

import json
import time
from typing import AsyncIterable, AsyncIterator, Iterable

from agbridge.core.logging import get_logger
from agbridge.transformer.stream import (
    SseEvent,
    SseParser,
    StreamingResponseTransformer,
    format_sse_data,
    format_sse_done,
)
from agbridge.transformer.unified import Clock


def _encode_chunks(
    transformer: StreamingResponseTransformer, events: Iterable[SseEvent]
) -> Iterable[str]:
    for event in events:
        for chunk in transformer.transform(event):
            yield format_sse_data(json.dumps(chunk, ensure_ascii=False))


async def relay_stream(
    byte_source: AsyncIterable[bytes],
    model: str,
    clock: Clock = time.time,
) -> AsyncIterator[str]:
    """Relay an upstream SSE byte stream as OpenAI chat.completion.chunk frames

    The stream always ends with ``data: [DONE]``, including when reading
    the upstream fails part-way through.

    Args:
        byte_source: Raw upstream response body
        model: Public model name reported in every chunk
        clock: Time source for chunk ids and timestamps
    """
    logger = get_logger()
    parser = SseParser()
    transformer = StreamingResponseTransformer(model, clock)

    try:
        async for raw in byte_source:
            for frame in _encode_chunks(transformer, parser.feed(raw)):
                yield frame
        for frame in _encode_chunks(transformer, parser.flush()):
            yield frame
    except Exception as e:
        logger.error(f"Upstream stream for model {model} failed: {e}")

    yield format_sse_done()
