# Transformer Module
#
# Translation between the OpenAI chat-completions protocol and the
# Antigravity generateContent protocol. The BridgePipeline facade lives in
# agbridge.transformer.pipeline.

from .unified import (
    Clock,
    Role,
    InternalRole,
    FunctionCallingMode,
    FINISH_REASON_MAP,
    DONE_SENTINEL,
    map_finish_reason,
)
from .schema import rewrite_schema
from .request import RequestTransformer, transform_request
from .response import ResponseTransformer, transform_response
from .stream import (
    SseEvent,
    SseParser,
    StreamState,
    StreamingResponseTransformer,
    format_sse_data,
    format_sse_done,
    format_sse_event,
    parse_sse_chunk,
    transform_stream_event,
)

__all__ = [
    "Clock",
    "Role",
    "InternalRole",
    "FunctionCallingMode",
    "FINISH_REASON_MAP",
    "DONE_SENTINEL",
    "map_finish_reason",
    "rewrite_schema",
    "RequestTransformer",
    "transform_request",
    "ResponseTransformer",
    "transform_response",
    "SseEvent",
    "SseParser",
    "StreamState",
    "StreamingResponseTransformer",
    "format_sse_data",
    "format_sse_done",
    "format_sse_event",
    "parse_sse_chunk",
    "transform_stream_event",
]
