"""Tests for SSE parsing and the streaming response transformer"""
import json

import pytest

from agbridge.transformer.stream import (
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


def _event(payload) -> SseEvent:
    return SseEvent(data=json.dumps(payload))


def _candidate_event(parts=None, finish_reason=None, envelope=True) -> SseEvent:
    candidate = {"content": {"role": "model", "parts": parts or []}}
    if finish_reason:
        candidate["finishReason"] = finish_reason
    body = {"candidates": [candidate]}
    return _event({"response": body} if envelope else body)


def _delta(chunk: dict) -> dict:
    return chunk["choices"][0]["delta"]


@pytest.mark.unit
class TestParseSseChunk:
    """Test stateless SSE frame parsing"""

    def test_single_event(self):
        assert parse_sse_chunk('data: {"a":1}\n\n') == [SseEvent(data='{"a":1}')]

    def test_crlf_line_endings(self):
        events = parse_sse_chunk("event: message\r\nid: 7\r\ndata: x\r\n\r\n")
        assert events == [SseEvent(event="message", id="7", data="x")]

    def test_multiline_data_joined(self):
        assert parse_sse_chunk("data: a\ndata: b\n\n") == [SseEvent(data="a\nb")]

    def test_multiple_events(self):
        events = parse_sse_chunk("data: one\n\ndata: two\n\n")
        assert [e.data for e in events] == ["one", "two"]

    def test_trailing_event_without_blank_line(self):
        assert parse_sse_chunk("data: x") == [SseEvent(data="x")]

    def test_lines_without_colon_ignored(self):
        assert parse_sse_chunk("garbage\ndata: x\n\n") == [SseEvent(data="x")]

    def test_comment_only_frame(self):
        assert parse_sse_chunk(": keepalive\n\n") == []

    def test_event_without_data_not_dispatched(self):
        assert parse_sse_chunk("event: ping\n\n") == []

    def test_retry_field(self):
        assert parse_sse_chunk("retry: 3000\ndata: x\n\n")[0].retry == 3000

    def test_bad_retry_ignored(self):
        assert parse_sse_chunk("retry: soon\ndata: x\n\n")[0].retry is None


@pytest.mark.unit
class TestSseParser:
    """Test buffered SSE parsing across reads"""

    def test_line_split_across_reads(self):
        parser = SseParser()
        assert parser.feed(b'data: {"a"') == []
        assert parser.feed(b":1}\n\n") == parse_sse_chunk('data: {"a":1}\n\n')

    def test_boundary_split_across_reads(self):
        parser = SseParser()
        assert parser.feed(b"data: x\r\n") == []
        assert parser.feed(b"\r\n") == [SseEvent(data="x")]

    def test_partial_frame_kept(self):
        parser = SseParser()
        events = parser.feed(b"data: one\n\ndata: tw")
        assert events == [SseEvent(data="one")]
        assert parser.remaining() == "data: tw"

    def test_multibyte_character_split(self):
        parser = SseParser()
        encoded = "data: café\n\n".encode("utf-8")
        assert parser.feed(encoded[:-3]) == []
        assert parser.feed(encoded[-3:]) == [SseEvent(data="café")]

    def test_flush_parses_remainder(self):
        parser = SseParser()
        assert parser.feed(b"data: last") == []
        assert parser.flush() == [SseEvent(data="last")]
        assert parser.remaining() == ""

    def test_flush_empty(self):
        assert SseParser().flush() == []

    def test_accepts_text(self):
        assert SseParser().feed("data: x\n\n") == [SseEvent(data="x")]

    def test_clear(self):
        parser = SseParser()
        parser.feed(b"data: partial")
        parser.clear()
        assert parser.remaining() == ""
        assert parser.flush() == []


@pytest.mark.unit
class TestSseSerializers:
    """Test SSE output formatting"""

    def test_format_event(self):
        assert format_sse_event("error", "a\nb") == "event: error\ndata: a\ndata: b\n\n"

    def test_format_data(self):
        assert format_sse_data('{"x":1}') == 'data: {"x":1}\n\n'

    def test_format_done(self):
        assert format_sse_done() == "data: [DONE]\n\n"


@pytest.mark.unit
class TestStreamState:
    """Test per-stream state"""

    def test_create(self, fixed_clock, fixed_millis, fixed_seconds):
        state = StreamState.create("gemini-3-pro", fixed_clock)
        assert state.id == f"chatcmpl-{fixed_millis}"
        assert state.created == fixed_seconds
        assert state.model == "gemini-3-pro"
        assert state.has_emitted_role is False
        assert state.tool_call_index == 0
        assert state.last_thought_signature is None


@pytest.mark.unit
class TestTransformStreamEvent:
    """Test the streaming state machine"""

    @pytest.fixture
    def state(self, fixed_clock) -> StreamState:
        return StreamState.create("gemini-3-pro", fixed_clock)

    def test_first_chunk_is_role_preamble(self, state):
        chunks = transform_stream_event(_candidate_event([{"text": "Hi"}]), state)

        assert _delta(chunks[0]) == {"role": "assistant", "content": ""}
        assert chunks[0]["choices"][0]["finish_reason"] is None
        assert _delta(chunks[1]) == {"content": "Hi"}
        assert len(chunks) == 2

    def test_preamble_emitted_once(self, state):
        transform_stream_event(_candidate_event([{"text": "a"}]), state)
        chunks = transform_stream_event(_candidate_event([{"text": "b"}]), state)
        assert [_delta(c) for c in chunks] == [{"content": "b"}]

    def test_chunk_envelope(self, state, fixed_millis, fixed_seconds):
        chunk = transform_stream_event(_candidate_event([{"text": "a"}]), state)[0]
        assert chunk["id"] == f"chatcmpl-{fixed_millis}"
        assert chunk["object"] == "chat.completion.chunk"
        assert chunk["created"] == fixed_seconds
        assert chunk["model"] == "gemini-3-pro"
        assert chunk["choices"][0]["index"] == 0

    def test_bare_payload(self, state):
        chunks = transform_stream_event(
            _candidate_event([{"text": "a"}], envelope=False), state
        )
        assert _delta(chunks[1]) == {"content": "a"}

    @pytest.mark.parametrize("data", ["[DONE]", "", None, "{not json", "[1, 2]"])
    def test_no_chunks(self, state, data):
        assert transform_stream_event(SseEvent(data=data), state) == []
        assert state.has_emitted_role is False

    def test_missing_candidate(self, state):
        assert transform_stream_event(_event({"response": {"candidates": []}}), state) == []
        assert state.has_emitted_role is False

    def test_function_calls_indexed(self, state, fixed_millis):
        first = transform_stream_event(
            _candidate_event([{"functionCall": {"name": "a", "args": {"x": 1}}}]), state
        )
        second = transform_stream_event(
            _candidate_event([{"functionCall": {"name": "b", "args": {}}}]), state
        )

        call_a = _delta(first[1])["tool_calls"][0]
        call_b = _delta(second[0])["tool_calls"][0]
        assert call_a == {
            "index": 0,
            "id": f"call_{fixed_millis}_0",
            "type": "function",
            "function": {"name": "a", "arguments": '{"x": 1}'},
        }
        assert call_b["index"] == 1
        assert call_b["id"] == f"call_{fixed_millis}_1"
        assert state.tool_call_index == 2

    def test_thought_signature_retained(self, state):
        chunks = transform_stream_event(
            _candidate_event([{"thoughtSignature": "sig-1"}]), state
        )
        assert len(chunks) == 1  # preamble only
        assert state.last_thought_signature == "sig-1"

    def test_thought_text_emitted_as_content(self, state):
        chunks = transform_stream_event(
            _candidate_event([{"text": "pondering", "thought": True}]), state
        )
        assert _delta(chunks[1]) == {"content": "pondering"}

    def test_parts_keep_order(self, state):
        chunks = transform_stream_event(
            _candidate_event(
                [
                    {"text": "one"},
                    {"functionCall": {"name": "f", "args": {}}},
                    {"text": "two"},
                ],
                finish_reason="STOP",
            ),
            state,
        )
        deltas = [_delta(c) for c in chunks]
        assert deltas[1] == {"content": "one"}
        assert "tool_calls" in deltas[2]
        assert deltas[3] == {"content": "two"}
        assert deltas[4] == {}
        assert chunks[4]["choices"][0]["finish_reason"] == "stop"

    @pytest.mark.parametrize(
        "reason,expected",
        [
            ("STOP", "stop"),
            ("MAX_TOKENS", "length"),
            ("SAFETY", "content_filter"),
            ("RECITATION", "content_filter"),
            ("OTHER", "stop"),
            ("BLOCKLIST", None),
        ],
    )
    def test_finish_reason(self, state, reason, expected):
        chunks = transform_stream_event(_candidate_event(finish_reason=reason), state)
        assert _delta(chunks[-1]) == {}
        assert chunks[-1]["choices"][0]["finish_reason"] == expected


@pytest.mark.unit
class TestStreamingResponseTransformer:
    """Test the stateful wrapper"""

    def test_owns_state(self, fixed_clock):
        transformer = StreamingResponseTransformer("m", fixed_clock)
        transformer.transform(_candidate_event([{"text": "a"}]))
        assert transformer.state.has_emitted_role is True

    def test_independent_streams(self, fixed_clock):
        first = StreamingResponseTransformer("m", fixed_clock)
        second = StreamingResponseTransformer("m", fixed_clock)
        first.transform(_candidate_event([{"text": "a"}]))
        chunks = second.transform(_candidate_event([{"text": "b"}]))
        assert _delta(chunks[0])["role"] == "assistant"


@pytest.mark.unit
class TestMalformedStreamPayloads:
    """Wrongly shaped stream payloads produce no chunks instead of raising"""

    @pytest.fixture
    def state(self, fixed_clock) -> StreamState:
        return StreamState.create("m", fixed_clock)

    @pytest.mark.parametrize(
        "data",
        [
            '{"candidates": {"x": 1}}',
            '{"candidates": 5}',
            '{"candidates": ["text"]}',
            '{"response": {"candidates": null}}',
        ],
    )
    def test_candidates_of_wrong_shape(self, state, data):
        assert transform_stream_event(SseEvent(data=data), state) == []
        assert state.has_emitted_role is False

    @pytest.mark.parametrize(
        "candidate",
        [
            {"content": "oops"},
            {"content": {"parts": {"text": "x"}}},
            {"content": {"parts": [{"text": 5}, "loose", {"thoughtSignature": 7}]}},
        ],
    )
    def test_content_of_wrong_shape(self, state, candidate):
        chunks = transform_stream_event(_event({"candidates": [candidate]}), state)
        assert [_delta(c) for c in chunks] == [{"role": "assistant", "content": ""}]
        assert state.last_thought_signature is None

    def test_non_string_finish_reason(self, state):
        chunks = transform_stream_event(_candidate_event(finish_reason=["STOP"]), state)
        assert chunks[-1]["choices"][0]["finish_reason"] is None
