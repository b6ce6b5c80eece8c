"""SSE encoding, relaying and incremental decoding of token events."""

from __future__ import annotations

import pytest

from schemas.generation import (
    DoneEvent,
    ErrorEvent,
    ProviderName,
    TextEvent,
)
from services.generation.providers import TokenStream
from services.generation.transcoder import (
    DONE_LINE,
    INCOMPLETE_STREAM_MESSAGE,
    SseDecoder,
    decode_stream,
    encode_event,
    relay_events,
)


SAMPLE_CHUNKS = [
    "function setup() {\n",
    '  createCanvas(400, 400); // "quoted" \\ backslash\n',
    "  // 🎨 émoji and accents\n",
    "}\n",
]


def _encoded_body(chunks: list[str]) -> bytes:
    body = "".join(encode_event(TextEvent(c)) for c in chunks) + DONE_LINE
    return body.encode("utf-8")


async def _aiter(items):
    for item in items:
        yield item


async def _events(*events):
    for event in events:
        yield event


def test_encode_text_event():
    assert encode_event(TextEvent("let x = 1;")) == 'data: {"text":"let x = 1;"}\n\n'


def test_encode_done_event():
    assert encode_event(DoneEvent()) == "data: [DONE]\n\n"


def test_error_events_are_not_encodable():
    with pytest.raises(ValueError):
        encode_event(ErrorEvent("boom"))


def test_decoder_reassembles_at_every_split_offset():
    body = _encoded_body(SAMPLE_CHUNKS)

    for offset in range(len(body) + 1):
        decoder = SseDecoder()
        events = decoder.feed(body[:offset]) + decoder.feed(body[offset:])
        events += decoder.finish()

        texts = [e.text for e in events if isinstance(e, TextEvent)]
        assert texts == SAMPLE_CHUNKS, offset
        assert isinstance(events[-1], DoneEvent)


def test_decoder_handles_byte_at_a_time_feeding():
    body = _encoded_body(SAMPLE_CHUNKS)
    decoder = SseDecoder()
    events = []
    for index in range(len(body)):
        events.extend(decoder.feed(body[index : index + 1]))

    assert "".join(e.text for e in events if isinstance(e, TextEvent)) == "".join(
        SAMPLE_CHUNKS
    )
    assert decoder.done


def test_decoder_ignores_noise_and_malformed_lines():
    body = (
        b": keep-alive comment\n"
        b"event: message\n"
        b'data: {"text": "a"}\n\n'
        b"data: {not json}\n\n"
        b'data: ["text"]\n\n'
        b'data: {"text": ""}\n\n'
        b'data: {"text": 5}\n\n'
        b'data: {"other": "x"}\n\n'
        b'data: {"text": "b"}\r\n\r\n'
        b"data: [DONE]\n\n"
    )
    events = SseDecoder().feed(body)

    assert events == [TextEvent("a"), TextEvent("b"), DoneEvent()]


def test_decoder_ignores_input_after_done():
    decoder = SseDecoder()
    events = decoder.feed(b'data: [DONE]\n\ndata: {"text": "late"}\n\n')

    assert events == [DoneEvent()]
    assert decoder.feed(b'data: {"text": "later"}\n\n') == []
    assert decoder.finish() == []


def test_decoder_finish_flushes_unterminated_line():
    decoder = SseDecoder()
    assert decoder.feed(b'data: {"text": "a"}\n\ndata: [DONE]') == [TextEvent("a")]
    assert decoder.finish() == [DoneEvent()]


@pytest.mark.asyncio
async def test_decode_stream_yields_done_terminal():
    chunks = [b'data: {"text": "he', b'llo"}\n\ndata: [DO', b"NE]\n\n"]
    events = [e async for e in decode_stream(_aiter(chunks))]

    assert events == [TextEvent("hello"), DoneEvent()]


@pytest.mark.asyncio
async def test_decode_stream_reports_missing_done():
    chunks = [b'data: {"text": "partial"}\n\n']
    events = [e async for e in decode_stream(_aiter(chunks))]

    assert events == [TextEvent("partial"), ErrorEvent(INCOMPLETE_STREAM_MESSAGE)]


@pytest.mark.asyncio
async def test_relay_events_forwards_in_order_and_closes():
    stream = TokenStream(
        ProviderName.CLAUDE,
        _events(TextEvent("a"), TextEvent("b"), DoneEvent(), TextEvent("ignored")),
    )

    lines = [line async for line in relay_events(stream)]

    assert lines == [
        encode_event(TextEvent("a")),
        encode_event(TextEvent("b")),
        DONE_LINE,
    ]
    assert stream.closed


@pytest.mark.asyncio
async def test_relay_events_closes_stream_on_consumer_exit():
    stream = TokenStream(
        ProviderName.GEMINI,
        _events(TextEvent("a"), TextEvent("b"), DoneEvent()),
    )

    body = relay_events(stream)
    assert await anext(body) == encode_event(TextEvent("a"))
    # A disconnecting client closes the body generator mid-stream
    await body.aclose()

    assert stream.closed


@pytest.mark.asyncio
async def test_relay_events_propagates_mid_stream_failure():
    async def failing():
        yield TextEvent("a")
        raise RuntimeError("provider dropped the connection")

    stream = TokenStream(ProviderName.CLAUDE, failing())
    body = relay_events(stream)

    assert await anext(body) == encode_event(TextEvent("a"))
    with pytest.raises(RuntimeError, match="dropped"):
        await anext(body)
    assert stream.closed
