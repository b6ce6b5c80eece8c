"""Line-delimited SSE encoding of token events, and the matching decoder.

Wire format, one event per line pair::

    data: {"text": "<chunk>"}\\n\\n
    data: [DONE]\\n\\n

Errors are never written into the stream. A failure before streaming becomes
an HTTP error response; a failure after streaming began aborts the response,
and the decoder reports a stream that ended without ``[DONE]`` as an error.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator

from schemas.generation import (
    SSE_DATA_PREFIX,
    SSE_DONE_MARKER,
    DoneEvent,
    ErrorEvent,
    StreamChunk,
    TextEvent,
    TokenEvent,
)
from services.generation.providers import TokenStream


logger = logging.getLogger(__name__)

DONE_LINE = f"{SSE_DATA_PREFIX}{SSE_DONE_MARKER}\n\n"
INCOMPLETE_STREAM_MESSAGE = "The generation stopped before it finished. Please try again."


def encode_event(event: TokenEvent) -> str:
    """Serialize one event to its SSE text form.

    Raises:
        ValueError: For error events, which have no in-band encoding.
    """
    if isinstance(event, TextEvent):
        return StreamChunk(text=event.text).to_sse()
    if isinstance(event, DoneEvent):
        return DONE_LINE
    raise ValueError(f"{type(event).__name__} cannot be encoded into the stream")


async def relay_events(stream: TokenStream) -> AsyncIterator[str]:
    """Response body generator: forward provider events in arrival order.

    The provider stream is released in every exit path. A client disconnect
    cancels this generator at its current ``await``, which lands in the
    ``finally`` and closes the provider connection instead of reading on.
    """
    completed = False
    chunks = 0
    try:
        async for event in stream:
            if isinstance(event, ErrorEvent):
                # No in-band error encoding; end the response abnormally.
                raise RuntimeError(event.message)
            yield encode_event(event)
            if isinstance(event, DoneEvent):
                completed = True
                break
            chunks += 1
    except Exception:
        logger.exception(
            "Provider stream %s failed after %d chunks", stream.provider.value, chunks
        )
        raise
    finally:
        await stream.aclose()
        if not completed:
            logger.warning(
                "Stream from %s closed before completion after %d chunks",
                stream.provider.value,
                chunks,
            )


def _parse_data_line(line: str) -> TokenEvent | None:
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    data = line[len(SSE_DATA_PREFIX) :]
    if data == SSE_DONE_MARKER:
        return DoneEvent()
    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        # Incomplete or foreign payload: drop it and keep reading
        return None
    if not isinstance(payload, dict):
        return None
    text = payload.get("text")
    if not isinstance(text, str) or not text:
        return None
    return TextEvent(text)


class SseDecoder:
    """Incremental decoder for the generation event stream.

    Feed raw bytes as they arrive; chunk boundaries may fall anywhere,
    including inside a line or a multi-byte UTF-8 character.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False

    def feed(self, chunk: bytes) -> list[TokenEvent]:
        if self.done:
            return []
        self._buffer += self._utf8.decode(chunk)
        return self._drain(final=False)

    def finish(self) -> list[TokenEvent]:
        """Flush whatever is buffered once the byte stream has ended."""
        if self.done:
            return []
        self._buffer += self._utf8.decode(b"", final=True)
        return self._drain(final=True)

    def _drain(self, *, final: bool) -> list[TokenEvent]:
        lines = self._buffer.split("\n")
        # The last piece is a partial line unless the stream has ended
        self._buffer = "" if final else lines.pop()
        events: list[TokenEvent] = []
        for raw_line in lines:
            event = _parse_data_line(raw_line.removesuffix("\r"))
            if event is None:
                continue
            events.append(event)
            if isinstance(event, DoneEvent):
                self.done = True
                self._buffer = ""
                break
        return events


async def decode_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[TokenEvent]:
    """Turn a byte stream into text events plus exactly one terminal event.

    Stops reading at ``[DONE]``. If the bytes run out first, the terminal is
    an ``ErrorEvent``.
    """
    decoder = SseDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
        if decoder.done:
            return
    for event in decoder.finish():
        yield event
    if not decoder.done:
        yield ErrorEvent(INCOMPLETE_STREAM_MESSAGE)
