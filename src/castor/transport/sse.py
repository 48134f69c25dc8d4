"""Server-sent events decoding.

Turns a chunked byte stream into a lazy sequence of decoded wire objects.
Only ``data`` fields matter here; comments and the ``event``/``id``/``retry``
fields are ignored.
"""

from __future__ import annotations

import codecs
from typing import TYPE_CHECKING, TypeVar

from castor.errors import SerializationError
from castor.wire import WireModel

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from castor.transport.codec import WireCodec

M = TypeVar("M", bound=WireModel)


class _FrameBuffer:
    """Accumulates ``data:`` lines until a blank line ends the frame."""

    def __init__(self) -> None:
        self._data: list[str] = []

    def feed(self, line: str) -> str | None:
        """Consume one line; return a completed frame payload, if any."""
        line = line.removesuffix("\r")
        if not line:
            return self.flush()
        if line.startswith(":"):
            return None
        name, _, value = line.partition(":")
        if name == "data":
            self._data.append(value.removeprefix(" "))
        return None

    def flush(self) -> str | None:
        if not self._data:
            return None
        payload = "\n".join(self._data)
        self._data.clear()
        return payload


async def decode_sse(
    chunks: AsyncIterable[bytes],
    codec: WireCodec,
    model_type: type[M],
) -> AsyncIterator[M]:
    """Yield one *model_type* per SSE frame found in *chunks*.

    Line breaks (LF or CRLF) may fall anywhere inside a chunk, including in
    the middle of a multi-byte UTF-8 sequence. A frame left unterminated at
    EOF is still emitted. A frame that fails to decode raises
    ``SerializationError`` and ends the sequence.
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    frames = _FrameBuffer()
    pending = ""

    try:
        async for chunk in chunks:
            pending += decoder.decode(chunk)
            *lines, pending = pending.split("\n")
            for line in lines:
                payload = frames.feed(line)
                if payload is not None:
                    yield codec.decode(payload, model_type)

        pending += decoder.decode(b"", final=True)
    except UnicodeDecodeError as e:
        raise SerializationError("Stream contained invalid UTF-8") from e

    if pending:
        payload = frames.feed(pending)
        if payload is not None:
            yield codec.decode(payload, model_type)
    payload = frames.flush()
    if payload is not None:
        yield codec.decode(payload, model_type)
