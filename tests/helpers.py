"""Test helpers (small, reusable doubles and payload builders).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off transport subclasses as coverage expands.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json
from typing import Any

import httpx

from castor import wire
from castor.functions import Tool
from castor.model import GenerativeModel
from tests.conftest import GEMINI_MODEL, TEST_API_KEY

ScriptItem = wire.GenerateContentResponse | BaseException

# =============================================================================
# Payload Builders
# =============================================================================


def text_payload(*texts: str, finish_reason: str | None = "STOP") -> dict[str, Any]:
    candidate: dict[str, Any] = {
        "content": {"role": "model", "parts": [{"text": t} for t in texts]},
        "index": 0,
    }
    if finish_reason is not None:
        candidate["finishReason"] = finish_reason
    return {"candidates": [candidate]}


def function_call_payload(name: str, args: dict[str, Any]) -> dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [{"functionCall": {"name": name, "args": args}}],
                },
                "finishReason": "STOP",
                "index": 0,
            }
        ]
    }


def text_response(
    *texts: str, finish_reason: str | None = "STOP"
) -> wire.GenerateContentResponse:
    return wire.GenerateContentResponse.model_validate(
        text_payload(*texts, finish_reason=finish_reason)
    )


def function_call_response(
    name: str, args: dict[str, Any]
) -> wire.GenerateContentResponse:
    return wire.GenerateContentResponse.model_validate(
        function_call_payload(name, args)
    )


def sse_body(*payloads: dict[str, Any], newline: str = "\n") -> bytes:
    """Encode payloads as SSE frames, one ``data:`` line each."""
    return "".join(
        f"data: {json.dumps(p)}{newline}{newline}" for p in payloads
    ).encode("utf-8")


# =============================================================================
# Transport Doubles
# =============================================================================


@dataclass
class ScriptedTransport:
    """Transport double that replays scripted responses and records requests.

    ``responses`` feeds unary calls; ``streams`` holds one script per
    streaming call. Exceptions in a script are raised at that point.
    """

    responses: list[ScriptItem] = field(default_factory=list)
    streams: list[list[ScriptItem]] = field(default_factory=list)
    total_tokens: int = 7
    requests: list[wire.GenerateContentRequest] = field(default_factory=list)
    stream_requests: list[wire.GenerateContentRequest] = field(default_factory=list)
    count_requests: list[wire.CountTokensRequest] = field(default_factory=list)
    streams_closed: int = 0
    closed: bool = False

    @property
    def calls(self) -> int:
        return len(self.requests) + len(self.stream_requests)

    async def generate_content(
        self, request: wire.GenerateContentRequest
    ) -> wire.GenerateContentResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError("unexpected generate_content call")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def generate_content_stream(self, request: wire.GenerateContentRequest):
        self.stream_requests.append(request)
        if not self.streams:
            raise AssertionError("unexpected generate_content_stream call")
        script = self.streams.pop(0)
        try:
            for item in script:
                if isinstance(item, BaseException):
                    raise item
                yield item
        finally:
            self.streams_closed += 1

    async def count_tokens(
        self, request: wire.CountTokensRequest
    ) -> wire.CountTokensResponse:
        self.count_requests.append(request)
        return wire.CountTokensResponse(total_tokens=self.total_tokens)

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class GateTransport(ScriptedTransport):
    """ScriptedTransport that blocks until ``release`` is set.

    Unary calls block before answering; streams block after their first item.
    """

    started: asyncio.Event = field(default_factory=asyncio.Event)
    release: asyncio.Event = field(default_factory=asyncio.Event)

    async def generate_content(
        self, request: wire.GenerateContentRequest
    ) -> wire.GenerateContentResponse:
        self.started.set()
        await self.release.wait()
        return await super().generate_content(request)

    async def generate_content_stream(self, request: wire.GenerateContentRequest):
        first = True
        async for item in super().generate_content_stream(request):
            if not first:
                self.started.set()
                await self.release.wait()
            first = False
            yield item


class TrackingByteStream(httpx.AsyncByteStream):
    """Response body that records whether httpx closed it.

    With ``stall_s`` set, the body waits that long after the last chunk.
    """

    def __init__(self, chunks: list[bytes], *, stall_s: float | None = None) -> None:
        self.chunks = chunks
        self.stall_s = stall_s
        self.chunks_sent = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            self.chunks_sent += 1
            yield chunk
        if self.stall_s is not None:
            await asyncio.sleep(self.stall_s)

    async def aclose(self) -> None:
        self.closed = True


def make_model(
    transport: ScriptedTransport,
    *,
    tools: list[Tool] | None = None,
    **kwargs: Any,
) -> GenerativeModel:
    """Build a GenerativeModel wired to a transport double."""
    return GenerativeModel(
        GEMINI_MODEL,
        api_key=TEST_API_KEY,
        tools=tools,
        transport=transport,
        **kwargs,
    )
