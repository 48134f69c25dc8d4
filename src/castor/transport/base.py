"""Transport protocol: minimal interface for talking to the service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from castor import wire


@runtime_checkable
class Transport(Protocol):
    """Minimal transport protocol: unary, streaming and token counting calls.

    Implementations raise only ``CastorError`` subclasses and never retry.
    """

    async def generate_content(
        self, request: wire.GenerateContentRequest
    ) -> wire.GenerateContentResponse:
        """Send one request and return the decoded response body."""
        ...

    def generate_content_stream(
        self, request: wire.GenerateContentRequest
    ) -> AsyncIterator[wire.GenerateContentResponse]:
        """Send one request and lazily yield each streamed response."""
        ...

    async def count_tokens(
        self, request: wire.CountTokensRequest
    ) -> wire.CountTokensResponse:
        """Count the tokens a request would consume."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
