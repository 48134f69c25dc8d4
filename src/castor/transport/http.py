"""httpx-backed transport for the generativelanguage REST service."""

from __future__ import annotations

import asyncio
from contextlib import aclosing
import logging
from typing import TYPE_CHECKING, Any, Self, TypeVar

import httpx

from castor import wire
from castor._http import API_KEY_HEADER, CLIENT_HEADER, client_identifier
from castor.config import RequestOptions, full_model_name
from castor.errors import CastorError, RequestTimeoutError
from castor.transport._errors import raise_for_status, wrap_transport_error
from castor.transport.codec import WireCodec
from castor.transport.sse import decode_sse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

M = TypeVar("M", bound=wire.WireModel)

logger = logging.getLogger(__name__)


class HttpTransport:
    """Talks to one model over HTTPS.

    The ``httpx.AsyncClient`` is created lazily on first use and closed by
    ``aclose``. A client passed in by the caller is used as-is and never
    closed here. No call is ever retried.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        options: RequestOptions | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        codec: WireCodec | None = None,
        client_id: str | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = full_model_name(model)
        self.options = options or RequestOptions()
        self._codec = codec or WireCodec()
        self._client_id = client_id or client_identifier()
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # Timeouts are enforced per call below.
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(None))
        return self._client

    def _url(self, method: str) -> str:
        opts = self.options
        return f"{opts.endpoint}/{opts.api_version}/{self.model}:{method}"

    def _headers(self) -> dict[str, str]:
        return {
            API_KEY_HEADER: self._api_key,
            CLIENT_HEADER: self._client_id,
            "Content-Type": "application/json",
        }

    async def _post(
        self, method: str, body: wire.WireModel, response_type: type[M]
    ) -> M:
        url = self._url(method)
        logger.debug("POST %s", url)
        try:
            async with asyncio.timeout(self.options.timeout_s):
                response = await self._get_client().post(
                    url,
                    content=self._codec.encode(body),
                    headers=self._headers(),
                    timeout=httpx.Timeout(self.options.timeout_s),
                )
            raise_for_status(response, self._codec)
            return self._codec.decode(response.content, response_type)
        except CastorError:
            raise
        except Exception as e:
            raise wrap_transport_error(e, phase=method) from e

    async def generate_content(
        self, request: wire.GenerateContentRequest
    ) -> wire.GenerateContentResponse:
        return await self._post(
            "generateContent", request, wire.GenerateContentResponse
        )

    async def count_tokens(
        self, request: wire.CountTokensRequest
    ) -> wire.CountTokensResponse:
        return await self._post("countTokens", request, wire.CountTokensResponse)

    async def generate_content_stream(
        self, request: wire.GenerateContentRequest
    ) -> AsyncIterator[wire.GenerateContentResponse]:
        """Yield each streamed response as it arrives.

        Nothing is sent until the first pull. Closing the generator closes
        the HTTP response.
        """
        url = f"{self._url('streamGenerateContent')}?alt=sse"
        read_timeout = self.options.stream_read_timeout_s
        logger.debug("POST %s", url)
        try:
            async with self._get_client().stream(
                "POST",
                url,
                content=self._codec.encode(request),
                headers=self._headers(),
                timeout=httpx.Timeout(read_timeout),
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise_for_status(response, self._codec)

                frames = decode_sse(
                    response.aiter_bytes(), self._codec, wire.GenerateContentResponse
                )
                async with aclosing(frames):
                    while True:
                        try:
                            async with asyncio.timeout(read_timeout):
                                item = await anext(frames)
                        except StopAsyncIteration:
                            break
                        except TimeoutError as e:
                            raise RequestTimeoutError(
                                f"No data received for {read_timeout}s while streaming",
                                hint="Raise RequestOptions.stream_read_timeout_s.",
                            ) from e
                        yield item
        except CastorError:
            raise
        except Exception as e:
            raise wrap_transport_error(e, phase="streamGenerateContent") from e

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if not self._owns_client or self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
