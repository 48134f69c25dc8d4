"""Transport-side error helpers.

Non-2xx bodies are decoded into the service's error envelope and the message
is classified into one ``ServerError`` subclass. Everything else that escapes
httpx is wrapped so callers only ever see ``CastorError``.
"""

from __future__ import annotations

import asyncio

import httpx

from castor.errors import (
    CastorError,
    InvalidAPIKeyError,
    QuotaExceededError,
    RequestTimeoutError,
    SerializationError,
    ServerError,
    UnknownError,
    UnsupportedUserLocationError,
    _walk_exception_chain,
)
from castor.transport.codec import WireCodec
from castor.wire import GRpcErrorResponse

LOCATION_NOT_SUPPORTED = "User location is not supported for the API use."


def extract_error_message(body: str, codec: WireCodec) -> str:
    """Return the ``error.message`` of an error body, or the raw body."""
    try:
        return codec.decode(body, GRpcErrorResponse).error.message
    except SerializationError:
        return f"Unexpected Response:\n{body}"


def classify_error_message(
    message: str, *, status_code: int | None = None
) -> ServerError:
    """Map a server error message to the most specific ``ServerError``.

    The service exposes no stable error codes for these cases, so matching on
    message text is kept to this one function.
    """
    if "API key not valid" in message:
        return InvalidAPIKeyError(
            message,
            hint="Check the key (try setting GEMINI_API_KEY or pass api_key=...).",
            status_code=status_code,
        )
    if message == LOCATION_NOT_SUPPORTED:
        return UnsupportedUserLocationError(message, status_code=status_code)
    if "quota" in message:
        return QuotaExceededError(
            message,
            hint="Wait for the quota window to reset or raise the project quota.",
            status_code=status_code,
        )
    return ServerError(message, status_code=status_code)


def raise_for_status(response: httpx.Response, codec: WireCodec) -> None:
    """Raise the classified error for a non-2xx response.

    The body must already be read.
    """
    if response.is_success:
        return
    message = extract_error_message(response.text, codec)
    raise classify_error_message(message, status_code=response.status_code)


def wrap_transport_error(exc: BaseException, *, phase: str) -> CastorError:
    """Map httpx and unexpected exceptions into ``CastorError``."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc
    if isinstance(exc, CastorError):
        return exc

    for e in _walk_exception_chain(exc):
        if isinstance(e, (httpx.TimeoutException, TimeoutError)):
            err: CastorError = RequestTimeoutError(
                f"{phase} timed out",
                hint="Raise RequestOptions.timeout_s or stream_read_timeout_s.",
            )
            err.__cause__ = exc
            return err

    for e in _walk_exception_chain(exc):
        if isinstance(e, httpx.HTTPError):
            cause = str(exc)
            err = UnknownError(
                f"{phase} failed: {cause}" if cause else f"{phase} failed"
            )
            err.__cause__ = exc
            return err

    return CastorError.from_exception(exc)
