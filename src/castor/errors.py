"""Exception hierarchy for castor.

Every public call surfaces failures as a ``CastorError`` subclass so callers
have exactly one family to catch.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import pydantic

from castor.enums import FinishReason

if TYPE_CHECKING:
    from collections.abc import Iterator

    from castor.types import GenerateContentResponse


class CastorError(Exception):
    """Base exception for all castor errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    @classmethod
    def from_exception(cls, exc: BaseException) -> CastorError:
        """Convert an arbitrary exception into a ``CastorError``.

        Already-wrapped errors pass through untouched. Decoding failures map to
        ``SerializationError``; everything else becomes ``UnknownError``. The
        original exception is kept as ``__cause__``.
        """
        if isinstance(exc, asyncio.CancelledError):
            raise exc
        if isinstance(exc, CastorError):
            return exc
        if any(
            isinstance(e, (pydantic.ValidationError, json.JSONDecodeError))
            for e in _walk_exception_chain(exc)
        ):
            err: CastorError = SerializationError(
                "Something went wrong while trying to deserialize a response "
                "from the server."
            )
        else:
            err = UnknownError("Something unexpected happened.")
        err.__cause__ = exc
        return err


class ConfigurationError(CastorError):
    """Configuration validation or resolution failed."""


class SerializationError(CastorError):
    """A payload could not be encoded or decoded."""


class ServerError(CastorError):
    """The server responded with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code


class InvalidAPIKeyError(ServerError):
    """The server rejected the API key."""


class UnsupportedUserLocationError(ServerError):
    """The service is not available in the caller's region."""


class QuotaExceededError(ServerError):
    """The project has exhausted its request quota."""


class PromptBlockedError(CastorError):
    """The prompt was blocked.

    ``response.prompt_feedback.block_reason`` says why.
    """

    def __init__(self, response: GenerateContentResponse) -> None:
        feedback = response.prompt_feedback
        reason = feedback.block_reason if feedback is not None else None
        name = reason.name if reason is not None else None
        super().__init__(f"Prompt was blocked: {name}")
        self.response = response


class ResponseStoppedError(CastorError):
    """Generation stopped for a reason other than a natural stop."""

    def __init__(self, response: GenerateContentResponse) -> None:
        reason = next(
            (
                c.finish_reason
                for c in response.candidates
                if c.finish_reason not in (None, FinishReason.STOP)
            ),
            None,
        )
        name = reason.name if reason is not None else None
        super().__init__(f"Content generation stopped. Reason: {name}")
        self.response = response


class InvalidStateError(CastorError):
    """The SDK was used in a way it does not support (usually caller error)."""


class RequestTimeoutError(CastorError):
    """A request or stream read exceeded its configured timeout."""


class UnknownError(CastorError):
    """Catch-all for failures that fit no other category."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, skipping cycles."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
