"""Multi-turn chat sessions with automatic function calling.

A ``Chat`` owns an ordered history of turns. Each send runs under a
single-holder lock: a second send while one is in flight fails immediately
with ``InvalidStateError`` and never reaches the network. History changes
only when a whole turn (including any function round trips) succeeds.
"""

from __future__ import annotations

from contextlib import aclosing
import logging
import threading
from typing import TYPE_CHECKING, Any, Self

from castor.errors import ConfigurationError, InvalidStateError
from castor.types import (
    Content,
    FunctionCallPart,
    FunctionResponsePart,
    InlineDataPart,
    TextPart,
    as_content,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence

    from castor.model import GenerativeModel
    from castor.types import GenerateContentResponse, Part

logger = logging.getLogger(__name__)


class _BusyGuard:
    """Releases the chat lock exactly once."""

    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock
        self._held = True

    def release(self) -> None:
        if self._held:
            self._held = False
            self._lock.release()


class Chat:
    """A back-and-forth conversation with one model.

    Example:
        chat = model.start_chat()
        response = await chat.send_message("Hello!")
        async with chat.send_message_stream("Tell me more") as stream:
            async for chunk in stream:
                print(chunk.text, end="")
    """

    def __init__(
        self,
        model: GenerativeModel,
        history: Sequence[Content] | None = None,
        *,
        max_function_calls: int = 10,
    ) -> None:
        if max_function_calls < 0:
            raise ConfigurationError(
                f"max_function_calls must be >= 0, got {max_function_calls}",
                hint="Use 0 to fail on any function call the model requests.",
            )
        self.model = model
        self.max_function_calls = max_function_calls
        self._history: list[Content] = list(history or ())
        self._lock = threading.Lock()

    @property
    def history(self) -> list[Content]:
        """A snapshot of the conversation so far."""
        return list(self._history)

    def _acquire(self) -> _BusyGuard:
        if not self._lock.acquire(blocking=False):
            raise InvalidStateError(
                "This chat instance currently has an ongoing request, please wait "
                "for it to complete before sending more messages"
            )
        return _BusyGuard(self._lock)

    def _check_call_budget(self, calls: int) -> None:
        if calls >= self.max_function_calls:
            raise InvalidStateError(
                f"Exceeded {self.max_function_calls} automatic function call(s) "
                "in one turn",
                hint="Raise max_function_calls in start_chat().",
            )

    async def _call_function(self, call: FunctionCallPart) -> Content:
        logger.debug("Automatic function call: %s", call.name)
        output = await self.model.execute_function(call)
        return Content(
            role="function", parts=(FunctionResponsePart(call.name, output),)
        )

    async def send_message(self, prompt: Content | str) -> GenerateContentResponse:
        """Send one user turn and return the model's final answer.

        When the model asks for a registered function, the function runs and
        its result is sent back until the model answers with something else.

        Raises:
            InvalidStateError: The prompt is not a user turn, another send is
                in flight, or the function-call limit was exceeded.
        """
        content = _user_turn(prompt)
        guard = self._acquire()
        try:
            pending: list[Content] = []
            calls = 0
            while True:
                response = await self.model.generate_content(
                    *self._history, *pending, content
                )
                pending.append(content)
                if not response.candidates:
                    break

                reply = response.candidates[0].content
                pending.append(reply)
                first = reply.parts[0] if reply.parts else None
                if not isinstance(first, FunctionCallPart):
                    break

                self._check_call_budget(calls)
                calls += 1
                content = await self._call_function(first)

            self._history.extend(pending)
            return response
        finally:
            guard.release()

    def send_message_stream(self, prompt: Content | str) -> ChatStream:
        """Send one user turn and stream the model's answer.

        The chat is busy from this call until the returned stream finishes or
        is closed; use it as an async context manager to release it reliably.
        """
        content = _user_turn(prompt)
        guard = self._acquire()
        return ChatStream(self._stream_turn(content, guard), guard)

    async def _stream_turn(
        self, content: Content, guard: _BusyGuard
    ) -> AsyncGenerator[GenerateContentResponse, None]:
        try:
            pending: list[Content] = [content]
            calls = 0
            while True:
                requested: list[FunctionCallPart] = []
                responses = self.model.generate_content_stream(*self._history, *pending)
                async with aclosing(responses):
                    async for response in responses:
                        forward = False
                        for part in _top_parts(response):
                            match part:
                                case TextPart():
                                    _add_text(pending, part)
                                    forward = True
                                case InlineDataPart():
                                    _add_model_part(pending, part)
                                    forward = True
                                case FunctionCallPart():
                                    requested.append(part)
                        if forward:
                            yield response

                if not requested:
                    break

                call = requested[0]
                self._check_call_budget(calls)
                calls += 1
                _add_model_part(pending, call)
                pending.append(await self._call_function(call))

            self._history.extend(pending)
        finally:
            guard.release()


class ChatStream:
    """Async iterator over one streamed chat turn.

    Closing the stream (directly or by leaving ``async with``) ends the HTTP
    response and frees the chat, even when iteration never started.
    """

    def __init__(
        self,
        responses: AsyncGenerator[GenerateContentResponse, None],
        guard: _BusyGuard,
    ) -> None:
        self._responses = responses
        self._guard = guard

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> GenerateContentResponse:
        return await anext(self._responses)

    async def aclose(self) -> None:
        """Close the stream and free the chat.

        Raises:
            InvalidStateError: Another task is waiting on the next response.
                The chat stays busy until that task finishes or is cancelled.
        """
        if self._responses.ag_running:
            raise InvalidStateError(
                "This stream is being iterated by another task",
                hint="Cancel the task that iterates the stream instead.",
            )
        await self._responses.aclose()
        # A generator that never started skips its finally block.
        self._guard.release()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


def _user_turn(prompt: Content | str) -> Content:
    content = as_content(prompt)
    if content.role not in ("user", None):
        raise InvalidStateError("Chat prompts should come from the 'user' role.")
    return content


def _top_parts(response: GenerateContentResponse) -> tuple[Part, ...]:
    if not response.candidates:
        return ()
    return response.candidates[0].content.parts


def _add_model_part(pending: list[Content], part: Part) -> None:
    last = pending[-1]
    if last.role == "model":
        pending[-1] = Content(role="model", parts=(*last.parts, part))
    else:
        pending.append(Content(role="model", parts=(part,)))


def _add_text(pending: list[Content], part: TextPart) -> None:
    # Consecutive streamed text joins into one part of the model turn.
    last = pending[-1]
    if last.role == "model" and last.parts and isinstance(last.parts[-1], TextPart):
        merged = TextPart(last.parts[-1].text + part.text)
        pending[-1] = Content(role="model", parts=(*last.parts[:-1], merged))
    else:
        _add_model_part(pending, part)
