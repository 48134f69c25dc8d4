"""GenerativeModel: the main entry point for talking to one model."""

from __future__ import annotations

from contextlib import aclosing
import dataclasses
from typing import TYPE_CHECKING, Any, Self

from castor import wire
from castor.config import Config, RequestOptions
from castor.conversions import (
    content_to_wire,
    count_tokens_to_public,
    generation_config_to_wire,
    response_to_public,
    safety_setting_to_wire,
    tool_config_to_wire,
    tool_to_wire,
)
from castor.errors import CastorError
from castor.functions import execute_function
from castor.transport.http import HttpTransport
from castor.types import Content, as_content
from castor.validation import validate_response

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from castor.chat import Chat
    from castor.functions import Tool
    from castor.transport.base import Transport
    from castor.types import (
        CountTokensResponse,
        FunctionCallPart,
        GenerateContentResponse,
        GenerationConfig,
        SafetySetting,
        ToolConfig,
    )


class GenerativeModel:
    """A facade over one model and its request defaults.

    Every call sends the configured generation settings, safety settings,
    tools and system instruction along with the prompts. Responses are
    converted to ``castor.types`` and validated before they are returned.

    Example:
        async with GenerativeModel("gemini-1.5-flash") as model:
            response = await model.generate_content("Write a haiku about rain")
            print(response.text)
    """

    def __init__(
        self,
        model_name: str,
        api_key: str | None = None,
        *,
        generation_config: GenerationConfig | None = None,
        safety_settings: Sequence[SafetySetting] | None = None,
        tools: Sequence[Tool] | None = None,
        tool_config: ToolConfig | None = None,
        system_instruction: Content | str | None = None,
        request_options: RequestOptions | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.config = Config(
            model=model_name,
            api_key=api_key,
            request_options=request_options or RequestOptions(),
        )
        self.generation_config = generation_config
        self.safety_settings = tuple(safety_settings) if safety_settings else ()
        self.tools = tuple(tools) if tools else None
        self.tool_config = tool_config
        self.system_instruction = _as_system_instruction(system_instruction)
        self._transport: Transport = transport or HttpTransport(
            self.config.api_key or "",
            self.config.model,
            self.config.request_options,
        )

    @property
    def model_name(self) -> str:
        return self.config.model

    def _build_request(
        self, contents: Sequence[Content]
    ) -> wire.GenerateContentRequest:
        return wire.GenerateContentRequest(
            model=self.model_name,
            contents=[content_to_wire(c) for c in contents],
            safety_settings=(
                [safety_setting_to_wire(s) for s in self.safety_settings] or None
            ),
            generation_config=(
                generation_config_to_wire(self.generation_config)
                if self.generation_config is not None
                else None
            ),
            tools=[tool_to_wire(t) for t in self.tools] if self.tools else None,
            tool_config=(
                tool_config_to_wire(self.tool_config)
                if self.tool_config is not None
                else None
            ),
            system_instruction=(
                content_to_wire(self.system_instruction)
                if self.system_instruction is not None
                else None
            ),
        )

    async def generate_content(
        self, *prompts: Content | str
    ) -> GenerateContentResponse:
        """Generate a response from the given turns.

        Raises:
            PromptBlockedError: The prompt was blocked.
            ResponseStoppedError: Generation stopped before a natural end.
            CastorError: Any other transport, server or decoding failure.
        """
        contents = [as_content(p) for p in prompts]
        try:
            response = await self._transport.generate_content(
                self._build_request(contents)
            )
            return validate_response(response_to_public(response))
        except CastorError:
            raise
        except Exception as e:
            raise CastorError.from_exception(e) from e

    def generate_content_stream(
        self, *prompts: Content | str
    ) -> AsyncIterator[GenerateContentResponse]:
        """Stream partial responses for the given turns.

        No request is sent until the first pull. Each yielded response is
        validated, so a safety stop midway raises ``ResponseStoppedError``
        from the iterator.
        """
        contents = [as_content(p) for p in prompts]
        return self._stream(contents)

    async def _stream(
        self, contents: Sequence[Content]
    ) -> AsyncIterator[GenerateContentResponse]:
        try:
            responses = self._transport.generate_content_stream(
                self._build_request(contents)
            )
            async with aclosing(responses):
                async for response in responses:
                    yield validate_response(response_to_public(response))
        except CastorError:
            raise
        except Exception as e:
            raise CastorError.from_exception(e) from e

    async def count_tokens(self, *prompts: Content | str) -> CountTokensResponse:
        """Count the tokens the given turns would consume, with current settings."""
        contents = [as_content(p) for p in prompts]
        try:
            request = wire.CountTokensRequest.for_request(self._build_request(contents))
            response = await self._transport.count_tokens(request)
            return count_tokens_to_public(response)
        except CastorError:
            raise
        except Exception as e:
            raise CastorError.from_exception(e) from e

    def start_chat(
        self,
        history: Sequence[Content] | None = None,
        *,
        max_function_calls: int = 10,
    ) -> Chat:
        """Start a multi-turn conversation seeded with *history*."""
        from castor.chat import Chat

        return Chat(self, history, max_function_calls=max_function_calls)

    async def execute_function(self, call: FunctionCallPart) -> dict[str, Any]:
        """Run the registered function for *call* and return its JSON result."""
        try:
            return await execute_function(self.tools, call)
        except CastorError:
            raise
        except Exception as e:
            raise CastorError.from_exception(e) from e

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"GenerativeModel(model_name={self.model_name!r})"


def _as_system_instruction(instruction: Content | str | None) -> Content | None:
    if instruction is None:
        return None
    if isinstance(instruction, str):
        return Content.text(instruction, role="system")
    return dataclasses.replace(instruction, role="system")
