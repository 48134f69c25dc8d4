"""Conversions between the public types and the wire models.

All functions are pure. Public-to-wire conversion rejects part types it does
not know with ``SerializationError``; binary data travels as standard base64
without line wrapping.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import TYPE_CHECKING, Any

from castor import wire
from castor.errors import SerializationError
from castor.types import (
    Candidate,
    CitationMetadata,
    Content,
    CountTokensResponse,
    FunctionCallPart,
    FunctionResponsePart,
    GenerateContentResponse,
    InlineDataPart,
    PromptFeedback,
    SafetyRating,
    TextPart,
    UsageMetadata,
)

if TYPE_CHECKING:
    from castor.functions import FunctionDeclaration, Schema, Tool
    from castor.types import GenerationConfig, Part, SafetySetting, ToolConfig


# =============================================================================
# Public -> wire
# =============================================================================


def part_to_wire(part: Part) -> wire.Part:
    match part:
        case TextPart(text=text):
            return wire.Part(text=text)
        case InlineDataPart(mime_type=mime_type, data=data):
            encoded = base64.b64encode(data).decode("ascii")
            return wire.Part(inline_data=wire.Blob(mime_type=mime_type, data=encoded))
        case FunctionCallPart(name=name, args=args):
            return wire.Part(
                function_call=wire.FunctionCall(name=name, args=dict(args))
            )
        case FunctionResponsePart(name=name, response=response):
            return wire.Part(
                function_response=wire.FunctionResponse(name=name, response=response)
            )
        case _:
            raise SerializationError(
                f"The given part type ({type(part).__name__}) is not supported "
                "in the serialization yet."
            )


def content_to_wire(content: Content) -> wire.Content:
    return wire.Content(
        role=content.role, parts=[part_to_wire(p) for p in content.parts]
    )


def generation_config_to_wire(config: GenerationConfig) -> wire.GenerationConfig:
    return wire.GenerationConfig(
        temperature=config.temperature,
        top_p=config.top_p,
        top_k=config.top_k,
        candidate_count=config.candidate_count,
        max_output_tokens=config.max_output_tokens,
        stop_sequences=(
            list(config.stop_sequences) if config.stop_sequences is not None else None
        ),
        response_mime_type=config.response_mime_type,
    )


def safety_setting_to_wire(setting: SafetySetting) -> wire.SafetySetting:
    return wire.SafetySetting(category=setting.category, threshold=setting.threshold)


def tool_config_to_wire(config: ToolConfig) -> wire.ToolConfig:
    fcc = config.function_calling_config
    names = fcc.allowed_function_names
    return wire.ToolConfig(
        function_calling_config=wire.FunctionCallingConfig(
            mode=fcc.mode,
            allowed_function_names=list(names) if names is not None else None,
        )
    )


def schema_to_wire(schema: Schema) -> wire.Schema:
    return wire.Schema(
        type=schema.type.value,
        description=schema.description,
        format=schema.format,
        nullable=schema.nullable or None,
        enum=list(schema.enum) if schema.enum is not None else None,
        properties=(
            {p.name: schema_to_wire(p) for p in schema.properties}
            if schema.properties is not None
            else None
        ),
        required=list(schema.required) if schema.required is not None else None,
        items=schema_to_wire(schema.items) if schema.items is not None else None,
    )


def function_declaration_to_wire(
    declaration: FunctionDeclaration,
) -> wire.FunctionDeclaration:
    # Parameters are wrapped in one OBJECT schema; non-nullable ones are required.
    params = declaration.parameters
    return wire.FunctionDeclaration(
        name=declaration.name,
        description=declaration.description,
        parameters=wire.Schema(
            type="OBJECT",
            properties={p.name: schema_to_wire(p) for p in params},
            required=[p.name for p in params if not p.nullable],
        ),
    )


def tool_to_wire(tool: Tool) -> wire.Tool:
    return wire.Tool(
        function_declarations=[
            function_declaration_to_wire(d) for d in tool.function_declarations
        ]
    )


# =============================================================================
# Wire -> public
# =============================================================================


def _arg_to_str(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def part_to_public(part: wire.Part) -> Part:
    if part.text is not None:
        return TextPart(part.text)
    if part.inline_data is not None:
        try:
            data = base64.b64decode(part.inline_data.data, validate=True)
        except binascii.Error as e:
            raise SerializationError(
                f"Invalid base64 payload for {part.inline_data.mime_type} part"
            ) from e
        return InlineDataPart(part.inline_data.mime_type, data)
    if part.function_call is not None:
        args = part.function_call.args or {}
        return FunctionCallPart(
            part.function_call.name, {k: _arg_to_str(v) for k, v in args.items()}
        )
    if part.function_response is not None:
        return FunctionResponsePart(
            part.function_response.name, dict(part.function_response.response)
        )
    raise SerializationError(
        "Unsupported part type provided. This model may not be supported by this SDK."
    )


def content_to_public(content: wire.Content) -> Content:
    return Content(
        role=content.role, parts=tuple(part_to_public(p) for p in content.parts)
    )


def _safety_rating_to_public(rating: wire.SafetyRating) -> SafetyRating:
    return SafetyRating(
        category=rating.category,
        probability=rating.probability,
        blocked=rating.blocked,
        probability_score=rating.probability_score,
        severity=rating.severity,
        severity_score=rating.severity_score,
    )


def _candidate_to_public(candidate: wire.Candidate) -> Candidate:
    citations = (
        candidate.citation_metadata.citation_sources
        if candidate.citation_metadata is not None
        else []
    )
    return Candidate(
        content=(
            content_to_public(candidate.content)
            if candidate.content is not None
            else Content(role="model")
        ),
        finish_reason=candidate.finish_reason,
        safety_ratings=tuple(
            _safety_rating_to_public(r) for r in candidate.safety_ratings or ()
        ),
        citation_metadata=tuple(
            CitationMetadata(
                start_index=c.start_index,
                end_index=c.end_index,
                uri=c.uri,
                license=c.license,
            )
            for c in citations
        ),
    )


def response_to_public(
    response: wire.GenerateContentResponse,
) -> GenerateContentResponse:
    feedback = response.prompt_feedback
    usage = response.usage_metadata
    return GenerateContentResponse(
        candidates=tuple(_candidate_to_public(c) for c in response.candidates or ()),
        prompt_feedback=(
            PromptFeedback(
                block_reason=feedback.block_reason,
                safety_ratings=tuple(
                    _safety_rating_to_public(r) for r in feedback.safety_ratings or ()
                ),
            )
            if feedback is not None
            else None
        ),
        usage_metadata=(
            UsageMetadata(
                prompt_token_count=usage.prompt_token_count,
                candidates_token_count=usage.candidates_token_count,
                total_token_count=usage.total_token_count,
            )
            if usage is not None
            else None
        ),
    )


def count_tokens_to_public(response: wire.CountTokensResponse) -> CountTokensResponse:
    return CountTokensResponse(total_tokens=response.total_tokens)
