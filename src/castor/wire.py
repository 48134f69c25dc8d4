"""Wire models mirroring the service's JSON schema.

These are transport-layer records: field names are snake_case in Python and
camelCase on the wire. Unknown server fields are ignored so newer servers do
not break older clients. Callers normally work with ``castor.types`` instead.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel

from castor.enums import (
    BlockReason,
    FinishReason,
    FunctionCallingMode,
    HarmBlockThreshold,
    HarmCategory,
    HarmProbability,
    HarmSeverity,
)

LenientFinishReason = Annotated[
    FinishReason | None, BeforeValidator(FinishReason.from_wire)
]
LenientBlockReason = Annotated[
    BlockReason | None, BeforeValidator(BlockReason.from_wire)
]
LenientHarmCategory = Annotated[
    HarmCategory | None, BeforeValidator(HarmCategory.from_wire)
]
LenientHarmProbability = Annotated[
    HarmProbability | None, BeforeValidator(HarmProbability.from_wire)
]
LenientHarmSeverity = Annotated[
    HarmSeverity | None, BeforeValidator(HarmSeverity.from_wire)
]


class WireModel(BaseModel):
    """Shared configuration for every wire record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# =============================================================================
# Shared
# =============================================================================


class Blob(WireModel):
    mime_type: str
    #: Standard base64, no line wrapping.
    data: str


class FunctionCall(WireModel):
    name: str
    args: dict[str, Any] | None = None


class FunctionResponse(WireModel):
    name: str
    response: dict[str, Any]


class Part(WireModel):
    """One part on the wire: exactly one of the payload fields is set."""

    text: str | None = None
    inline_data: Blob | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None

    @model_validator(mode="after")
    def _require_known_payload(self) -> Part:
        if (
            self.text is None
            and self.inline_data is None
            and self.function_call is None
            and self.function_response is None
        ):
            raise ValueError("Unknown Part type")
        return self


class Content(WireModel):
    role: str | None = None
    parts: list[Part] = Field(default_factory=list)


# =============================================================================
# Requests
# =============================================================================


class GenerationConfig(WireModel):
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    candidate_count: int | None = None
    max_output_tokens: int | None = None
    stop_sequences: list[str] | None = None
    response_mime_type: str | None = None


class SafetySetting(WireModel):
    category: HarmCategory
    threshold: HarmBlockThreshold


class Schema(WireModel):
    type: str
    description: str | None = None
    format: str | None = None
    nullable: bool | None = None
    enum: list[str] | None = None
    properties: dict[str, Schema] | None = None
    required: list[str] | None = None
    items: Schema | None = None


class FunctionDeclaration(WireModel):
    name: str
    description: str
    parameters: Schema | None = None


class Tool(WireModel):
    function_declarations: list[FunctionDeclaration]


class FunctionCallingConfig(WireModel):
    mode: FunctionCallingMode
    allowed_function_names: list[str] | None = None


class ToolConfig(WireModel):
    function_calling_config: FunctionCallingConfig


class GenerateContentRequest(WireModel):
    model: str
    contents: list[Content]
    safety_settings: list[SafetySetting] | None = None
    generation_config: GenerationConfig | None = None
    tools: list[Tool] | None = None
    tool_config: ToolConfig | None = None
    system_instruction: Content | None = None


class CountTokensRequest(WireModel):
    generate_content_request: GenerateContentRequest

    @classmethod
    def for_request(cls, request: GenerateContentRequest) -> CountTokensRequest:
        return cls(generate_content_request=request)


# =============================================================================
# Responses
# =============================================================================


class SafetyRating(WireModel):
    category: LenientHarmCategory = None
    probability: LenientHarmProbability = None
    blocked: bool | None = None
    probability_score: float | None = None
    severity: LenientHarmSeverity = None
    severity_score: float | None = None


class CitationSource(WireModel):
    start_index: int | None = None
    end_index: int | None = None
    uri: str | None = None
    license: str | None = None


class CitationMetadata(WireModel):
    # Older API versions named this field "citations".
    citation_sources: list[CitationSource] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "citationSources", "citations", "citation_sources"
        ),
    )


class Candidate(WireModel):
    content: Content | None = None
    finish_reason: LenientFinishReason = None
    safety_ratings: list[SafetyRating] | None = None
    citation_metadata: CitationMetadata | None = None
    index: int | None = None


class PromptFeedback(WireModel):
    block_reason: LenientBlockReason = None
    safety_ratings: list[SafetyRating] | None = None


class UsageMetadata(WireModel):
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


class GenerateContentResponse(WireModel):
    candidates: list[Candidate] | None = None
    prompt_feedback: PromptFeedback | None = None
    usage_metadata: UsageMetadata | None = None


class CountTokensResponse(WireModel):
    total_tokens: int
    total_billable_characters: int | None = None


class GRpcError(WireModel):
    code: int | None = None
    message: str
    status: str | None = None


class GRpcErrorResponse(WireModel):
    error: GRpcError


Schema.model_rebuild()
