"""Public content model and response types.

``Part`` is a closed union of frozen dataclasses; consumers dispatch on it
with ``match``. All values here are immutable and created per call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from castor.enums import (
    BlockReason,
    FinishReason,
    FunctionCallingMode,
    HarmBlockThreshold,
    HarmCategory,
    HarmProbability,
    HarmSeverity,
)
from castor.errors import InvalidStateError

# =============================================================================
# Content
# =============================================================================


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineDataPart:
    """Binary payload (image, audio, document) with its MIME type."""

    mime_type: str
    data: bytes


@dataclass(frozen=True)
class FunctionCallPart:
    """A function invocation requested by the model.

    Argument values are strings (JSON text for non-string values) or ``None``.
    """

    name: str
    args: dict[str, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class FunctionResponsePart:
    """The result of a function call, sent back to the model."""

    name: str
    response: dict[str, Any]


Part = TextPart | InlineDataPart | FunctionCallPart | FunctionResponsePart


@dataclass(frozen=True)
class Content:
    """One turn of a conversation.

    ``role`` is one of ``"user"``, ``"model"``, ``"function"`` or ``"system"``;
    ``None`` is treated as ``"user"``.
    """

    role: str | None = "user"
    parts: tuple[Part, ...] = ()

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple.
        if not isinstance(self.parts, tuple):
            object.__setattr__(self, "parts", tuple(self.parts))

    @classmethod
    def text(cls, text: str, *, role: str | None = "user") -> Content:
        """Return a single-part text turn."""
        return cls(role=role, parts=(TextPart(text),))


def as_content(prompt: Content | str) -> Content:
    """Coerce a prompt into a ``Content`` (strings become user text turns)."""
    if isinstance(prompt, Content):
        return prompt
    if isinstance(prompt, str):
        return Content.text(prompt)
    raise InvalidStateError(
        f"Expected Content or str, got {type(prompt).__name__}",
        hint="Wrap non-text prompts in Content(parts=...).",
    )


# =============================================================================
# Request configuration
# =============================================================================


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling and output controls for generation."""

    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    candidate_count: int | None = None
    max_output_tokens: int | None = None
    stop_sequences: tuple[str, ...] | None = None
    response_mime_type: str | None = None


@dataclass(frozen=True)
class SafetySetting:
    category: HarmCategory
    threshold: HarmBlockThreshold


@dataclass(frozen=True)
class FunctionCallingConfig:
    mode: FunctionCallingMode = FunctionCallingMode.AUTO
    #: Only valid with ``FunctionCallingMode.ANY``.
    allowed_function_names: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ToolConfig:
    function_calling_config: FunctionCallingConfig


# =============================================================================
# Responses
# =============================================================================


@dataclass(frozen=True)
class SafetyRating:
    category: HarmCategory | None
    probability: HarmProbability | None
    blocked: bool | None = None
    probability_score: float | None = None
    severity: HarmSeverity | None = None
    severity_score: float | None = None


@dataclass(frozen=True)
class CitationMetadata:
    start_index: int | None = None
    end_index: int | None = None
    uri: str | None = None
    license: str | None = None


@dataclass(frozen=True)
class Candidate:
    content: Content
    finish_reason: FinishReason | None = None
    safety_ratings: tuple[SafetyRating, ...] = ()
    citation_metadata: tuple[CitationMetadata, ...] = ()


@dataclass(frozen=True)
class PromptFeedback:
    block_reason: BlockReason | None = None
    safety_ratings: tuple[SafetyRating, ...] = ()


@dataclass(frozen=True)
class UsageMetadata:
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


@dataclass(frozen=True)
class GenerateContentResponse:
    candidates: tuple[Candidate, ...] = ()
    prompt_feedback: PromptFeedback | None = None
    usage_metadata: UsageMetadata | None = None

    @property
    def text(self) -> str | None:
        """Text parts of the first candidate joined by a space, if any."""
        if not self.candidates:
            return None
        texts = [
            p.text for p in self.candidates[0].content.parts if isinstance(p, TextPart)
        ]
        if not texts:
            return None
        return " ".join(texts)

    @property
    def function_calls(self) -> list[FunctionCallPart]:
        """Every function call requested by the first candidate."""
        if not self.candidates:
            return []
        return [
            p
            for p in self.candidates[0].content.parts
            if isinstance(p, FunctionCallPart)
        ]


@dataclass(frozen=True)
class CountTokensResponse:
    total_tokens: int
