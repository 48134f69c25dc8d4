"""Semantic validation of decoded responses."""

from __future__ import annotations

from typing import TYPE_CHECKING

from castor.enums import FinishReason
from castor.errors import PromptBlockedError, ResponseStoppedError, SerializationError

if TYPE_CHECKING:
    from castor.types import GenerateContentResponse


def validate_response(response: GenerateContentResponse) -> GenerateContentResponse:
    """Return *response* unchanged, or raise when it is not a usable answer.

    Rules apply in order: a structurally empty response is a decoding
    mismatch; a block reason wins over any finish reason; any finish reason
    other than ``STOP`` means generation was cut short.
    """
    if not response.candidates and response.prompt_feedback is None:
        raise SerializationError("Error deserializing response, found no valid fields")

    feedback = response.prompt_feedback
    if feedback is not None and feedback.block_reason is not None:
        raise PromptBlockedError(response)

    for candidate in response.candidates:
        reason = candidate.finish_reason
        if reason is not None and reason is not FinishReason.STOP:
            raise ResponseStoppedError(response)

    return response
