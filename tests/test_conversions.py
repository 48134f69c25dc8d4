"""Public <-> wire conversion characterization tests.

The JSON shapes asserted here are consumed by the service; drift is hard to
detect otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
import json

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from castor import wire
from castor.conversions import (
    content_to_public,
    content_to_wire,
    part_to_public,
    part_to_wire,
    response_to_public,
)
from castor.enums import BlockReason, FinishReason
from castor.errors import SerializationError
from castor.transport.codec import WireCodec
from castor.types import (
    Content,
    FunctionCallPart,
    FunctionResponsePart,
    InlineDataPart,
    TextPart,
)

pytestmark = pytest.mark.contract


def _json(model: wire.WireModel) -> dict:
    return json.loads(WireCodec().encode(model))


# =============================================================================
# Public -> wire
# =============================================================================


def test_text_content_encodes_to_expected_json() -> None:
    content = Content.text("Hello")

    assert _json(content_to_wire(content)) == {
        "role": "user",
        "parts": [{"text": "Hello"}],
    }


def test_inline_data_encodes_as_unwrapped_base64() -> None:
    data = bytes(range(256)) * 4
    encoded = _json(part_to_wire(InlineDataPart("image/png", data)))

    blob = encoded["inlineData"]
    assert blob["mimeType"] == "image/png"
    assert "\n" not in blob["data"]


def test_function_parts_encode_with_camel_case_keys() -> None:
    call = _json(part_to_wire(FunctionCallPart("getExchangeRate", {"currencyFrom": "USD"})))
    result = _json(part_to_wire(FunctionResponsePart("getExchangeRate", {"rate": 0.92})))

    assert call == {
        "functionCall": {"name": "getExchangeRate", "args": {"currencyFrom": "USD"}}
    }
    assert result == {
        "functionResponse": {"name": "getExchangeRate", "response": {"rate": 0.92}}
    }


def test_unsupported_public_part_raises_serialization_error() -> None:
    @dataclass(frozen=True)
    class VideoPart:
        uri: str

    with pytest.raises(SerializationError):
        part_to_wire(VideoPart("gs://clip"))  # type: ignore[arg-type]


# =============================================================================
# Wire -> public
# =============================================================================


def test_unknown_wire_part_fails_decoding() -> None:
    with pytest.raises(SerializationError, match="GenerateContentResponse"):
        WireCodec().decode(
            json.dumps(
                {"candidates": [{"content": {"parts": [{"executableCode": {}}]}}]}
            ),
            wire.GenerateContentResponse,
        )


def test_function_call_args_become_strings() -> None:
    part = wire.Part.model_validate(
        {
            "functionCall": {
                "name": "plan",
                "args": {"city": "Paris", "days": 3, "tags": ["a"], "note": None},
            }
        }
    )

    assert part_to_public(part) == FunctionCallPart(
        "plan", {"city": "Paris", "days": "3", "tags": '["a"]', "note": None}
    )


def test_invalid_base64_raises_serialization_error() -> None:
    part = wire.Part(inline_data=wire.Blob(mime_type="image/png", data="not base64!"))

    with pytest.raises(SerializationError):
        part_to_public(part)


def test_response_to_public_maps_candidates_and_feedback() -> None:
    response = response_to_public(
        wire.GenerateContentResponse.model_validate(
            {
                "candidates": [
                    {
                        "content": {
                            "role": "model",
                            "parts": [{"text": "Hello"}, {"text": "world"}],
                        },
                        "finishReason": "STOP",
                        "citationMetadata": {
                            "citations": [{"startIndex": 0, "endIndex": 5, "uri": "u"}]
                        },
                        "index": 0,
                    }
                ],
                "promptFeedback": {"safetyRatings": []},
                "usageMetadata": {"promptTokenCount": 3, "totalTokenCount": 5},
                "modelVersion": "ignored-field",
            }
        )
    )

    candidate = response.candidates[0]
    assert candidate.finish_reason is FinishReason.STOP
    assert candidate.citation_metadata[0].uri == "u"
    assert response.text == "Hello world"
    assert response.prompt_feedback is not None
    assert response.prompt_feedback.block_reason is None
    assert response.usage_metadata is not None
    assert response.usage_metadata.total_token_count == 5


def test_blocked_prompt_has_no_candidates() -> None:
    response = response_to_public(
        wire.GenerateContentResponse.model_validate(
            {"promptFeedback": {"blockReason": "SAFETY"}}
        )
    )

    assert response.candidates == ()
    assert response.text is None
    assert response.prompt_feedback is not None
    assert response.prompt_feedback.block_reason is BlockReason.SAFETY


def test_candidate_without_content_gets_empty_model_turn() -> None:
    response = response_to_public(
        wire.GenerateContentResponse.model_validate(
            {"candidates": [{"finishReason": "SAFETY"}]}
        )
    )
    assert response.candidates[0].content == Content(role="model")


# =============================================================================
# Round trip (property)
# =============================================================================

_args = st.dictionaries(
    st.text(min_size=1, max_size=8), st.text(max_size=12)
)
_parts = st.one_of(
    st.builds(TextPart, st.text(max_size=20)),
    st.builds(InlineDataPart, st.sampled_from(["image/png", "audio/wav"]), st.binary()),
    st.builds(FunctionCallPart, st.text(min_size=1, max_size=10), _args),
    st.builds(
        FunctionResponsePart,
        st.text(min_size=1, max_size=10),
        st.dictionaries(st.text(max_size=8), st.integers(-(10**6), 10**6)),
    ),
)


@given(
    role=st.sampled_from(["user", "model", "function"]),
    parts=st.lists(_parts, max_size=5),
)
@settings(max_examples=50, deadline=None, derandomize=True)
def test_content_survives_json_round_trip(role: str, parts: list) -> None:
    """Property: encode -> JSON -> decode returns an equal Content."""
    codec = WireCodec()
    content = Content(role=role, parts=parts)

    decoded = codec.decode(codec.encode(content_to_wire(content)), wire.Content)

    assert content_to_public(decoded) == content
