"""JSON codec for wire models.

One explicitly constructed codec is handed to each transport instead of a
process-wide parser instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar

import pydantic

from castor.errors import SerializationError
from castor.wire import WireModel

M = TypeVar("M", bound=WireModel)


@dataclass(frozen=True)
class WireCodec:
    """Encode requests and decode responses.

    Decoding ignores fields the wire models do not declare, so newer servers
    stay compatible with this client.
    """

    #: Omit unset optional fields from request bodies.
    exclude_none: bool = True

    def encode(self, payload: WireModel) -> bytes:
        return payload.model_dump_json(
            by_alias=True, exclude_none=self.exclude_none
        ).encode("utf-8")

    def decode(self, data: bytes | str, model_type: type[M]) -> M:
        try:
            return model_type.model_validate_json(data)
        except pydantic.ValidationError as e:
            raise SerializationError(
                f"Could not decode {model_type.__name__} from the server response: "
                f"{e.error_count()} validation error(s)"
            ) from e
