"""Server-defined enums with forward-compatible decoding.

The service adds enum values over time. Decoding a value this client does not
know yields the ``UNKNOWN`` member (and a warning) instead of an error.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any

logger = logging.getLogger(__name__)


class WireEnum(str, Enum):
    """``str``-valued enum whose values are the wire names."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        unknown = cls.__members__.get("UNKNOWN")
        if unknown is None:
            return None
        logger.warning(
            "Unknown %s value found: %r. This usually means the service was "
            "updated and this client predates the change; check for a newer "
            "castor release.",
            cls.__name__,
            value,
        )
        return unknown

    @classmethod
    def from_wire(cls, value: Any) -> Any:
        """Decode a wire value; ``None`` stays ``None``."""
        if value is None or isinstance(value, cls):
            return value
        return cls(value)


class FinishReason(WireEnum):
    """Why a candidate stopped generating."""

    UNKNOWN = "UNKNOWN"
    UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"
    OTHER = "OTHER"


class BlockReason(WireEnum):
    """Why a prompt was blocked."""

    UNKNOWN = "UNKNOWN"
    UNSPECIFIED = "BLOCKED_REASON_UNSPECIFIED"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


class HarmCategory(WireEnum):
    UNKNOWN = "UNKNOWN"
    UNSPECIFIED = "HARM_CATEGORY_UNSPECIFIED"
    HARASSMENT = "HARM_CATEGORY_HARASSMENT"
    HATE_SPEECH = "HARM_CATEGORY_HATE_SPEECH"
    SEXUALLY_EXPLICIT = "HARM_CATEGORY_SEXUALLY_EXPLICIT"
    DANGEROUS_CONTENT = "HARM_CATEGORY_DANGEROUS_CONTENT"


class HarmProbability(WireEnum):
    UNKNOWN = "UNKNOWN"
    UNSPECIFIED = "HARM_PROBABILITY_UNSPECIFIED"
    NEGLIGIBLE = "NEGLIGIBLE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class HarmSeverity(WireEnum):
    UNKNOWN = "UNKNOWN"
    UNSPECIFIED = "HARM_SEVERITY_UNSPECIFIED"
    NEGLIGIBLE = "HARM_SEVERITY_NEGLIGIBLE"
    LOW = "HARM_SEVERITY_LOW"
    MEDIUM = "HARM_SEVERITY_MEDIUM"
    HIGH = "HARM_SEVERITY_HIGH"


class HarmBlockThreshold(str, Enum):
    """Request-only: the probability at which content is blocked."""

    UNSPECIFIED = "HARM_BLOCK_THRESHOLD_UNSPECIFIED"
    LOW_AND_ABOVE = "BLOCK_LOW_AND_ABOVE"
    MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"
    ONLY_HIGH = "BLOCK_ONLY_HIGH"
    NONE = "BLOCK_NONE"


class FunctionCallingMode(str, Enum):
    """Request-only: how the model may use declared functions."""

    UNSPECIFIED = "MODE_UNSPECIFIED"
    AUTO = "AUTO"
    ANY = "ANY"
    NONE = "NONE"


# Server-defined enums that decode leniently.
RESPONSE_ENUMS: tuple[type[WireEnum], ...] = (
    FinishReason,
    BlockReason,
    HarmCategory,
    HarmProbability,
    HarmSeverity,
)
