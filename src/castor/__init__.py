"""Castor: an async client for the Gemini generative language API.

Public API:
    - GenerativeModel: generate, stream and count tokens for one model
    - Chat: multi-turn sessions with automatic function calling
    - Content and parts: the conversation data model
    - Config / RequestOptions: configuration dataclasses
"""

from __future__ import annotations

import logging

from castor._http import SDK_VERSION
from castor.chat import Chat, ChatStream
from castor.config import Config, RequestOptions
from castor.enums import (
    BlockReason,
    FinishReason,
    FunctionCallingMode,
    HarmBlockThreshold,
    HarmCategory,
    HarmProbability,
    HarmSeverity,
)
from castor.errors import (
    CastorError,
    ConfigurationError,
    InvalidAPIKeyError,
    InvalidStateError,
    PromptBlockedError,
    QuotaExceededError,
    RequestTimeoutError,
    ResponseStoppedError,
    SerializationError,
    ServerError,
    UnknownError,
    UnsupportedUserLocationError,
)
from castor.functions import (
    FunctionDeclaration,
    FunctionType,
    Schema,
    Tool,
    define_function,
)
from castor.model import GenerativeModel
from castor.types import (
    Candidate,
    Content,
    CountTokensResponse,
    FunctionCallingConfig,
    FunctionCallPart,
    FunctionResponsePart,
    GenerateContentResponse,
    GenerationConfig,
    InlineDataPart,
    Part,
    SafetySetting,
    TextPart,
    ToolConfig,
)

__version__ = SDK_VERSION

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("castor").addHandler(logging.NullHandler())

__all__ = [
    "BlockReason",
    "Candidate",
    "CastorError",
    "Chat",
    "ChatStream",
    "Config",
    "ConfigurationError",
    "Content",
    "CountTokensResponse",
    "FinishReason",
    "FunctionCallPart",
    "FunctionCallingConfig",
    "FunctionCallingMode",
    "FunctionDeclaration",
    "FunctionResponsePart",
    "FunctionType",
    "GenerateContentResponse",
    "GenerationConfig",
    "GenerativeModel",
    "HarmBlockThreshold",
    "HarmCategory",
    "HarmProbability",
    "HarmSeverity",
    "InlineDataPart",
    "InvalidAPIKeyError",
    "InvalidStateError",
    "Part",
    "PromptBlockedError",
    "QuotaExceededError",
    "RequestOptions",
    "RequestTimeoutError",
    "ResponseStoppedError",
    "SafetySetting",
    "Schema",
    "SerializationError",
    "ServerError",
    "TextPart",
    "Tool",
    "ToolConfig",
    "UnknownError",
    "UnsupportedUserLocationError",
    "define_function",
]
