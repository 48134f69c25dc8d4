"""Configuration: frozen Config and RequestOptions."""

from __future__ import annotations

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from castor._http import DEFAULT_API_VERSION, DEFAULT_ENDPOINT
from castor.errors import ConfigurationError

load_dotenv()

# Checked in order when no api_key is passed.
_API_KEY_ENV_VARS: tuple[str, ...] = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


def full_model_name(name: str) -> str:
    """Prefix bare model names with ``models/``.

    Names that already contain a ``/`` (``tunedModels/x``, ``models/x``) are
    returned unchanged.
    """
    return name if "/" in name else f"models/{name}"


@dataclass(frozen=True)
class RequestOptions:
    """Transport settings attached to a model at construction time."""

    #: End-to-end bound (seconds) on a unary call; ``None`` means no limit.
    timeout_s: float | None = None
    #: Bound (seconds) on each wait for the next streamed frame.
    stream_read_timeout_s: float | None = 80.0
    api_version: str = DEFAULT_API_VERSION
    endpoint: str = DEFAULT_ENDPOINT

    def __post_init__(self) -> None:
        """Validate invariants to keep transport behavior predictable."""
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="Pass timeout_s=None to disable the end-to-end timeout.",
            )
        if self.stream_read_timeout_s is not None and self.stream_read_timeout_s <= 0:
            raise ConfigurationError(
                f"stream_read_timeout_s must be > 0, got {self.stream_read_timeout_s}",
                hint="Pass stream_read_timeout_s=None to wait indefinitely.",
            )
        if not self.api_version.strip():
            raise ConfigurationError(
                "api_version must be a non-empty string",
                hint=f"The default is {DEFAULT_API_VERSION!r}.",
            )
        if not self.endpoint.startswith(("https://", "http://")):
            raise ConfigurationError(
                f"endpoint must be an http(s) URL, got {self.endpoint!r}",
                hint=f"The default is {DEFAULT_ENDPOINT!r}.",
            )
        object.__setattr__(self, "endpoint", self.endpoint.rstrip("/"))


@dataclass(frozen=True)
class Config:
    """Immutable client configuration.

    The model name is normalized to its ``models/`` form and the API key is
    auto-resolved from ``GEMINI_API_KEY`` or ``GOOGLE_API_KEY``.

    Example:
        config = Config(model="gemini-1.5-flash")
        # config.model == "models/gemini-1.5-flash"
    """

    model: str
    #: Auto-resolved from the environment when *None*.
    api_key: str | None = None
    request_options: RequestOptions = field(default_factory=RequestOptions)

    def __post_init__(self) -> None:
        """Normalize the model name and resolve the API key."""
        if not self.model or not self.model.strip():
            raise ConfigurationError(
                "model must be a non-empty string",
                hint="Pass a model such as 'gemini-1.5-flash'.",
            )
        object.__setattr__(self, "model", full_model_name(self.model))

        if self.api_key is None:
            resolved = next(
                (os.environ[v] for v in _API_KEY_ENV_VARS if os.environ.get(v)),
                None,
            )
            object.__setattr__(self, "api_key", resolved)

        if not self.api_key:
            raise ConfigurationError(
                "API key required",
                hint="Set GEMINI_API_KEY environment variable or pass api_key=...",
            )

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(model={self.model!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"request_options={self.request_options!r})"
        )

    __repr__ = __str__
