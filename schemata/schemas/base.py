"""Base value types shared across schemata: modes, finish reasons, usage."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.logger import get_logger

logger = get_logger(__name__)


class OutputMode(str, Enum):
    """How a provider is asked for structured output.

    ``STRICT``: the provider enforces the submitted schema while decoding.
    ``JSON_BEST_EFFORT``: the provider only promises JSON (or nothing at all);
    conformance is checked after the fact.
    """

    STRICT = "strict"
    JSON_BEST_EFFORT = "json_best_effort"


class FinishReason(str, Enum):
    """Why the provider stopped generating."""

    STOP = "stop"
    LENGTH = "length"
    TOOL_CALL = "tool_call"
    CONTENT_FILTER = "content_filter"
    ERROR = "error"
    UNKNOWN = "unknown"


class Usage(BaseModel):
    """Token usage from a single provider call.

    Attributes:
        prompt_tokens: Number of tokens in the prompt/input.
        completion_tokens: Number of tokens in the completion/output.
    """

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = Field(default=0, ge=0, description="Number of tokens in the prompt")
    completion_tokens: int = Field(default=0, ge=0, description="Number of tokens in the completion")

    @property
    def total_tokens(self) -> int:
        """Total tokens used (prompt + completion)."""
        return self.prompt_tokens + self.completion_tokens

    @classmethod
    def from_provider(
        cls,
        prompt_tokens: Any,
        completion_tokens: Any,
    ) -> "Usage":
        """Build usage from provider-reported counts.

        Missing counts become 0. Numeric strings are read as integers.
        Negative or unreadable counts become 0 and are logged,
        never propagated.
        """
        return cls(
            prompt_tokens=_clamp("prompt_tokens", prompt_tokens),
            completion_tokens=_clamp("completion_tokens", completion_tokens),
        )


def _clamp(name: str, value: Any) -> int:
    if value is None:
        return 0
    count = _as_count(value)
    if count is None:
        logger.warning("Provider reported non-integer %s (%r); using 0", name, value)
        return 0
    if count < 0:
        logger.warning("Provider reported negative %s (%d); clamping to 0", name, count)
        return 0
    return count


def _as_count(value: Any) -> Optional[int]:
    """Integer value of a reported count, or ``None`` if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
