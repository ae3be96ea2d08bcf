"""Conversation messages and generation settings carried by a request."""

from __future__ import annotations

from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.frozen import freeze


class Message(BaseModel):
    """Single chat message."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class GenerationSettings(BaseModel):
    """Sampling settings shared by all providers.

    ``None`` means "leave the provider default"; adapters omit such keys.
    Tools are passed to the provider as given and held read-only.
    """

    model_config = ConfigDict(frozen=True)

    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    tools: tuple[Mapping[str, Any], ...] = ()

    @field_validator("tools")
    @classmethod
    def freeze_tools(cls, value):
        return tuple(freeze(tool) for tool in value)
