"""Provider adapters: schema translation, request layout, response parsing."""

from __future__ import annotations

from .anthropic import AnthropicAdapter
from .base import (
    AdaptedSchema,
    Provider,
    ProviderAdapter,
    ProviderCapabilities,
    RawOutput,
    build_json_instruction,
)
from .capabilities import capabilities_for
from .gemini import GeminiAdapter
from .mistral import MistralAdapter
from .ollama import OllamaAdapter
from .openai import OpenAIAdapter

# Adapters are stateless; one shared instance per provider
_ADAPTERS: dict[Provider, ProviderAdapter] = {
    Provider.OPENAI: OpenAIAdapter(),
    Provider.ANTHROPIC: AnthropicAdapter(),
    Provider.GEMINI: GeminiAdapter(),
    Provider.OLLAMA: OllamaAdapter(),
    Provider.MISTRAL: MistralAdapter(),
}


def get_adapter(provider: Provider | str) -> ProviderAdapter:
    """Return the adapter for ``provider`` (enum member or identifier)."""
    return _ADAPTERS[Provider.resolve(provider)]


__all__ = [
    "AdaptedSchema",
    "Provider",
    "ProviderAdapter",
    "ProviderCapabilities",
    "RawOutput",
    "build_json_instruction",
    "capabilities_for",
    "get_adapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "OllamaAdapter",
    "MistralAdapter",
]
