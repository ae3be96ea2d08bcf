"""Convenience re-export of provider adapters.

Usage:
    from schemata.providers import Provider, get_adapter, capabilities_for
    from schemata.providers import OpenAIAdapter, AnthropicAdapter, GeminiAdapter
"""

from .adapters import (
    AnthropicAdapter,
    GeminiAdapter,
    MistralAdapter,
    OllamaAdapter,
    OpenAIAdapter,
    Provider,
    ProviderAdapter,
    ProviderCapabilities,
    capabilities_for,
    get_adapter,
)

__all__ = [
    "Provider",
    "ProviderAdapter",
    "ProviderCapabilities",
    "capabilities_for",
    "get_adapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "OllamaAdapter",
    "MistralAdapter",
]
