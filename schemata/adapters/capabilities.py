"""Structured-output capabilities per provider and model.

Lookup is by model-name prefix. Unknown models get the provider's
conservative default (JSON best effort), so new models work out of the box
and can be upgraded with ``StructuredRequestBuilder.with_capabilities``.
"""

from __future__ import annotations

from .base import Provider, ProviderCapabilities

# Model prefixes with native schema enforcement
_STRICT_PREFIXES: dict[Provider, tuple[str, ...]] = {
    Provider.OPENAI: ("gpt-4o", "gpt-4.1", "gpt-5", "o1", "o3", "o4"),
    Provider.ANTHROPIC: (
        "claude-sonnet-4-5",
        "claude-opus-4-1",
        "claude-opus-4-5",
        "claude-haiku-4-5",
    ),
    Provider.GEMINI: ("gemini-1.5", "gemini-2", "gemini-3"),
    Provider.OLLAMA: (),
    Provider.MISTRAL: (),
}

# Snapshots that predate structured outputs despite a matching prefix
_STRICT_EXCLUDED: dict[Provider, tuple[str, ...]] = {
    Provider.OPENAI: ("gpt-4o-2024-05-13", "o1-mini", "o1-preview"),
}


def capabilities_for(provider: Provider | str, model: str) -> ProviderCapabilities:
    """Return the capabilities of ``model`` served by ``provider``."""
    provider = Provider.resolve(provider)
    name = model.strip().lower()

    excluded = _STRICT_EXCLUDED.get(provider, ())
    strict = name.startswith(_STRICT_PREFIXES[provider]) and not name.startswith(excluded)

    if provider is Provider.OPENAI:
        return ProviderCapabilities(
            provider=provider,
            model=model,
            supports_strict_schema=strict,
            allows_optional_in_strict=False,
            requires_closed_objects=True,
            max_nesting_depth=10,
            max_properties=5000,
        )
    if provider is Provider.ANTHROPIC:
        return ProviderCapabilities(
            provider=provider,
            model=model,
            supports_strict_schema=strict,
            requires_closed_objects=True,
        )
    if provider is Provider.GEMINI:
        return ProviderCapabilities(
            provider=provider,
            model=model,
            supports_strict_schema=strict,
            max_nesting_depth=10,
        )
    return ProviderCapabilities(provider=provider, model=model, supports_strict_schema=strict)
