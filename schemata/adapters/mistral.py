"""Mistral adapter — OpenAI-shaped chat API with ``max_tokens``."""

from __future__ import annotations

from .base import Provider
from .openai import OpenAIAdapter


class MistralAdapter(OpenAIAdapter):
    """Adapter for Mistral's chat completions endpoint.

    Request and response bodies follow the OpenAI layout; only the token
    limit key differs. JSON mode uses ``{"type": "json_object"}``.
    """

    provider = Provider.MISTRAL
    max_tokens_key = "max_tokens"
