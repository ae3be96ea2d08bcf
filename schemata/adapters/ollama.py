"""Ollama adapter — ``/api/chat`` with ``format``.

JSON mode sends ``format: "json"``. When capabilities declare schema
support, the JSON Schema itself is passed as ``format``.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..schemas.messages import GenerationSettings, Message
from ..schemas.nodes import ObjectSchema
from ..utils.frozen import thaw
from .base import AdaptedSchema, Provider, ProviderAdapter, ProviderCapabilities, RawOutput


class OllamaAdapter(ProviderAdapter):
    """Adapter for locally served Ollama models."""

    provider = Provider.OLLAMA

    def _strict_payload(self, schema: ObjectSchema, capabilities: ProviderCapabilities) -> dict[str, Any]:
        return {"format": schema.to_json_schema(closed=capabilities.requires_closed_objects)}

    def _json_mode_payload(self, schema: ObjectSchema) -> dict[str, Any]:
        return {"format": "json"}

    def render_payload(
        self,
        *,
        model: str,
        messages: Sequence[Message],
        system_prompt: str | None,
        settings: GenerationSettings,
        adapted: AdaptedSchema,
    ) -> dict[str, Any]:
        system_text, conversation = self._split_system(messages, system_prompt, adapted)

        chat: list[dict[str, Any]] = []
        if system_text:
            chat.append({"role": "system", "content": system_text})
        chat.extend({"role": m.role, "content": m.content} for m in conversation)

        options: dict[str, Any] = {}
        if settings.temperature is not None:
            options["temperature"] = settings.temperature
        if settings.max_tokens is not None:
            options["num_predict"] = settings.max_tokens
        if settings.top_p is not None:
            options["top_p"] = settings.top_p

        payload: dict[str, Any] = {"model": model, "messages": chat, "stream": False}
        if options:
            payload["options"] = options
        if settings.tools:
            payload["tools"] = [thaw(tool) for tool in settings.tools]

        payload.update(adapted.to_payload())
        return payload

    def parse_response(self, body: Mapping[str, Any]) -> RawOutput:
        message = body.get("message") or {}
        return RawOutput(
            text=message.get("content") or "",
            finish_reason=body.get("done_reason"),
            prompt_tokens=body.get("prompt_eval_count"),
            completion_tokens=body.get("eval_count"),
            raw_response=body,
        )
