"""OpenAI adapter — Chat Completions structured outputs.

Strict mode uses ``response_format={"type": "json_schema", ...}`` with
``strict: true``. OpenAI's strict schemas must close every object
(``additionalProperties: false``) and list every property under
``required``; optional data is expressed as a required, nullable property.
Older models fall back to JSON mode (``{"type": "json_object"}``), which
requires the word "JSON" to appear in the messages; the best-effort
instruction takes care of that.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

from ..schemas.messages import GenerationSettings, Message
from ..schemas.nodes import ObjectSchema
from ..utils.frozen import thaw
from .base import AdaptedSchema, Provider, ProviderAdapter, ProviderCapabilities, RawOutput

_NAME_PATTERN = re.compile(r"[^a-zA-Z0-9_-]")


class OpenAIAdapter(ProviderAdapter):
    """Adapter for OpenAI and OpenAI-compatible chat completion APIs."""

    provider = Provider.OPENAI
    max_tokens_key = "max_completion_tokens"

    def _strict_payload(self, schema: ObjectSchema, capabilities: ProviderCapabilities) -> dict[str, Any]:
        return {
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": schema_name(schema.name),
                    "schema": schema.to_json_schema(closed=capabilities.requires_closed_objects),
                    "strict": True,
                },
            }
        }

    def _json_mode_payload(self, schema: ObjectSchema) -> dict[str, Any]:
        return {"response_format": {"type": "json_object"}}

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

        payload: dict[str, Any] = {"model": model, "messages": chat}
        if settings.temperature is not None:
            payload["temperature"] = settings.temperature
        if settings.max_tokens is not None:
            payload[self.max_tokens_key] = settings.max_tokens
        if settings.top_p is not None:
            payload["top_p"] = settings.top_p
        if settings.tools:
            payload["tools"] = [thaw(tool) for tool in settings.tools]

        payload.update(adapted.to_payload())
        return payload

    def parse_response(self, body: Mapping[str, Any]) -> RawOutput:
        choices = body.get("choices") or []
        choice = choices[0] if choices else {}
        message = choice.get("message") or {}

        text = _content_text(message.get("content"))
        finish_reason = choice.get("finish_reason")

        # Safety refusals come back in a separate field with no content
        refusal = message.get("refusal")
        if refusal and not text:
            text = refusal
            finish_reason = "refusal"

        usage = body.get("usage") or {}
        return RawOutput(
            text=text,
            finish_reason=finish_reason,
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            raw_response=body,
        )


def _content_text(content: Any) -> Any:
    """Join a list of content parts into text; other values pass through."""
    if isinstance(content, list):
        return "".join(
            part.get("text") or ""
            for part in content
            if isinstance(part, Mapping) and part.get("type") in ("text", "output_text")
        )
    return content or ""


def schema_name(name: str) -> str:
    """Coerce a schema name into OpenAI's ``^[a-zA-Z0-9_-]{1,64}$`` format."""
    cleaned = _NAME_PATTERN.sub("_", name.strip())[:64]
    return cleaned or "response"
