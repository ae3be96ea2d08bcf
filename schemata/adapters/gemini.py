"""Google Gemini adapter — ``generateContent`` REST body.

Strict mode sets ``responseMimeType: application/json`` plus a
``responseSchema`` written in Gemini's OpenAPI subset: upper-case type
names, ``nullable`` instead of type unions, ``format: enum`` for string
enums and ``propertyOrdering`` to pin key order. The model name travels in
the URL, not the body.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..schemas.messages import GenerationSettings, Message
from ..schemas.nodes import ArraySchema, EnumSchema, ObjectSchema, SchemaNode
from ..utils.frozen import thaw
from .base import AdaptedSchema, Provider, ProviderAdapter, ProviderCapabilities, RawOutput

_OPENAPI_TYPES = {
    "string": "STRING",
    "number": "NUMBER",
    "boolean": "BOOLEAN",
    "enum": "STRING",
    "array": "ARRAY",
    "object": "OBJECT",
}


class GeminiAdapter(ProviderAdapter):
    """Adapter for Google's Gemini models."""

    provider = Provider.GEMINI

    def _strict_payload(self, schema: ObjectSchema, capabilities: ProviderCapabilities) -> dict[str, Any]:
        return {
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": to_openapi_schema(schema),
            }
        }

    def _json_mode_payload(self, schema: ObjectSchema) -> dict[str, Any]:
        return {"generationConfig": {"responseMimeType": "application/json"}}

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

        contents = []
        for msg in conversation:
            role = "model" if msg.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": msg.content}]})

        generation_config: dict[str, Any] = {}
        if settings.temperature is not None:
            generation_config["temperature"] = settings.temperature
        if settings.max_tokens is not None:
            generation_config["maxOutputTokens"] = settings.max_tokens
        if settings.top_p is not None:
            generation_config["topP"] = settings.top_p

        adapted_payload = adapted.to_payload()
        generation_config.update(adapted_payload.pop("generationConfig", {}))

        payload: dict[str, Any] = {"contents": contents}
        if system_text:
            payload["systemInstruction"] = {"parts": [{"text": system_text}]}
        if generation_config:
            payload["generationConfig"] = generation_config
        if settings.tools:
            payload["tools"] = [thaw(tool) for tool in settings.tools]

        payload.update(adapted_payload)
        return payload

    def parse_response(self, body: Mapping[str, Any]) -> RawOutput:
        candidates = body.get("candidates") or []
        text = ""
        finish_reason = None
        if candidates:
            candidate = candidates[0]
            parts = (candidate.get("content") or {}).get("parts") or []
            text = "".join(part.get("text") or "" for part in parts)
            finish_reason = candidate.get("finishReason")
        else:
            # Prompt blocked before any candidate was produced
            finish_reason = (body.get("promptFeedback") or {}).get("blockReason")

        usage = body.get("usageMetadata") or {}
        return RawOutput(
            text=text,
            finish_reason=finish_reason,
            prompt_tokens=usage.get("promptTokenCount"),
            completion_tokens=usage.get("candidatesTokenCount"),
            raw_response=body,
        )


def to_openapi_schema(node: SchemaNode) -> dict[str, Any]:
    """Render a schema node in Gemini's OpenAPI subset."""
    out: dict[str, Any] = {"type": _OPENAPI_TYPES[node.kind]}
    if node.description:
        out["description"] = node.description
    if node.nullable:
        out["nullable"] = True

    if isinstance(node, EnumSchema):
        out["format"] = "enum"
        out["enum"] = list(node.allowed_values)
    elif isinstance(node, ArraySchema):
        out["items"] = to_openapi_schema(node.items)
    elif isinstance(node, ObjectSchema):
        out["properties"] = {child.name: to_openapi_schema(child) for child in node.properties}
        required = [n for n in node.property_names if n in node.required_fields]
        if required:
            out["required"] = required
        out["propertyOrdering"] = node.property_names
    return out
