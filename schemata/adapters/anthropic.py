"""Anthropic adapter — Messages API.

Models with structured-output support get constrained decoding through
``output_config.format`` (``json_schema``). Other models have no JSON mode;
they are steered by the JSON instruction appended to ``system``.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..schemas.messages import GenerationSettings, Message
from ..schemas.nodes import ObjectSchema
from ..utils.frozen import thaw
from .base import AdaptedSchema, Provider, ProviderAdapter, ProviderCapabilities, RawOutput

# The Messages API rejects requests without max_tokens
DEFAULT_MAX_TOKENS = 1024


class AnthropicAdapter(ProviderAdapter):
    """Adapter for Anthropic's Claude models."""

    provider = Provider.ANTHROPIC

    def _strict_payload(self, schema: ObjectSchema, capabilities: ProviderCapabilities) -> dict[str, Any]:
        return {
            "output_config": {
                "format": {
                    "type": "json_schema",
                    "schema": schema.to_json_schema(closed=capabilities.requires_closed_objects),
                }
            }
        }

    def _json_mode_payload(self, schema: ObjectSchema) -> dict[str, Any]:
        # json_object → no equivalent; the system instruction carries the schema
        return {}

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

        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": settings.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": [{"role": m.role, "content": m.content} for m in conversation],
        }
        if system_text:
            payload["system"] = system_text
        if settings.temperature is not None:
            payload["temperature"] = settings.temperature
        if settings.top_p is not None:
            payload["top_p"] = settings.top_p
        if settings.tools:
            payload["tools"] = [thaw(tool) for tool in settings.tools]

        payload.update(adapted.to_payload())
        return payload

    def parse_response(self, body: Mapping[str, Any]) -> RawOutput:
        text_parts: list[str] = []
        structured: Any = None
        for block in body.get("content") or []:
            block_type = block.get("type")
            if block_type == "text":
                text_parts.append(block.get("text") or "")
            elif block_type == "tool_use" and structured is None:
                # Tool-call input is already decoded JSON
                structured = block.get("input")

        usage = body.get("usage") or {}
        return RawOutput(
            text="".join(text_parts),
            structured=structured,
            finish_reason=body.get("stop_reason"),
            prompt_tokens=usage.get("input_tokens"),
            completion_tokens=usage.get("output_tokens"),
            raw_response=body,
        )
