"""Provider adapter base class and the values adapters exchange.

An adapter does three things for one provider:

1. ``adapt()`` translates a schema into the provider's structured-output
   format and decides the ``OutputMode``, failing early with
   ``UnsupportedSchemaFeature`` when the provider cannot express the schema.
2. ``render_payload()`` lays messages, settings and the adapted schema out as
   the provider's request body.
3. ``parse_response()`` reads the provider's response body back into a
   provider-neutral ``RawOutput``.

Adapters hold no per-call state; a single instance serves all requests.
No network I/O happens here.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Optional, Sequence

from ..core.exceptions import ConfigurationError, UnsupportedSchemaFeature
from ..schemas.base import OutputMode
from ..schemas.messages import GenerationSettings, Message
from ..schemas.nodes import ObjectSchema
from ..utils.frozen import freeze, thaw
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Provider(str, Enum):
    """Closed set of supported providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    OLLAMA = "ollama"
    MISTRAL = "mistral"

    @classmethod
    def resolve(cls, value: "Provider | str") -> "Provider":
        """Accept a ``Provider`` or its string identifier (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            supported = ", ".join(p.value for p in cls)
            raise ConfigurationError(f"Unknown provider '{value}'. Supported: {supported}")


@dataclass(frozen=True)
class ProviderCapabilities:
    """What a provider/model pair can do with structured output.

    Attributes:
        provider: Provider the capabilities describe.
        model: Model identifier.
        supports_strict_schema: Provider enforces a submitted schema natively.
        allows_optional_in_strict: Strict schemas may leave properties out of
            ``required``. When false, optional data must be expressed as a
            required, nullable property.
        requires_closed_objects: Strict schemas must set
            ``additionalProperties: false`` on every object.
        supports_nullable: Nullable nodes can be expressed.
        max_nesting_depth: Deepest schema the provider accepts (``None`` = no limit).
        max_properties: Total object properties allowed (``None`` = no limit).
    """

    provider: Provider
    model: str
    supports_strict_schema: bool = False
    allows_optional_in_strict: bool = True
    requires_closed_objects: bool = False
    supports_nullable: bool = True
    max_nesting_depth: Optional[int] = None
    max_properties: Optional[int] = None


@dataclass(frozen=True)
class AdaptedSchema:
    """Provider-specific structured-output payload plus the mode it implies.

    Attributes:
        provider: Provider the payload was built for.
        model: Model identifier.
        mode: Output mode the request will run in.
        payload: Keys to merge into the provider request body (deep read-only).
        instruction: Text to append to the system prompt (best-effort mode).
    """

    provider: Provider
    model: str
    mode: OutputMode
    payload: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    instruction: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        """Deep copy of ``payload`` that callers may mutate."""
        return thaw(self.payload)

    def serialized(self) -> str:
        """Canonical JSON text of ``payload``."""
        return json.dumps(thaw(self.payload), separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class RawOutput:
    """Provider response normalised by an adapter, before coercion.

    Attributes:
        text: Text content the provider returned (may be empty).
        structured: Natively structured payload (e.g. a tool-call input), if any.
        finish_reason: Provider's raw stop indicator.
        prompt_tokens: Raw prompt token count as reported.
        completion_tokens: Raw completion token count as reported.
        raw_response: Full response body, untouched.
    """

    text: str = ""
    structured: Any = None
    finish_reason: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    raw_response: Any = None


JSON_INSTRUCTION = """\
OUTPUT CONTRACT
- Return ONLY a single valid JSON object. No prose, no code fences, no explanations.
- The object MUST conform to the JSON Schema below.
- Include every property listed under "required". Use null only where the schema allows it.
- Use JSON numbers for numbers and true/false for booleans, never quoted strings.

JSON Schema:
"""


def build_json_instruction(schema: ObjectSchema) -> str:
    """Instruction text that asks for JSON matching ``schema``."""
    return JSON_INSTRUCTION + json.dumps(schema.to_json_schema(), indent=2, ensure_ascii=False)


class ProviderAdapter(ABC):
    """Base class for provider adapters."""

    provider: ClassVar[Provider]

    # -- adapt -----------------------------------------------------------

    def adapt(
        self,
        schema: ObjectSchema,
        capabilities: ProviderCapabilities,
        mode_override: OutputMode | None = None,
    ) -> AdaptedSchema:
        """Translate ``schema`` for this provider and pick the output mode.

        An explicit ``mode_override`` always wins. Downgrading a strict-capable
        model to best-effort logs a warning; asking for strict on a model
        without strict support raises.

        Raises:
            SchemaError: The schema itself is malformed.
            UnsupportedSchemaFeature: The provider cannot express the schema.
            ConfigurationError: ``capabilities`` belong to another provider.
        """
        if capabilities.provider is not self.provider:
            raise ConfigurationError(
                f"Capabilities for '{capabilities.provider.value}' passed to the "
                f"{self.provider.value} adapter",
                provider=self.provider.value,
            )

        if not isinstance(schema, ObjectSchema):
            raise UnsupportedSchemaFeature(
                f"Root schema must be an object, got '{schema.kind}'",
                path=schema.name,
                provider=self.provider.value,
            )
        schema.validate()

        mode = self._resolve_mode(capabilities, mode_override)
        if mode is OutputMode.STRICT:
            self._check_strict_support(schema, capabilities)
            return AdaptedSchema(
                provider=self.provider,
                model=capabilities.model,
                mode=mode,
                payload=freeze(self._strict_payload(schema, capabilities)),
            )

        return AdaptedSchema(
            provider=self.provider,
            model=capabilities.model,
            mode=mode,
            payload=freeze(self._json_mode_payload(schema)),
            instruction=build_json_instruction(schema),
        )

    def _resolve_mode(
        self,
        capabilities: ProviderCapabilities,
        mode_override: OutputMode | None,
    ) -> OutputMode:
        default = (
            OutputMode.STRICT if capabilities.supports_strict_schema else OutputMode.JSON_BEST_EFFORT
        )
        if mode_override is None:
            return default

        if mode_override is OutputMode.STRICT and not capabilities.supports_strict_schema:
            raise UnsupportedSchemaFeature(
                f"Model '{capabilities.model}' does not support strict structured output",
                provider=self.provider.value,
            )
        if mode_override is OutputMode.JSON_BEST_EFFORT and default is OutputMode.STRICT:
            logger.warning(
                "%s model '%s' supports strict structured output; overriding to "
                "json_best_effort drops the schema guarantee.",
                self.provider.value, capabilities.model,
            )
        return mode_override

    def _check_strict_support(self, schema: ObjectSchema, capabilities: ProviderCapabilities) -> None:
        provider = self.provider.value

        if capabilities.max_nesting_depth is not None and schema.depth() > capabilities.max_nesting_depth:
            raise UnsupportedSchemaFeature(
                f"Schema nesting depth {schema.depth()} exceeds the limit of "
                f"{capabilities.max_nesting_depth} for strict mode",
                path=schema.name,
                provider=provider,
            )

        total_properties = 0
        for path, node in schema.iter_nodes():
            if node.nullable and not capabilities.supports_nullable:
                raise UnsupportedSchemaFeature(
                    "Nullable nodes are not supported in strict mode",
                    path=path,
                    provider=provider,
                )
            if isinstance(node, ObjectSchema):
                total_properties += len(node.properties)
                optional = node.optional_fields
                if optional and not capabilities.allows_optional_in_strict:
                    raise UnsupportedSchemaFeature(
                        f"Optional properties are not allowed in strict mode: "
                        f"{', '.join(optional)}. Mark them required and nullable instead",
                        path=path,
                        provider=provider,
                    )

        if capabilities.max_properties is not None and total_properties > capabilities.max_properties:
            raise UnsupportedSchemaFeature(
                f"Schema defines {total_properties} properties; strict mode allows "
                f"{capabilities.max_properties}",
                path=schema.name,
                provider=provider,
            )

    @abstractmethod
    def _strict_payload(self, schema: ObjectSchema, capabilities: ProviderCapabilities) -> dict[str, Any]:
        ...

    @abstractmethod
    def _json_mode_payload(self, schema: ObjectSchema) -> dict[str, Any]:
        ...

    # -- request / response ----------------------------------------------

    @abstractmethod
    def render_payload(
        self,
        *,
        model: str,
        messages: Sequence[Message],
        system_prompt: str | None,
        settings: GenerationSettings,
        adapted: AdaptedSchema,
    ) -> dict[str, Any]:
        """Lay out the provider request body."""

    @abstractmethod
    def parse_response(self, body: Mapping[str, Any]) -> RawOutput:
        """Normalise the provider response body."""

    # -- helpers ---------------------------------------------------------

    @staticmethod
    def _split_system(
        messages: Sequence[Message],
        system_prompt: str | None,
        adapted: AdaptedSchema,
    ) -> tuple[str | None, list[Message]]:
        """Fold system messages, the system prompt and the JSON instruction
        into one system text; return it with the remaining messages."""
        system_parts: list[str] = []
        if system_prompt:
            system_parts.append(system_prompt)
        conversation: list[Message] = []
        for message in messages:
            if message.role == "system":
                system_parts.append(message.content)
            else:
                conversation.append(message)
        if adapted.instruction:
            system_parts.append(adapted.instruction)
        system_text = "\n\n".join(system_parts) if system_parts else None
        return system_text, conversation
