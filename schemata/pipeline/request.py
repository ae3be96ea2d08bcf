"""Request builder — prompt, settings and adapted schema in one immutable value.

Usage:
    request = (
        StructuredRequestBuilder()
        .using(Provider.OPENAI, "gpt-4o")
        .with_schema(schema)
        .with_system_prompt("You are an expert movie critic")
        .with_prompt("Review the movie Inception")
        .build()
    )
    request.payload  # provider-ready request body

``build()`` validates and adapts the schema, so schema and provider
problems surface before any network call is attempted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

from pydantic import ValidationError

from ..adapters import AdaptedSchema, Provider, ProviderAdapter, ProviderCapabilities, capabilities_for, get_adapter
from ..core.config import StructuredConfig
from ..core.exceptions import ConfigurationError
from ..schemas.base import OutputMode
from ..schemas.messages import GenerationSettings, Message
from ..schemas.nodes import ObjectSchema
from ..utils.frozen import freeze, thaw


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable structured-generation request.

    Attributes:
        provider: Target provider.
        model: Model identifier.
        messages: Conversation messages, in order.
        system_prompt: System prompt (``None`` if unset).
        schema: Root object schema the output must match.
        adapted: Provider-specific schema payload and output mode.
        settings: Sampling settings.
        provider_options: Opaque overlay merged verbatim over the payload (deep read-only).
        payload: Provider-ready request body, deep read-only; use ``to_payload()``
            for a mutable copy.
    """

    provider: Provider
    model: str
    messages: tuple[Message, ...]
    system_prompt: Optional[str]
    schema: ObjectSchema
    adapted: AdaptedSchema
    settings: GenerationSettings
    provider_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    payload: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def mode(self) -> OutputMode:
        return self.adapted.mode

    def to_payload(self) -> dict[str, Any]:
        """Deep copy of ``payload`` for a transport to serialise."""
        return thaw(self.payload)


class StructuredRequestBuilder:
    """Fluent builder for ``GenerationRequest``.

    Defaults come from a ``StructuredConfig``; every ``with_*`` / ``using_*``
    call overrides them for this request only. The provider identifier is
    resolved to an adapter once, in ``using()``.
    """

    def __init__(self, config: StructuredConfig | None = None):
        self.config = config or StructuredConfig()
        self._provider: Provider | None = None
        self._model: str | None = None
        self._adapter: ProviderAdapter | None = None
        self._capabilities: ProviderCapabilities | None = None
        self._schema: ObjectSchema | None = None
        self._prompt: str | None = None
        self._messages: list[Message] = []
        self._system_prompt: str | None = None
        self._temperature: float | None = self.config.temperature
        self._max_tokens: int | None = self.config.max_tokens
        self._top_p: float | None = None
        self._tools: list[dict[str, Any]] = []
        self._provider_options: dict[str, Any] = {}
        self._output_mode: OutputMode | None = self.config.output_mode

    # -- provider --------------------------------------------------------

    def using(self, provider: Provider | str, model: str) -> StructuredRequestBuilder:
        """Select provider and model; looks up their capabilities."""
        if not model or not model.strip():
            raise ConfigurationError("model cannot be empty")
        self._provider = Provider.resolve(provider)
        self._adapter = get_adapter(self._provider)
        self._model = model
        self._capabilities = capabilities_for(self._provider, model)
        return self

    def with_capabilities(self, capabilities: ProviderCapabilities) -> StructuredRequestBuilder:
        """Replace the looked-up capabilities (e.g. for a model not yet in the table)."""
        if self._provider is None:
            raise ConfigurationError("Call using() before with_capabilities()")
        if capabilities.provider is not self._provider:
            raise ConfigurationError(
                f"Capabilities are for '{capabilities.provider.value}', "
                f"request targets '{self._provider.value}'"
            )
        self._capabilities = capabilities
        return self

    def with_output_mode(self, mode: OutputMode | str | None) -> StructuredRequestBuilder:
        """Explicit output-mode override; ``None`` restores the provider default."""
        self._output_mode = OutputMode(mode) if mode is not None else None
        return self

    # -- content ---------------------------------------------------------

    def with_schema(self, schema: ObjectSchema) -> StructuredRequestBuilder:
        self._schema = schema
        return self

    def with_prompt(self, prompt: str) -> StructuredRequestBuilder:
        self._prompt = prompt
        return self

    def with_messages(self, messages: Sequence[Message | Mapping[str, Any]]) -> StructuredRequestBuilder:
        self._messages = [
            m if isinstance(m, Message) else Message.model_validate(dict(m))
            for m in messages
        ]
        return self

    def with_system_prompt(self, system_prompt: str) -> StructuredRequestBuilder:
        self._system_prompt = system_prompt
        return self

    # -- settings --------------------------------------------------------

    def using_temperature(self, temperature: float) -> StructuredRequestBuilder:
        self._temperature = temperature
        return self

    def with_max_tokens(self, max_tokens: int) -> StructuredRequestBuilder:
        self._max_tokens = max_tokens
        return self

    def using_top_p(self, top_p: float) -> StructuredRequestBuilder:
        self._top_p = top_p
        return self

    def with_tools(self, tools: Sequence[Mapping[str, Any]]) -> StructuredRequestBuilder:
        self._tools = [thaw(tool) for tool in tools]
        return self

    def with_provider_options(self, options: Mapping[str, Any]) -> StructuredRequestBuilder:
        """Keys merged verbatim over the rendered payload (last word wins)."""
        self._provider_options = thaw(options)
        return self

    # -- build -----------------------------------------------------------

    def build(self) -> GenerationRequest:
        """Validate, adapt and render the request.

        Raises:
            ConfigurationError: Provider, schema or prompt missing, or both a
                prompt and messages given.
            SchemaError: The schema is malformed.
            UnsupportedSchemaFeature: The provider cannot express the schema.
        """
        if self._provider is None or self._adapter is None or self._capabilities is None:
            raise ConfigurationError("No provider selected; call using(provider, model)")
        if self._schema is None:
            raise ConfigurationError("No schema given; call with_schema()", provider=self._provider.value)
        if self._prompt is not None and self._messages:
            raise ConfigurationError(
                "Use either with_prompt() or with_messages(), not both",
                provider=self._provider.value,
            )

        if self._prompt is not None:
            messages = (Message(role="user", content=self._prompt),)
        else:
            messages = tuple(self._messages)
        if not any(m.role == "user" for m in messages):
            raise ConfigurationError(
                "Request needs a prompt or at least one user message",
                provider=self._provider.value,
            )

        try:
            settings = GenerationSettings(
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                top_p=self._top_p,
                tools=tuple(self._tools),
            )
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid generation settings: {exc}", provider=self._provider.value
            ) from exc
        adapted = self._adapter.adapt(self._schema, self._capabilities, self._output_mode)

        payload = self._adapter.render_payload(
            model=self._model,
            messages=messages,
            system_prompt=self._system_prompt,
            settings=settings,
            adapted=adapted,
        )
        payload.update(thaw(self._provider_options))

        return GenerationRequest(
            provider=self._provider,
            model=self._model,
            messages=messages,
            system_prompt=self._system_prompt,
            schema=self._schema,
            adapted=adapted,
            settings=settings,
            provider_options=freeze(self._provider_options),
            payload=freeze(payload),
        )


def structured(config: StructuredConfig | None = None) -> StructuredRequestBuilder:
    """Start a structured request: ``structured().using(...).with_schema(...)``."""
    return StructuredRequestBuilder(config)
