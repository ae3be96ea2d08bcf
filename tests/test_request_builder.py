"""Tests for StructuredRequestBuilder and provider payload rendering."""

from __future__ import annotations

import json

import pytest

from schemata.adapters import Provider, ProviderCapabilities
from schemata.core.config import StructuredConfig
from schemata.core.exceptions import ConfigurationError, SchemaError, UnsupportedSchemaFeature
from schemata.pipeline.request import GenerationRequest, StructuredRequestBuilder, structured
from schemata.schemas.base import OutputMode
from schemata.schemas.messages import Message
from schemata.schemas.nodes import NumberSchema, ObjectSchema, StringSchema


# -- helpers -------------------------------------------------------------


def _schema() -> ObjectSchema:
    return ObjectSchema(
        name="movie_review",
        description="A structured movie review",
        properties=[
            StringSchema(name="title", description="The movie title"),
            NumberSchema(name="rating", description="Rating out of 5"),
            StringSchema(name="summary", description="Brief review summary"),
        ],
        required_fields=["title", "rating", "summary"],
    )


def _builder(provider: str = "openai", model: str = "gpt-4o") -> StructuredRequestBuilder:
    return (
        structured()
        .using(provider, model)
        .with_schema(_schema())
        .with_system_prompt("You are an expert movie critic")
        .with_prompt("Review the movie Inception")
    )


# -- build ---------------------------------------------------------------


class TestBuild:
    def test_returns_immutable_request(self):
        request = _builder().build()
        assert isinstance(request, GenerationRequest)
        assert request.provider is Provider.OPENAI
        assert request.model == "gpt-4o"
        assert request.mode is OutputMode.STRICT
        assert request.messages == (Message(role="user", content="Review the movie Inception"),)
        with pytest.raises(AttributeError):
            request.model = "other"
        with pytest.raises(TypeError):
            request.payload["model"] = "other"

    def test_defaults_from_config(self):
        config = StructuredConfig(temperature=0.3, max_tokens=512)
        request = (
            StructuredRequestBuilder(config)
            .using("openai", "gpt-4o")
            .with_schema(_schema())
            .with_prompt("hi")
            .build()
        )
        assert request.settings.temperature == 0.3
        assert request.settings.max_tokens == 512

    def test_builder_calls_override_config(self):
        config = StructuredConfig(temperature=0.3, output_mode=OutputMode.JSON_BEST_EFFORT)
        request = (
            StructuredRequestBuilder(config)
            .using("openai", "gpt-4o")
            .with_schema(_schema())
            .with_prompt("hi")
            .using_temperature(0.9)
            .with_output_mode(None)
            .build()
        )
        assert request.settings.temperature == 0.9
        assert request.mode is OutputMode.STRICT

    def test_config_output_mode_applies(self):
        config = StructuredConfig(output_mode=OutputMode.JSON_BEST_EFFORT)
        request = (
            StructuredRequestBuilder(config)
            .using("openai", "gpt-4o")
            .with_schema(_schema())
            .with_prompt("hi")
            .build()
        )
        assert request.mode is OutputMode.JSON_BEST_EFFORT

    def test_with_messages_accepts_dicts(self):
        request = (
            structured()
            .using("anthropic", "claude-sonnet-4-5")
            .with_schema(_schema())
            .with_messages([
                {"role": "user", "content": "Review Inception"},
                {"role": "assistant", "content": "Sure"},
                Message(role="user", content="As JSON please"),
            ])
            .build()
        )
        assert [m.role for m in request.messages] == ["user", "assistant", "user"]

    def test_with_capabilities_upgrades_unknown_model(self):
        caps = ProviderCapabilities(provider=Provider.OLLAMA, model="qwen3", supports_strict_schema=True)
        request = _builder("ollama", "qwen3").with_capabilities(caps).build()
        assert request.mode is OutputMode.STRICT
        assert request.payload["format"]["type"] == "object"


class TestBuildErrors:
    def test_missing_provider(self):
        with pytest.raises(ConfigurationError, match="No provider"):
            structured().with_schema(_schema()).with_prompt("hi").build()

    def test_missing_schema(self):
        with pytest.raises(ConfigurationError, match="No schema"):
            structured().using("openai", "gpt-4o").with_prompt("hi").build()

    def test_missing_prompt(self):
        with pytest.raises(ConfigurationError, match="prompt"):
            structured().using("openai", "gpt-4o").with_schema(_schema()).build()

    def test_prompt_and_messages_conflict(self):
        builder = _builder().with_messages([{"role": "user", "content": "x"}])
        with pytest.raises(ConfigurationError, match="not both"):
            builder.build()

    def test_empty_model(self):
        with pytest.raises(ConfigurationError):
            structured().using("openai", " ")

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unknown provider"):
            structured().using("cohere", "command-r")

    def test_capabilities_for_wrong_provider(self):
        caps = ProviderCapabilities(provider=Provider.GEMINI, model="gemini-2.0-flash")
        with pytest.raises(ConfigurationError):
            _builder().with_capabilities(caps)

    def test_invalid_temperature(self):
        with pytest.raises(ConfigurationError, match="Invalid generation settings"):
            _builder().using_temperature(3.5).build()

    def test_schema_error_before_transport(self):
        bad = ObjectSchema(name="r", properties=[StringSchema(name="a")], required_fields=["b"])
        with pytest.raises(SchemaError):
            _builder().with_schema(bad).build()

    def test_unsupported_feature_before_transport(self):
        optional = ObjectSchema(name="r", properties=[StringSchema(name="a")])
        with pytest.raises(UnsupportedSchemaFeature):
            _builder().with_schema(optional).build()


# -- payload rendering ---------------------------------------------------


class TestOpenAIPayload:
    def test_strict(self):
        request = _builder().using_temperature(0.2).with_max_tokens(300).build()
        payload = request.to_payload()
        assert payload["model"] == "gpt-4o"
        assert payload["messages"][0] == {"role": "system", "content": "You are an expert movie critic"}
        assert payload["messages"][1] == {"role": "user", "content": "Review the movie Inception"}
        assert payload["temperature"] == 0.2
        assert payload["max_completion_tokens"] == 300
        assert payload["response_format"]["type"] == "json_schema"

    def test_best_effort_appends_instruction(self):
        request = _builder("openai", "gpt-3.5-turbo").build()
        system = request.payload["messages"][0]["content"]
        assert system.startswith("You are an expert movie critic")
        assert "OUTPUT CONTRACT" in system
        assert request.payload["response_format"] == {"type": "json_object"}

    def test_temperature_omitted_when_unset(self):
        payload = _builder().build().payload
        assert "temperature" not in payload
        assert "top_p" not in payload

    def test_provider_options_merged_verbatim(self):
        request = _builder().with_provider_options({"seed": 7, "temperature": 0.0}).using_temperature(1.0).build()
        assert request.payload["seed"] == 7
        assert request.payload["temperature"] == 0.0
        assert dict(request.provider_options) == {"seed": 7, "temperature": 0.0}

    def test_tools_passed_through(self):
        tool = {"type": "function", "function": {"name": "lookup", "parameters": {}}}
        request = _builder().with_tools([tool]).build()
        assert request.to_payload()["tools"] == [tool]

    def test_payload_is_json_serialisable(self):
        json.dumps(_builder().build().to_payload())

    def test_to_payload_is_a_copy(self):
        request = _builder().build()
        copied = request.to_payload()
        copied["messages"].clear()
        assert len(request.payload["messages"]) == 2


class TestMistralPayload:
    def test_uses_max_tokens(self):
        request = _builder("mistral", "mistral-large-latest").with_max_tokens(100).build()
        assert request.payload["max_tokens"] == 100
        assert "max_completion_tokens" not in request.payload
        assert request.payload["response_format"] == {"type": "json_object"}


class TestAnthropicPayload:
    def test_system_and_max_tokens(self):
        request = _builder("anthropic", "claude-sonnet-4-5").build()
        payload = request.to_payload()
        assert payload["system"] == "You are an expert movie critic"
        assert payload["messages"] == [{"role": "user", "content": "Review the movie Inception"}]
        assert payload["max_tokens"] == 2048
        assert payload["output_config"]["format"]["type"] == "json_schema"

    def test_system_messages_folded(self):
        request = (
            structured()
            .using("anthropic", "claude-3-5-haiku")
            .with_schema(_schema())
            .with_messages([
                {"role": "system", "content": "Be terse"},
                {"role": "user", "content": "Review Inception"},
            ])
            .build()
        )
        assert request.payload["system"].startswith("Be terse")
        assert "OUTPUT CONTRACT" in request.payload["system"]
        assert all(m["role"] != "system" for m in request.payload["messages"])
        assert "output_config" not in request.payload


class TestGeminiPayload:
    def test_generation_config_merged(self):
        request = _builder("gemini", "gemini-2.5-flash").using_temperature(0.1).with_max_tokens(256).build()
        payload = request.to_payload()
        assert "model" not in payload
        assert payload["contents"] == [{"role": "user", "parts": [{"text": "Review the movie Inception"}]}]
        assert payload["systemInstruction"] == {"parts": [{"text": "You are an expert movie critic"}]}
        config = payload["generationConfig"]
        assert config["temperature"] == 0.1
        assert config["maxOutputTokens"] == 256
        assert config["responseMimeType"] == "application/json"
        assert config["responseSchema"]["type"] == "OBJECT"

    def test_assistant_role_becomes_model(self):
        request = (
            structured()
            .using("gemini", "gemini-2.0-flash")
            .with_schema(_schema())
            .with_messages([
                {"role": "user", "content": "a"},
                {"role": "assistant", "content": "b"},
                {"role": "user", "content": "c"},
            ])
            .build()
        )
        assert [c["role"] for c in request.payload["contents"]] == ["user", "model", "user"]


class TestOllamaPayload:
    def test_options_and_format(self):
        request = _builder("ollama", "llama3.1").using_temperature(0.4).with_max_tokens(64).build()
        payload = request.to_payload()
        assert payload["stream"] is False
        assert payload["format"] == "json"
        assert payload["options"] == {"temperature": 0.4, "num_predict": 64}


# -- immutability --------------------------------------------------------


class TestFrozenRequest:
    def test_nested_payload_read_only(self):
        request = _builder("gemini", "gemini-2.0-flash").build()
        with pytest.raises(AttributeError):
            request.payload["contents"].append({"role": "user", "parts": []})
        with pytest.raises(TypeError):
            request.payload["generationConfig"]["responseMimeType"] = "text/plain"
        assert len(request.payload["contents"]) == 1

    def test_adapted_payload_read_only(self):
        request = _builder().build()
        with pytest.raises(TypeError):
            request.adapted.payload["response_format"]["type"] = "text"

    def test_tools_and_options_frozen_after_build(self):
        tool = {"type": "function", "function": {"name": "lookup", "parameters": {"type": "object"}}}
        options = {"metadata": {"run": "a"}}
        request = _builder().with_tools([tool]).with_provider_options(options).build()

        tool["function"]["name"] = "changed"
        options["metadata"]["run"] = "b"

        assert request.settings.tools[0]["function"]["name"] == "lookup"
        assert request.provider_options["metadata"]["run"] == "a"
        assert request.to_payload()["metadata"] == {"run": "a"}
        with pytest.raises(TypeError):
            request.settings.tools[0]["function"]["name"] = "changed"

    def test_to_payload_serialises_frozen_tools(self):
        tool = {"type": "function", "function": {"name": "lookup", "parameters": {"required": ["q"]}}}
        payload = _builder("anthropic", "claude-sonnet-4-5").with_tools([tool]).build().to_payload()
        assert json.loads(json.dumps(payload))["tools"] == [tool]
