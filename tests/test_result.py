"""Tests for Usage, StructuredObject and StructuredResult."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from schemata.core.exceptions import MissingRequiredField, StructuredOutputError
from schemata.schemas.base import FinishReason, OutputMode, Usage
from schemata.schemas.result import Diagnostic, DiagnosticKind, StructuredObject, StructuredResult


# -- Usage ---------------------------------------------------------------


class TestUsage:
    def test_defaults(self):
        usage = Usage()
        assert usage.prompt_tokens == 0
        assert usage.completion_tokens == 0
        assert usage.total_tokens == 0

    def test_total(self):
        assert Usage(prompt_tokens=120, completion_tokens=80).total_tokens == 200

    def test_negative_rejected_on_direct_construction(self):
        with pytest.raises(ValidationError):
            Usage(prompt_tokens=-1)

    def test_from_provider_missing_counts(self):
        usage = Usage.from_provider(None, 12)
        assert usage.prompt_tokens == 0
        assert usage.completion_tokens == 12

    def test_from_provider_clamps_and_logs(self, caplog):
        with caplog.at_level(logging.WARNING, logger="schemata"):
            usage = Usage.from_provider(-5, 10)
        assert usage.prompt_tokens == 0
        assert usage.total_tokens == 10
        assert "negative prompt_tokens" in caplog.text

    def test_frozen(self):
        usage = Usage(prompt_tokens=1)
        with pytest.raises(ValidationError):
            usage.prompt_tokens = 2


# -- StructuredObject ----------------------------------------------------


class TestStructuredObject:
    def test_mapping_behaviour(self):
        obj = StructuredObject({"title": "Inception", "rating": 4.5})
        assert obj["title"] == "Inception"
        assert len(obj) == 2
        assert list(obj) == ["title", "rating"]
        assert "rating" in obj
        assert "summary" not in obj
        assert obj.to_dict() == {"title": "Inception", "rating": 4.5}

    def test_absent_key_raises_missing_required_field(self):
        obj = StructuredObject({"title": "Inception"})
        with pytest.raises(MissingRequiredField) as exc_info:
            obj["summary"]
        assert exc_info.value.path == "$.summary"
        assert isinstance(exc_info.value, StructuredOutputError)

    def test_require_is_item_lookup(self):
        obj = StructuredObject({"title": "Inception"})
        assert obj.require("title") == "Inception"
        with pytest.raises(MissingRequiredField):
            obj.require("rating")

    def test_get_default(self):
        obj = StructuredObject({"title": "Inception"})
        assert obj.get("tagline") is None
        assert obj.get("tagline", "n/a") == "n/a"

    def test_copy_isolated_from_source(self):
        source = {"title": "Inception"}
        obj = StructuredObject(source)
        source["title"] = "Tenet"
        assert obj["title"] == "Inception"

    def test_read_only(self):
        obj = StructuredObject({"title": "Inception"})
        with pytest.raises(TypeError):
            obj["title"] = "Tenet"
        with pytest.raises(AttributeError):
            obj.extra = 1

    def test_equals_plain_dict(self):
        assert StructuredObject({"a": 1}) == {"a": 1}


# -- StructuredResult ----------------------------------------------------


class TestStructuredResult:
    def test_ok(self):
        result = StructuredResult(
            object=StructuredObject({"title": "Inception"}),
            text='{"title": "Inception"}',
            finish_reason=FinishReason.STOP,
            usage=Usage(prompt_tokens=10, completion_tokens=5),
            mode=OutputMode.STRICT,
        )
        assert result.ok
        assert result.require_object()["title"] == "Inception"
        assert result.prompt_tokens == 10
        assert result.completion_tokens == 5
        assert result.total_tokens == 15

    def test_defaults(self):
        result = StructuredResult()
        assert result.object is None
        assert result.text == ""
        assert result.finish_reason is FinishReason.UNKNOWN
        assert result.diagnostics == ()
        assert not result.ok

    def test_require_object_missing_field(self):
        result = StructuredResult(
            diagnostics=(
                Diagnostic(kind=DiagnosticKind.MISSING_REQUIRED_FIELD, path="$.rating", message="Required property missing"),
            ),
        )
        assert result.has_diagnostic(DiagnosticKind.MISSING_REQUIRED_FIELD)
        assert not result.has_diagnostic(DiagnosticKind.MALFORMED_JSON)
        with pytest.raises(MissingRequiredField) as exc_info:
            result.require_object()
        assert exc_info.value.path == "$.rating"

    def test_require_object_malformed(self):
        result = StructuredResult(
            text="not json",
            diagnostics=(Diagnostic(kind=DiagnosticKind.MALFORMED_JSON, message="Expecting value"),),
        )
        with pytest.raises(ValueError, match="malformed_json"):
            result.require_object()

    def test_frozen(self):
        result = StructuredResult()
        with pytest.raises(ValidationError):
            result.text = "x"

    def test_diagnostic_str(self):
        diagnostic = Diagnostic(kind=DiagnosticKind.TYPE_MISMATCH, path="$.rating", message="Expected number, got string")
        assert str(diagnostic) == "type_mismatch at $.rating: Expected number, got string"


# -- nested values -------------------------------------------------------


class TestNestedObjects:
    def _object(self):
        return StructuredObject({
            "title": "Inception",
            "director": {"name": "Nolan"},
            "cast": [{"name": "DiCaprio"}, {"name": "Page"}],
            "tags": ["heist"],
        })

    def test_nested_lookup_reports_full_path(self):
        obj = self._object()
        with pytest.raises(MissingRequiredField) as exc_info:
            obj["director"]["born"]
        assert exc_info.value.path == "$.director.born"

    def test_array_item_lookup_reports_index(self):
        obj = self._object()
        assert obj["cast"][1]["name"] == "Page"
        with pytest.raises(MissingRequiredField) as exc_info:
            obj["cast"][1]["age"]
        assert exc_info.value.path == "$.cast[1].age"
        assert obj["cast"][1].path == "$.cast[1]"

    def test_nested_values_read_only(self):
        obj = self._object()
        assert obj["tags"] == ("heist",)
        with pytest.raises(AttributeError):
            obj["tags"].append("mutated")
        with pytest.raises(TypeError):
            obj["director"]["name"] = "someone"

    def test_isolated_from_source(self):
        source = {"cast": ["a"], "director": {"name": "Nolan"}}
        obj = StructuredObject(source)
        source["cast"].append("mutated")
        source["director"]["name"] = "other"
        assert obj["cast"] == ("a",)
        assert obj["director"]["name"] == "Nolan"

    def test_to_dict_is_plain_deep_copy(self):
        obj = self._object()
        plain = obj.to_dict()
        assert plain == {
            "title": "Inception",
            "director": {"name": "Nolan"},
            "cast": [{"name": "DiCaprio"}, {"name": "Page"}],
            "tags": ["heist"],
        }
        assert type(plain["director"]) is dict
        plain["tags"].append("mutated")
        assert obj["tags"] == ("heist",)
