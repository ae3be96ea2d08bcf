"""Pydantic types for schemas, usage and results.

- Schema nodes: StringSchema, NumberSchema, BooleanSchema, EnumSchema,
  ArraySchema, ObjectSchema (``SchemaNode`` is their tagged union)
- OutputMode / FinishReason / Usage: shared value types
- StructuredResult: result envelope with diagnostics and a typed object

Example:
    from schemata.schemas import ObjectSchema, StringSchema, NumberSchema

    schema = ObjectSchema(
        name="movie_review",
        properties=[StringSchema(name="title"), NumberSchema(name="rating")],
        required_fields=["title", "rating"],
    )
    schema.validate()
"""

from .base import FinishReason, OutputMode, Usage
from .nodes import (
    ArraySchema,
    BooleanSchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    SchemaNode,
    StringSchema,
)
from .result import Diagnostic, DiagnosticKind, StructuredObject, StructuredResult

__all__ = [
    "OutputMode",
    "FinishReason",
    "Usage",
    "SchemaNode",
    "StringSchema",
    "NumberSchema",
    "BooleanSchema",
    "EnumSchema",
    "ArraySchema",
    "ObjectSchema",
    "Diagnostic",
    "DiagnosticKind",
    "StructuredObject",
    "StructuredResult",
]
