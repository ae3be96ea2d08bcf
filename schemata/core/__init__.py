"""Core exceptions and configuration."""

from .exceptions import (
    ConfigurationError,
    MissingRequiredField,
    SchemaError,
    StructuredOutputError,
    UnsupportedSchemaFeature,
)
from .config import StructuredConfig

__all__ = [
    "StructuredOutputError",
    "SchemaError",
    "UnsupportedSchemaFeature",
    "ConfigurationError",
    "MissingRequiredField",
    "StructuredConfig",
]
