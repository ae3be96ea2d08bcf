"""
schemata - Schema-typed structured generation

Describe the shape you want, build a provider-ready request, and coerce
whatever the provider sends back into a validated, inspectable result.
"""

from .core import (
    ConfigurationError,
    MissingRequiredField,
    SchemaError,
    StructuredConfig,
    StructuredOutputError,
    UnsupportedSchemaFeature,
)
from .schemas import (
    ArraySchema,
    BooleanSchema,
    Diagnostic,
    DiagnosticKind,
    EnumSchema,
    FinishReason,
    NumberSchema,
    ObjectSchema,
    OutputMode,
    StringSchema,
    StructuredObject,
    StructuredResult,
    Usage,
)
from .schemas.messages import GenerationSettings, Message
from .adapters import Provider, ProviderCapabilities, RawOutput, capabilities_for, get_adapter
from .pipeline import (
    GenerationRequest,
    StructuredGenerator,
    StructuredRequestBuilder,
    Transport,
    coerce,
    structured,
)

__version__ = "0.1.0"

__all__ = [
    'StringSchema',
    'NumberSchema',
    'BooleanSchema',
    'EnumSchema',
    'ArraySchema',
    'ObjectSchema',
    'OutputMode',
    'FinishReason',
    'Usage',
    'Diagnostic',
    'DiagnosticKind',
    'StructuredObject',
    'StructuredResult',
    'Message',
    'GenerationSettings',
    'Provider',
    'ProviderCapabilities',
    'RawOutput',
    'capabilities_for',
    'get_adapter',
    'GenerationRequest',
    'StructuredRequestBuilder',
    'structured',
    'coerce',
    'StructuredGenerator',
    'Transport',
    'StructuredConfig',
    'StructuredOutputError',
    'SchemaError',
    'UnsupportedSchemaFeature',
    'ConfigurationError',
    'MissingRequiredField',
]
