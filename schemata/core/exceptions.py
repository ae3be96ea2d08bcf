"""
Custom exceptions for schemata.

Only failures that are detectable without a remote call are raised.
Problems with what a provider sends back are reported as diagnostics on the
returned ``StructuredResult`` instead (see ``schemata.schemas.result``).
"""

from __future__ import annotations


class StructuredOutputError(Exception):
    """Base exception for all schemata errors.

    Attributes:
        message: Human-readable error description.
        path: Location inside the schema tree (``None`` if not node-specific).
        provider: Provider identifier involved (``None`` if provider-agnostic).
    """

    def __init__(self, message: str, path: str | None = None, provider: str | None = None):
        self.message = message
        self.path = path
        self.provider = provider

        # Build descriptive error message
        error_parts = [message]
        if path is not None:
            error_parts.append(f"Path: {path}")
        if provider is not None:
            error_parts.append(f"Provider: {provider}")

        super().__init__(" | ".join(error_parts))


class SchemaError(StructuredOutputError):
    """Raised when a schema tree is malformed.

    Common causes:
        - A name in ``required_fields`` has no matching property.
        - Two siblings share the same name.
        - An enum node has no allowed values (or repeats one).
    """

    pass


class UnsupportedSchemaFeature(StructuredOutputError):
    """Raised at adapt time when the target provider cannot express a schema.

    Typical causes: optional properties under a strict mode that requires
    every property, nesting deeper than the provider allows, or asking for
    strict mode on a model without native schema support.
    """

    pass


class ConfigurationError(StructuredOutputError):
    """Raised when configuration or request building is invalid."""

    pass


class MissingRequiredField(StructuredOutputError):
    """Raised when a decoded object is asked for a field it does not carry."""

    pass
