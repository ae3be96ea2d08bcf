"""Result envelope returned for every structured generation.

Malformed or incomplete provider output never raises. It is reported as
``Diagnostic`` entries on a ``StructuredResult`` whose ``object`` is
``None``, so callers can branch on partial success::

    result = coerce(raw, schema, mode)
    if result.ok:
        title = result.object["title"]
    elif result.has_diagnostic(DiagnosticKind.MALFORMED_JSON):
        ...  # retry, relax the schema, or surface an error
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import MissingRequiredField
from ..utils.frozen import thaw
from .base import FinishReason, OutputMode, Usage


class DiagnosticKind(str, Enum):
    MISSING_REQUIRED_FIELD = "missing_required_field"
    MALFORMED_JSON = "malformed_json"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_ENUM_VALUE = "invalid_enum_value"


class Diagnostic(BaseModel):
    """One problem found while coercing provider output.

    Attributes:
        kind: Category of the problem.
        path: JSONPath-style location in the decoded value, e.g. ``$.cast[2].name``.
        message: Human-readable detail.
    """

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind
    path: str = "$"
    message: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value} at {self.path}: {self.message}"


class StructuredObject(Mapping):
    """Read-only view over a validated object.

    Nested objects are ``StructuredObject`` views too and arrays are tuples,
    so nothing reachable from a result can be mutated. Lookups of absent
    keys raise ``MissingRequiredField`` with the full path (e.g.
    ``$.director.born``) instead of ``KeyError``; use ``get()`` for keys
    that may legitimately be absent. Extra keys the provider returned
    beyond the schema are kept.
    """

    __slots__ = ("_values", "_path")

    def __init__(self, values: Mapping[str, Any], path: str = "$"):
        self._path = path
        self._values = MappingProxyType(
            {key: _wrap(item, f"{path}.{key}") for key, item in values.items()}
        )

    def __getitem__(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise MissingRequiredField(
                f"Field '{name}' is not present in the decoded object",
                path=f"{self._path}.{name}",
            ) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    @property
    def path(self) -> str:
        return self._path

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def require(self, name: str) -> Any:
        """Explicit lookup; same as ``obj[name]``."""
        return self[name]

    def to_dict(self) -> dict[str, Any]:
        """Plain, mutable deep copy (nested dicts and lists)."""
        return thaw(self._values)

    def __repr__(self) -> str:
        return f"StructuredObject({self.to_dict()!r})"


def _wrap(value: Any, path: str) -> Any:
    if isinstance(value, Mapping):
        return StructuredObject(value, path)
    if isinstance(value, (list, tuple)):
        return tuple(_wrap(item, f"{path}[{index}]") for index, item in enumerate(value))
    return value


class StructuredResult(BaseModel):
    """Immutable outcome of one structured generation.

    Usage:
        result = await generator.generate(request)
        if result.ok:
            review = result.object
        tokens = result.usage.total_tokens
        debug_payload = result.raw_response

    Attributes:
        object: Decoded, schema-conforming value; ``None`` when coercion failed.
        text: Raw text returned by the provider, verbatim.
        finish_reason: Normalised stop indicator.
        usage: Token usage statistics.
        raw_response: Provider response body as received, for debugging.
        diagnostics: Problems found while coercing; empty on success.
        mode: Output mode the request was made in.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    object: Optional[StructuredObject] = Field(default=None, description="Decoded value, if valid")
    text: str = Field(default="", description="Raw provider text")
    finish_reason: FinishReason = FinishReason.UNKNOWN
    usage: Usage = Field(default_factory=Usage)
    raw_response: Any = Field(default=None, description="Provider payload as received")
    diagnostics: tuple[Diagnostic, ...] = ()
    mode: OutputMode = OutputMode.JSON_BEST_EFFORT

    @property
    def ok(self) -> bool:
        """True when an object was decoded with no diagnostics."""
        return self.object is not None and not self.diagnostics

    def has_diagnostic(self, kind: DiagnosticKind) -> bool:
        return any(d.kind is kind for d in self.diagnostics)

    def require_object(self) -> StructuredObject:
        """Return ``object`` or raise if coercion failed.

        Raises:
            MissingRequiredField: When the first diagnostic is a missing field.
            ValueError: For any other coercion failure.
        """
        if self.object is not None:
            return self.object
        first = self.diagnostics[0] if self.diagnostics else None
        if first is not None and first.kind is DiagnosticKind.MISSING_REQUIRED_FIELD:
            raise MissingRequiredField(first.message, path=first.path)
        raise ValueError(f"No structured object available: {first or 'empty response'}")

    @property
    def prompt_tokens(self) -> int:
        """Quick access to prompt tokens."""
        return self.usage.prompt_tokens

    @property
    def completion_tokens(self) -> int:
        """Quick access to completion tokens."""
        return self.usage.completion_tokens

    @property
    def total_tokens(self) -> int:
        """Quick access to total tokens."""
        return self.usage.total_tokens
