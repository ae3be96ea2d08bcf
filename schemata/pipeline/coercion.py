"""Response coercion — raw provider output to a validated ``StructuredResult``.

Nothing in here raises for bad provider output. Unparseable JSON, missing
required fields and type mismatches become ``Diagnostic`` entries, and
``object`` is left as ``None`` whenever any diagnostic is present.

Types are matched strictly: ``"4.5"`` is not a number, ``"true"`` is not a
boolean, and ``true`` is not a number either. Nothing is silently fixed up.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Optional

from ..adapters.base import RawOutput
from ..schemas.base import FinishReason, OutputMode, Usage
from ..schemas.nodes import (
    ArraySchema,
    BooleanSchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    SchemaNode,
    StringSchema,
)
from ..schemas.result import Diagnostic, DiagnosticKind, StructuredObject, StructuredResult
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Raw stop indicators across providers → FinishReason
_FINISH_REASONS: dict[str, FinishReason] = {
    # normal completion
    "stop": FinishReason.STOP,
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "eos": FinishReason.STOP,
    "finish_reason_stop": FinishReason.STOP,
    # token limit
    "length": FinishReason.LENGTH,
    "max_tokens": FinishReason.LENGTH,
    "model_length": FinishReason.LENGTH,
    "model_context_window_exceeded": FinishReason.LENGTH,
    # tool invocation
    "tool_calls": FinishReason.TOOL_CALL,
    "tool_use": FinishReason.TOOL_CALL,
    "function_call": FinishReason.TOOL_CALL,
    # content filtering
    "content_filter": FinishReason.CONTENT_FILTER,
    "refusal": FinishReason.CONTENT_FILTER,
    "safety": FinishReason.CONTENT_FILTER,
    "recitation": FinishReason.CONTENT_FILTER,
    "blocklist": FinishReason.CONTENT_FILTER,
    "prohibited_content": FinishReason.CONTENT_FILTER,
    "spii": FinishReason.CONTENT_FILTER,
    "image_safety": FinishReason.CONTENT_FILTER,
    # provider-side failure
    "error": FinishReason.ERROR,
    "malformed_function_call": FinishReason.ERROR,
}

_CODE_FENCE = re.compile(r"^\s*```[a-zA-Z0-9_-]*[ \t]*\r?\n(.*?)\r?\n?[ \t]*```\s*$", re.DOTALL)

_TYPE_NAMES = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "enum": "string",
    "array": "array",
    "object": "object",
}


def map_finish_reason(raw: Optional[str]) -> FinishReason:
    """Map a provider stop indicator to ``FinishReason``; unknown → ``UNKNOWN``."""
    if not raw:
        return FinishReason.UNKNOWN
    reason = _FINISH_REASONS.get(str(raw).strip().lower())
    if reason is None:
        logger.debug("Unrecognised finish reason %r; mapping to unknown", raw)
        return FinishReason.UNKNOWN
    return reason


def coerce(
    raw: RawOutput,
    schema: ObjectSchema,
    mode: OutputMode,
    *,
    strip_code_fences: bool = True,
) -> StructuredResult:
    """Parse and validate provider output against ``schema``.

    In strict mode a natively structured payload is decoded directly;
    otherwise the text is parsed as JSON. The decoded value is then checked
    node by node. Extra keys are kept; absent required keys, wrong types and
    unknown enum values are reported as diagnostics.

    Args:
        raw: Provider output normalised by an adapter.
        schema: Root object schema the output should match.
        mode: Output mode the request ran in.
        strip_code_fences: Remove one surrounding Markdown code fence from
            text before parsing it.

    Returns:
        A ``StructuredResult``; never raises for malformed output.
    """
    text = raw.text if isinstance(raw.text, str) else ""
    if raw.text is not None and not isinstance(raw.text, str):
        logger.warning("Provider text is a %s, not a string", type(raw.text).__name__)
    envelope = dict(
        text=text,
        finish_reason=map_finish_reason(raw.finish_reason),
        usage=Usage.from_provider(raw.prompt_tokens, raw.completion_tokens),
        raw_response=raw.raw_response,
        mode=mode,
    )

    if mode is OutputMode.STRICT and raw.structured is not None:
        decoded = raw.structured
    else:
        try:
            decoded = parse_json(
                raw.text if raw.text is not None else "", strip_code_fences=strip_code_fences
            )
        except ValueError as exc:
            logger.debug("Malformed JSON from provider: %s", exc)
            return StructuredResult(diagnostics=(_malformed(str(exc)),), **envelope)

    diagnostics = tuple(check_value(decoded, schema, "$"))
    if diagnostics:
        logger.debug(
            "Provider output failed validation against '%s': %s",
            schema.name, "; ".join(str(d) for d in diagnostics),
        )
        return StructuredResult(diagnostics=diagnostics, **envelope)

    try:
        obj = StructuredObject(decoded)
    except RecursionError:
        return StructuredResult(diagnostics=(_malformed("Decoded value is nested too deeply"),), **envelope)
    return StructuredResult(object=obj, **envelope)


def parse_json(text: str, *, strip_code_fences: bool = True) -> Any:
    """Decode ``text`` as strict JSON.

    ``NaN``, ``Infinity`` and ``-Infinity`` are rejected, as is nesting
    deeper than the interpreter can decode.

    Raises:
        ValueError: Non-string, empty or undecodable text (``json.JSONDecodeError``
            is a ``ValueError``).
    """
    if not isinstance(text, str):
        raise ValueError(f"Expected response text, got {type(text).__name__}")
    candidate = text
    if strip_code_fences:
        match = _CODE_FENCE.match(candidate)
        if match:
            candidate = match.group(1)
    if not candidate.strip():
        raise ValueError("Empty response; expected a JSON object")
    try:
        return json.loads(candidate, parse_constant=_reject_constant)
    except RecursionError:
        raise ValueError("JSON is nested too deeply to decode") from None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _malformed(message: str) -> Diagnostic:
    return Diagnostic(kind=DiagnosticKind.MALFORMED_JSON, path="$", message=message)


def check_value(value: Any, node: SchemaNode, path: str) -> list[Diagnostic]:
    """Recursively validate ``value`` against ``node``.

    Returns every diagnostic found (empty when the value conforms).
    """
    if value is None:
        if node.nullable:
            return []
        return [_type_mismatch(node, value, path)]

    if isinstance(node, StringSchema):
        return [] if isinstance(value, str) else [_type_mismatch(node, value, path)]

    if isinstance(node, NumberSchema):
        # bool is an int subclass; it is not a number here
        if isinstance(value, int) and not isinstance(value, bool):
            return []
        if isinstance(value, float) and math.isfinite(value):
            return []
        return [_type_mismatch(node, value, path)]

    if isinstance(node, BooleanSchema):
        return [] if isinstance(value, bool) else [_type_mismatch(node, value, path)]

    if isinstance(node, EnumSchema):
        if not isinstance(value, str):
            return [_type_mismatch(node, value, path)]
        if value not in node.allowed_values:
            return [Diagnostic(
                kind=DiagnosticKind.INVALID_ENUM_VALUE,
                path=path,
                message=f"{value!r} is not one of {list(node.allowed_values)}",
            )]
        return []

    if isinstance(node, ArraySchema):
        if not isinstance(value, list):
            return [_type_mismatch(node, value, path)]
        diagnostics: list[Diagnostic] = []
        for index, item in enumerate(value):
            diagnostics.extend(check_value(item, node.items, f"{path}[{index}]"))
        return diagnostics

    if isinstance(node, ObjectSchema):
        if not isinstance(value, dict):
            return [_type_mismatch(node, value, path)]
        diagnostics = []
        for child in node.properties:
            child_path = f"{path}.{child.name}"
            if child.name in value:
                child_value = value[child.name]
                # An optional property sent as null counts as absent
                if child_value is None and not node.is_required(child.name):
                    continue
                diagnostics.extend(check_value(child_value, child, child_path))
            elif node.is_required(child.name):
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.MISSING_REQUIRED_FIELD,
                    path=child_path,
                    message=f"Required field '{child.name}' is missing",
                ))
        return diagnostics

    raise TypeError(f"Unknown schema node type: {type(node).__name__}")


def _type_mismatch(node: SchemaNode, value: Any, path: str) -> Diagnostic:
    expected = _TYPE_NAMES[node.kind]
    if node.nullable:
        expected += " or null"
    return Diagnostic(
        kind=DiagnosticKind.TYPE_MISMATCH,
        path=path,
        message=f"Expected {expected}, got {_json_type(value)}",
    )


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float) and not math.isfinite(value):
        return f"non-finite number ({value})"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
