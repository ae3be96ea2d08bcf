"""Adapters and coercion share no per-call state across threads."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor

from schemata.adapters import RawOutput, capabilities_for, get_adapter
from schemata.pipeline.coercion import coerce
from schemata.schemas.base import OutputMode
from schemata.schemas.nodes import EnumSchema, NumberSchema, ObjectSchema, StringSchema

_PAIRS = [
    ("openai", "gpt-4o"),
    ("openai", "gpt-3.5-turbo"),
    ("anthropic", "claude-sonnet-4-5"),
    ("gemini", "gemini-2.5-pro"),
    ("ollama", "llama3.1"),
    ("mistral", "mistral-large-latest"),
]


def _schema(index: int) -> ObjectSchema:
    return ObjectSchema(
        name=f"record_{index}",
        properties=[
            StringSchema(name=f"label_{index}"),
            NumberSchema(name="score"),
            EnumSchema(name="tier", allowed_values=["low", "high"]),
        ],
        required_fields=[f"label_{index}", "score", "tier"],
    )


def _adapt(index: int) -> str:
    provider, model = _PAIRS[index % len(_PAIRS)]
    adapted = get_adapter(provider).adapt(_schema(index), capabilities_for(provider, model))
    return adapted.serialized()


def _coerce(index: int):
    value = {f"label_{index}": f"row {index}", "score": index, "tier": "high" if index % 2 else "low"}
    if index % 3 == 0:
        del value["score"]
    raw = RawOutput(text=json.dumps(value), finish_reason="stop", prompt_tokens=index, completion_tokens=1)
    result = coerce(raw, _schema(index), OutputMode.JSON_BEST_EFFORT)
    return (
        result.object.to_dict() if result.object is not None else None,
        [str(d) for d in result.diagnostics],
        result.usage.total_tokens,
    )


class TestThreadSafety:
    def test_adapt_matches_sequential(self):
        sequential = [_adapt(i) for i in range(60)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            parallel = list(pool.map(_adapt, range(60)))
        assert parallel == sequential

    def test_coerce_matches_sequential(self):
        sequential = [_coerce(i) for i in range(60)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            parallel = list(pool.map(_coerce, range(60)))
        assert parallel == sequential
        assert sequential[0][0] is None
        assert sequential[1][0] == {"label_1": "row 1", "score": 1, "tier": "high"}
