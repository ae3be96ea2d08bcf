"""Request building, response coercion and the async generator."""

from .coercion import check_value, coerce, map_finish_reason, parse_json
from .generator import StructuredGenerator, Transport
from .request import GenerationRequest, StructuredRequestBuilder, structured

__all__ = [
    "GenerationRequest",
    "StructuredRequestBuilder",
    "structured",
    "coerce",
    "check_value",
    "map_finish_reason",
    "parse_json",
    "StructuredGenerator",
    "Transport",
]
