"""StructuredGenerator — runs a request through a transport and coerces the reply."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from ..adapters import get_adapter
from ..core.config import StructuredConfig
from ..schemas.result import StructuredResult
from ..utils.logger import get_logger
from .coercion import coerce
from .request import GenerationRequest

logger = get_logger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Protocol for whatever sends a request to the provider.

    Implementations post ``request.to_payload()`` to the provider endpoint
    and return the decoded response body. Retries, timeouts and
    authentication belong to the transport; its errors are not caught here.
    """

    async def send(self, request: GenerationRequest) -> Mapping[str, Any]: ...


class StructuredGenerator:
    """Sends structured requests and returns validated results.

    Features:
      - Provider-agnostic via the ``Transport`` protocol.
      - Response bodies normalised by the request's provider adapter.
      - Malformed or incomplete output returned as diagnostics, not raised.
      - No retries or backoff: transport errors propagate unchanged.
    """

    def __init__(self, transport: Transport, config: StructuredConfig | None = None):
        self.transport = transport
        self.config = config or StructuredConfig()

    async def generate(self, request: GenerationRequest) -> StructuredResult:
        body = await self.transport.send(request)

        adapter = get_adapter(request.provider)
        raw = adapter.parse_response(body)
        result = coerce(
            raw,
            request.schema,
            request.mode,
            strip_code_fences=self.config.strip_code_fences,
        )

        if not result.ok:
            logger.info(
                "%s/%s structured output not usable (%s): %s",
                request.provider.value, request.model, result.finish_reason.value,
                "; ".join(str(d) for d in result.diagnostics),
            )
        return result
