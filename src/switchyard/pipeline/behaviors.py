"""Built-in pipeline behaviors."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import structlog

from switchyard.domain.handlers import PipelineBehavior

if TYPE_CHECKING:
    from switchyard.domain.cancellation import CancellationToken
    from switchyard.pipeline.composer import Continuation


class LoggingBehavior(PipelineBehavior):
    """Log entry, exit, and timing of every request it wraps.

    Register it as an open behavior. Never alters the response.
    """

    def __init__(self, logger_name: str = "switchyard.requests") -> None:
        self._log = structlog.get_logger(logger_name)

    async def handle(
        self,
        request: Any,
        next: Continuation,  # noqa: A002
        token: CancellationToken,
    ) -> Any:
        request_type = type(request).__name__
        self._log.debug("request.handling", request_type=request_type)
        start = time.perf_counter()
        try:
            response = await next(token)
        except Exception as exc:
            self._log.warning(
                "request.failed",
                request_type=request_type,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                error=str(exc),
            )
            raise
        self._log.debug(
            "request.handled",
            request_type=request_type,
            response_type=type(response).__name__,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response
