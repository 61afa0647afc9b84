"""ContextualBehavior: behaviors sharing one context per call.

The first contextual behavior entered for a call creates the context and
is the only one allowed to dispose of it. Every later contextual
behavior in the same call (same context class) reuses it.

INVARIANT: the context is disposed on every exit path, including
short-circuit and exceptions raised by ``next``.
"""

from __future__ import annotations

import asyncio
import logging
import typing
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from switchyard.domain.context import PipelineContext
from switchyard.domain.handlers import PipelineBehavior

if TYPE_CHECKING:
    from switchyard.domain.cancellation import CancellationToken
    from switchyard.pipeline.composer import Continuation

logger = logging.getLogger(__name__)


class ContextualBehavior[TContext: PipelineContext](PipelineBehavior):
    """Base for behaviors that observe a shared, call-scoped context.

    Subclasses name their context class as the generic argument (or set
    :attr:`context_type` explicitly) and implement the two hooks::

        class AuditBehavior(ContextualBehavior[AuditContext]):
            async def on_inbound(self, context, request, token) -> None:
                context.items["user"] = request.user_id

            async def on_outbound(self, context, response, token) -> None:
                audit.record(context)

    ``on_outbound`` always runs, with ``response=None`` when the chain
    raised. At that point ``context.is_success`` is False and
    ``context.error_message`` holds the failure. An exception from
    ``on_outbound`` on that path is logged and the original error
    propagates.
    """

    context_type: ClassVar[type[PipelineContext]] = PipelineContext

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "context_type" in cls.__dict__:
            return
        # ContextualBehavior[AuditContext] binds AuditContext.
        for base in cls.__dict__.get("__orig_bases__", ()):
            if typing.get_origin(base) is not ContextualBehavior:
                continue
            args = typing.get_args(base)
            if args and isinstance(args[0], type) and issubclass(args[0], PipelineContext):
                cls.context_type = args[0]
            return

    async def handle(
        self,
        request: Any,
        next: Continuation,  # noqa: A002
        token: CancellationToken,
    ) -> Any:
        scope = next.scope
        context = scope.get_context(self.context_type)
        owns_context = context is None
        if context is None:
            context = self.create_context()
            context.is_success = True
            scope.set_context(self.context_type, context)

        try:
            try:
                await self.on_inbound(context, request, token)  # type: ignore[arg-type]
                response = await next(token)
            except (Exception, asyncio.CancelledError) as exc:
                context.mark_failed(exc)
                await self._outbound_after_failure(context, token)
                raise
            await self.on_outbound(context, response, token)  # type: ignore[arg-type]
        finally:
            if owns_context:
                scope.clear_context(self.context_type)
        return response

    async def _outbound_after_failure(
        self,
        context: PipelineContext,
        token: CancellationToken,
    ) -> None:
        """Run ``on_outbound`` for a failed call without masking its error."""
        try:
            await self.on_outbound(context, None, token)  # type: ignore[arg-type]
        except Exception:
            logger.warning(
                "Outbound hook of %s failed after %s",
                type(self).__name__,
                context.error_code,
                exc_info=True,
            )

    def create_context(self) -> PipelineContext:
        """Build a fresh context. Override when the context needs arguments."""
        return self.context_type()

    @abstractmethod
    async def on_inbound(
        self,
        context: TContext,
        request: Any,
        token: CancellationToken,
    ) -> None:
        """Runs before ``next``."""

    @abstractmethod
    async def on_outbound(
        self,
        context: TContext,
        response: Any,
        token: CancellationToken,
    ) -> None:
        """Runs after ``next``, whether it returned or raised."""
