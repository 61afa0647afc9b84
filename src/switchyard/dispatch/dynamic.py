"""Dynamic dispatch: route an object whose request type is only known at run time.

A type-keyed table maps each concrete runtime type to an invoker
closure. Invokers are built on first use and rebuilt when the registry
changes; dispatch is then a dict lookup plus a uniform call.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from switchyard.domain.errors import HandlerNotFoundError, InvocationError

if TYPE_CHECKING:
    from switchyard.domain.cancellation import CancellationToken
    from switchyard.domain.handlers import RequestHandler
    from switchyard.registration import HandlerRegistry

logger = logging.getLogger(__name__)

Invoker = Callable[[Any, "CancellationToken"], Awaitable[Any]]
PipelineRunner = Callable[[Any, "RequestHandler[Any, Any]", "CancellationToken"], Awaitable[Any]]


class DynamicDispatcher:
    """Resolve and run the handler for ``type(request)``.

    Parameters:
        registry: Handler bindings to resolve from.
        run_pipeline: The mediator's pipeline runner, so dynamic calls go
            through exactly the same stages as typed ones.
    """

    def __init__(self, registry: HandlerRegistry, run_pipeline: PipelineRunner) -> None:
        self._registry = registry
        self._run_pipeline = run_pipeline
        self._invokers: dict[type, Invoker] = {}
        self._version = registry.version

    async def send(self, request: Any, token: CancellationToken) -> Any:
        invoker = self.invoker_for(type(request))
        token.raise_if_cancelled()
        return await invoker(request, token)

    def invoker_for(self, request_type: type) -> Invoker:
        """Return the cached invoker for *request_type*, building it if needed.

        Raises HandlerNotFoundError naming the runtime type.
        """
        if self._version != self._registry.version:
            self._invokers.clear()
            self._version = self._registry.version

        invoker = self._invokers.get(request_type)
        if invoker is None:
            invoker = self._build_invoker(request_type)
            self._invokers[request_type] = invoker
        return invoker

    def _build_invoker(self, request_type: type) -> Invoker:
        binding = self._registry.resolve_request_binding(request_type)
        if binding is None:
            raise HandlerNotFoundError(request_type, dynamic=True)
        logger.debug("Built dynamic invoker for %s", request_type.__name__)
        run_pipeline = self._run_pipeline

        async def invoke(request: Any, token: CancellationToken) -> Any:
            try:
                handler = binding.resolve()
            except Exception as exc:
                raise InvocationError(request_type, exc) from exc
            return await run_pipeline(request, handler, token)

        return invoke
