"""Per-call execution chain: pre-processors, behaviors, handler, post-processors.

The chain is built fresh for every dispatch and never cached::

    P1 .. Pn  ->  B1( B2( ... Bm( H -> Q1 .. Qk ) ... ) )

The first-registered behavior is the outermost wrapper, so behaviors
enter in registration order and unwind in reverse. Post-processors sit
inside the innermost behavior, so a short-circuiting behavior skips
them together with the handler.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from switchyard.domain.cancellation import CancellationToken
    from switchyard.domain.context import PipelineContext
    from switchyard.domain.handlers import (
        PipelineBehavior,
        RequestPostProcessor,
        RequestPreProcessor,
    )

Step = Callable[["CancellationToken"], Awaitable[Any]]


class CallScope:
    """State owned by exactly one dispatch call.

    Holds the shared pipeline contexts, keyed by context class. The
    composer hands the same scope to every continuation of a call and a
    new one to every other call, so concurrent calls never see each
    other's contexts.
    """

    __slots__ = ("_contexts", "request_type")

    def __init__(self, request_type: type) -> None:
        self.request_type = request_type
        self._contexts: dict[type, PipelineContext] = {}

    def get_context(self, key: type) -> PipelineContext | None:
        return self._contexts.get(key)

    def set_context(self, key: type, context: PipelineContext) -> None:
        self._contexts[key] = context

    def clear_context(self, key: type) -> None:
        self._contexts.pop(key, None)

    @property
    def active_contexts(self) -> int:
        return len(self._contexts)


class Continuation:
    """The ``next`` callable handed to a behavior.

    Awaiting ``next(token)`` runs the remainder of the chain. The token
    defaults to the one the behavior was invoked with.
    """

    __slots__ = ("_step", "_token", "scope")

    def __init__(
        self,
        step: Step,
        scope: CallScope,
        token: CancellationToken | None = None,
    ) -> None:
        self._step = step
        self._token = token
        self.scope = scope

    async def __call__(self, token: CancellationToken | None = None) -> Any:
        resolved = token if token is not None else self._token
        if resolved is None:
            msg = "A cancellation token is required to start a pipeline"
            raise TypeError(msg)
        return await self._step(resolved)


def compose_pipeline(
    request: Any,
    handler: Step,
    *,
    behaviors: Sequence[PipelineBehavior] = (),
    pre_processors: Sequence[RequestPreProcessor[Any]] = (),
    post_processors: Sequence[RequestPostProcessor[Any, Any]] = (),
    scope: CallScope | None = None,
) -> Continuation:
    """Fold the registered stages around *handler* into one continuation.

    *handler* is the terminal step: a callable taking the token and
    returning an awaitable response. Each stage checks the token before
    it starts.
    """
    call_scope = scope if scope is not None else CallScope(type(request))

    async def terminal(token: CancellationToken) -> Any:
        token.raise_if_cancelled()
        response = await handler(token)
        for processor in post_processors:
            token.raise_if_cancelled()
            await processor.process(request, response, token)
        return response

    step: Step = terminal
    for behavior in reversed(behaviors):
        step = _wrap(behavior, request, step, call_scope)

    async def execute(token: CancellationToken) -> Any:
        for processor in pre_processors:
            token.raise_if_cancelled()
            await processor.process(request, token)
        return await step(token)

    return Continuation(execute, call_scope)


def _wrap(
    behavior: PipelineBehavior,
    request: Any,
    inner: Step,
    scope: CallScope,
) -> Step:
    """Close *behavior* over the step it wraps."""

    async def step(token: CancellationToken) -> Any:
        token.raise_if_cancelled()
        return await behavior.handle(request, Continuation(inner, scope, token), token)

    return step
