"""Capability interfaces operating over requests and notifications.

Every hook is a coroutine. The engine awaits each one and threads the
call's :class:`CancellationToken` through.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from switchyard.domain.cancellation import CancellationToken
    from switchyard.pipeline.composer import Continuation


class RequestHandler[TRequest, TResponse](ABC):
    """Terminal handler for one request type.

    The handled type is inferred from the generic base at registration::

        class GetUserHandler(RequestHandler[GetUser, User]):
            async def handle(self, request: GetUser, token: CancellationToken) -> User:
                ...
    """

    @abstractmethod
    async def handle(self, request: TRequest, token: CancellationToken) -> TResponse: ...


class NotificationHandler[TNotification](ABC):
    """Subscriber for one notification type."""

    @abstractmethod
    async def handle(self, notification: TNotification, token: CancellationToken) -> None: ...


class PipelineBehavior(ABC):
    """Middleware wrapping the rest of the call chain.

    Call ``await next(token)`` to continue; return without calling it to
    short-circuit, in which case the returned value becomes the result.
    """

    @abstractmethod
    async def handle(
        self,
        request: Any,
        next: Continuation,  # noqa: A002
        token: CancellationToken,
    ) -> Any: ...


class RequestPreProcessor[TRequest](ABC):
    """Hook run before the behavior chain and the handler."""

    @abstractmethod
    async def process(self, request: TRequest, token: CancellationToken) -> None: ...


class RequestPostProcessor[TRequest, TResponse](ABC):
    """Hook run right after a successful handler. Cannot alter the response."""

    @abstractmethod
    async def process(
        self,
        request: TRequest,
        response: TResponse,
        token: CancellationToken,
    ) -> None: ...
