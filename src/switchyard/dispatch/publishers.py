"""Notification fan-out strategies.

One publisher is selected per process at startup and shared by every
``publish`` call, so implementations keep no per-call state.

- :class:`SequentialPublisher` - registration order, one at a time.
  The first failure stops the rest.
- :class:`ParallelPublisher` - all handlers at once; failures surface
  after every handler has settled.
- :class:`BackgroundPublisher` - fire-and-forget. Failures go to an
  observability sink, never to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

import structlog

from switchyard.config.models import PublisherStrategy

if TYPE_CHECKING:
    from switchyard.domain.cancellation import CancellationToken

logger = logging.getLogger(__name__)

HandlerInvocation = Callable[[Any, "CancellationToken"], Awaitable[None]]
ErrorSink = Callable[[BaseException, Any], None]


class NotificationPublisher(ABC):
    """Strategy deciding how a notification's handlers are driven."""

    @abstractmethod
    async def publish(
        self,
        invocations: Sequence[HandlerInvocation],
        notification: Any,
        token: CancellationToken,
    ) -> None: ...


class SequentialPublisher(NotificationPublisher):
    """Await each handler before starting the next."""

    async def publish(
        self,
        invocations: Sequence[HandlerInvocation],
        notification: Any,
        token: CancellationToken,
    ) -> None:
        for invoke in invocations:
            token.raise_if_cancelled()
            await invoke(notification, token)


class ParallelPublisher(NotificationPublisher):
    """Start every handler concurrently and wait for all of them.

    A single failure is re-raised as-is. Several failures are raised
    together as a :class:`BaseExceptionGroup`, unless the token tripped
    while the handlers ran: then one :class:`OperationCancelledError` is
    raised with the group as its cause. Siblings of a failing handler
    are never cancelled.
    """

    async def publish(
        self,
        invocations: Sequence[HandlerInvocation],
        notification: Any,
        token: CancellationToken,
    ) -> None:
        token.raise_if_cancelled()
        failures = await _gather_failures(invocations, notification, token)
        if not failures:
            return
        if len(failures) == 1:
            raise failures[0]
        msg = f"{len(failures)} handlers failed for {type(notification).__name__}"
        group = BaseExceptionGroup(msg, failures)
        if token.is_cancelled:
            raise token.to_error() from group
        raise group


class BackgroundPublisher(NotificationPublisher):
    """Schedule every handler on a background task and return immediately.

    Parameters:
        on_error: Sink receiving ``(exception, notification)`` for each
            handler failure. Defaults to a structured error log entry.

    In-flight tasks are tracked so they are not garbage-collected
    mid-flight; :meth:`drain` awaits them.
    """

    def __init__(self, on_error: ErrorSink | None = None) -> None:
        self._on_error = on_error or log_publish_failure
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of background publishes still running."""
        return len(self._tasks)

    async def publish(
        self,
        invocations: Sequence[HandlerInvocation],
        notification: Any,
        token: CancellationToken,
    ) -> None:
        if not invocations:
            return
        task = asyncio.create_task(
            self._run(list(invocations), notification, token),
            name=f"switchyard.publish.{type(notification).__name__}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every scheduled publish has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(
        self,
        invocations: list[HandlerInvocation],
        notification: Any,
        token: CancellationToken,
    ) -> None:
        failures = await _gather_failures(invocations, notification, token)
        for exc in failures:
            self._report(exc, notification)

    def _report(self, exc: BaseException, notification: Any) -> None:
        try:
            self._on_error(exc, notification)
        except Exception:
            logger.exception(
                "Error sink failed while reporting a %s failure",
                type(notification).__name__,
            )


def log_publish_failure(exc: BaseException, notification: Any) -> None:
    """Default background error sink: one structured error log line."""
    structlog.get_logger("switchyard.publish").error(
        "notification.publish_failed",
        notification_type=type(notification).__name__,
        error=str(exc),
        exc_info=exc,
    )


def create_publisher(strategy: PublisherStrategy | str) -> NotificationPublisher:
    """Build the publisher for a configured strategy name."""
    factory = _PUBLISHERS[PublisherStrategy(strategy)]
    return factory()


_PUBLISHERS: dict[PublisherStrategy, Callable[[], NotificationPublisher]] = {
    PublisherStrategy.SEQUENTIAL: SequentialPublisher,
    PublisherStrategy.PARALLEL: ParallelPublisher,
    PublisherStrategy.BACKGROUND: BackgroundPublisher,
}


async def _gather_failures(
    invocations: Sequence[HandlerInvocation],
    notification: Any,
    token: CancellationToken,
) -> list[BaseException]:
    results = await asyncio.gather(
        *(invoke(notification, token) for invoke in invocations),
        return_exceptions=True,
    )
    return [r for r in results if isinstance(r, BaseException)]
