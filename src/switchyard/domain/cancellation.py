"""Cooperative cancellation signal threaded through every call stage."""

from __future__ import annotations

import asyncio

from switchyard.domain.errors import OperationCancelledError


class CancellationToken:
    """A one-shot cancellation flag shared by every stage of a call.

    ``cancel()`` may be called from any coroutine on the same event loop.
    Stages observe it via :meth:`raise_if_cancelled` or by awaiting
    :meth:`wait`.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @classmethod
    def cancelled(cls, reason: str | None = None) -> CancellationToken:
        token = cls()
        token.cancel(reason)
        return token

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelledError` if the token has tripped."""
        if self._event.is_set():
            raise self.to_error()

    def to_error(self) -> OperationCancelledError:
        """Build the error reported for this token, naming the reason if any."""
        if self._reason:
            return OperationCancelledError(f"The operation was cancelled: {self._reason}")
        return OperationCancelledError()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()
