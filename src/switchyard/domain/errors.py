"""Exception taxonomy for dispatch failures.

Handler faults are not wrapped: whatever a pre-processor, behavior,
handler, or post-processor raises reaches the caller unchanged.
"""

from __future__ import annotations


class SwitchyardError(Exception):
    """Base class for errors raised by the dispatch engine itself."""


class HandlerNotFoundError(SwitchyardError):
    """No terminal handler is registered for a request type."""

    def __init__(self, request_type: type, *, dynamic: bool = False) -> None:
        self.request_type = request_type
        self.dynamic = dynamic
        if dynamic:
            msg = f"No handler found for object request of type {request_type.__name__}"
        else:
            msg = f"No handler registered for request type {request_type.__name__}"
        super().__init__(msg)


class PublisherNotConfiguredError(SwitchyardError):
    """``publish`` was called on a mediator with no notification publisher."""

    def __init__(self) -> None:
        super().__init__(
            "No notification publisher is configured; pass one to Mediator "
            "or build it with Mediator.from_settings()"
        )


class OperationCancelledError(SwitchyardError):
    """The call was aborted through its cancellation token."""

    def __init__(self, message: str = "The operation was cancelled.") -> None:
        super().__init__(message)


class InvocationError(SwitchyardError):
    """The dynamic dispatch table could not invoke the resolved handler.

    The true cause is chained as ``__cause__`` and exposed as :attr:`inner`.
    """

    def __init__(self, request_type: type, inner: BaseException) -> None:
        self.request_type = request_type
        super().__init__(f"Failed to invoke handler for {request_type.__name__}: {inner}")
        self.__cause__ = inner

    @property
    def inner(self) -> BaseException | None:
        return self.__cause__


class RegistrationError(SwitchyardError):
    """A handler, behavior, or processor registration is malformed."""
