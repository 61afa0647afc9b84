"""HandlerRegistry: bindings from message types to handlers and middleware.

The registry is filled at startup (directly, via decorators, or by
plugins) and only read at dispatch time. Providers may be:

- an instance: always shared, whatever lifetime is requested;
- a class or zero-argument factory: instantiated per resolution
  (``transient``) or once on first resolution (``singleton``).

When no message type is given, it is inferred from the provider's
generic base, e.g. ``RequestHandler[GetUser, User]`` binds ``GetUser``.
"""

from __future__ import annotations

import logging
import threading
import typing
from collections.abc import Callable
from enum import StrEnum
from typing import Any, TypeVar

from switchyard.domain.errors import RegistrationError
from switchyard.domain.handlers import (
    NotificationHandler,
    PipelineBehavior,
    RequestHandler,
    RequestPostProcessor,
    RequestPreProcessor,
)

logger = logging.getLogger(__name__)

_C = TypeVar("_C", bound=type)


class Lifetime(StrEnum):
    """How often a class or factory provider is instantiated."""

    TRANSIENT = "transient"
    SINGLETON = "singleton"


class Binding:
    """One registered provider, keyed by the message type it serves.

    ``key`` is None for open registrations that apply to every request.
    """

    __slots__ = ("_factory", "_instance", "_lock", "capability", "key", "lifetime")

    def __init__(
        self,
        key: type | None,
        provider: Any,
        capability: type,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> None:
        self.key = key
        self.capability = capability
        self._lock = threading.Lock()
        self._instance: Any = None
        self._factory: Callable[[], Any] | None = None

        if isinstance(provider, capability):
            self._instance = provider
            self.lifetime = Lifetime.SINGLETON
        elif isinstance(provider, type):
            if not issubclass(provider, capability):
                msg = f"{provider.__name__} must subclass {capability.__name__}"
                raise RegistrationError(msg)
            self._factory = provider
            self.lifetime = Lifetime(lifetime)
        elif callable(provider):
            self._factory = provider
            self.lifetime = Lifetime(lifetime)
        else:
            msg = f"{provider!r} is not a {capability.__name__}, class, or factory"
            raise RegistrationError(msg)

    def applies_to(self, message_type: type) -> bool:
        return self.key is None or issubclass(message_type, self.key)

    def resolve(self) -> Any:
        """Return the provider instance for one dispatch."""
        if self._instance is not None:
            return self._instance
        if self.lifetime is Lifetime.SINGLETON:
            with self._lock:
                if self._instance is None:
                    self._instance = self._build()
                return self._instance
        return self._build()

    def _build(self) -> Any:
        assert self._factory is not None
        instance = self._factory()
        if not isinstance(instance, self.capability):
            msg = (
                f"Factory for {self.capability.__name__} returned "
                f"{type(instance).__name__}"
            )
            raise RegistrationError(msg)
        return instance


def infer_message_type(provider: Any, template: type) -> type | None:
    """Find the first concrete type argument of *template* in *provider*'s bases.

    Walks the MRO so handlers inheriting from a parameterized base
    resolve too. Returns None for factories and for bases parameterized
    by a type variable, ``Any``, or ``object``, which register as open.
    """
    cls = provider if isinstance(provider, type) else type(provider)
    for klass in cls.__mro__:
        for base in klass.__dict__.get("__orig_bases__", ()):
            if typing.get_origin(base) is not template:
                continue
            args = typing.get_args(base)
            if args and isinstance(args[0], type) and args[0] not in (Any, object):
                return args[0]
    return None


class HandlerRegistry:
    """Read-only at dispatch time; safe to share across concurrent calls."""

    def __init__(self) -> None:
        self._request_handlers: dict[type, Binding] = {}
        self._notification_handlers: list[Binding] = []
        self._behaviors: list[Binding] = []
        self._pre_processors: list[Binding] = []
        self._post_processors: list[Binding] = []
        self._version = 0

    @property
    def version(self) -> int:
        """Incremented on every registration; lets callers invalidate caches."""
        return self._version

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_request_handler(
        self,
        handler: Any,
        request_type: type | None = None,
        *,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> HandlerRegistry:
        """Bind the terminal handler for *request_type*. Last registration wins."""
        key = request_type or infer_message_type(handler, RequestHandler)
        if key is None:
            msg = f"Cannot infer the request type handled by {handler!r}; pass request_type"
            raise RegistrationError(msg)
        if key in self._request_handlers:
            logger.debug("Replacing request handler for %s", key.__name__)
        self._request_handlers[key] = Binding(key, handler, RequestHandler, lifetime)
        self._version += 1
        return self

    def add_notification_handler(
        self,
        handler: Any,
        notification_type: type | None = None,
        *,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> HandlerRegistry:
        key = notification_type or infer_message_type(handler, NotificationHandler)
        if key is None:
            msg = (
                f"Cannot infer the notification type handled by {handler!r}; "
                "pass notification_type"
            )
            raise RegistrationError(msg)
        self._notification_handlers.append(
            Binding(key, handler, NotificationHandler, lifetime)
        )
        self._version += 1
        return self

    def add_behavior(
        self,
        behavior: Any,
        request_type: type | None = None,
        *,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> HandlerRegistry:
        """Add a pipeline behavior; ``request_type=None`` applies it to every request."""
        self._behaviors.append(Binding(request_type, behavior, PipelineBehavior, lifetime))
        self._version += 1
        return self

    def add_pre_processor(
        self,
        processor: Any,
        request_type: type | None = None,
        *,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> HandlerRegistry:
        key = request_type or infer_message_type(processor, RequestPreProcessor)
        self._pre_processors.append(Binding(key, processor, RequestPreProcessor, lifetime))
        self._version += 1
        return self

    def add_post_processor(
        self,
        processor: Any,
        request_type: type | None = None,
        *,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> HandlerRegistry:
        key = request_type or infer_message_type(processor, RequestPostProcessor)
        self._post_processors.append(
            Binding(key, processor, RequestPostProcessor, lifetime)
        )
        self._version += 1
        return self

    def request_handler(
        self,
        request_type: type | None = None,
        *,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Callable[[_C], _C]:
        """Class decorator form of :meth:`add_request_handler`."""

        def decorator(cls: _C) -> _C:
            self.add_request_handler(cls, request_type, lifetime=lifetime)
            return cls

        return decorator

    def notification_handler(
        self,
        notification_type: type | None = None,
        *,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Callable[[_C], _C]:
        """Class decorator form of :meth:`add_notification_handler`."""

        def decorator(cls: _C) -> _C:
            self.add_notification_handler(cls, notification_type, lifetime=lifetime)
            return cls

        return decorator

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_request_binding(self, request_type: type) -> Binding | None:
        """Exact type first, then the nearest base class with a binding."""
        for klass in request_type.__mro__:
            binding = self._request_handlers.get(klass)
            if binding is not None:
                return binding
        return None

    def resolve_request_handler(self, request_type: type) -> RequestHandler[Any, Any] | None:
        binding = self.resolve_request_binding(request_type)
        return binding.resolve() if binding is not None else None

    def resolve_notification_handlers(
        self, notification_type: type
    ) -> list[NotificationHandler[Any]]:
        return _resolve_all(self._notification_handlers, notification_type)

    def resolve_behaviors(self, request_type: type) -> list[PipelineBehavior]:
        return _resolve_all(self._behaviors, request_type)

    def resolve_pre_processors(self, request_type: type) -> list[RequestPreProcessor[Any]]:
        return _resolve_all(self._pre_processors, request_type)

    def resolve_post_processors(
        self, request_type: type
    ) -> list[RequestPostProcessor[Any, Any]]:
        return _resolve_all(self._post_processors, request_type)

    def registered_request_types(self) -> list[type]:
        return list(self._request_handlers)


def _resolve_all(bindings: list[Binding], message_type: type) -> list[Any]:
    """Resolve every binding that applies to *message_type*, in registration order."""
    return [b.resolve() for b in bindings if b.applies_to(message_type)]
