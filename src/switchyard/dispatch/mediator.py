"""Mediator: the ``send``/``send_object``/``publish`` entry points.

``send`` routes a request to exactly one handler through the composed
pipeline. A request type with no handler fails before any stage runs.
``publish`` fans a notification out through the configured publisher;
having no handlers is not an error, having no publisher is.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from switchyard.config.logging import configure_logging
from switchyard.dispatch.dynamic import DynamicDispatcher
from switchyard.dispatch.publishers import create_publisher
from switchyard.domain.cancellation import CancellationToken
from switchyard.domain.errors import HandlerNotFoundError, PublisherNotConfiguredError
from switchyard.domain.messages import Command, Request
from switchyard.pipeline.composer import CallScope, compose_pipeline
from switchyard.plugins.manager import PluginManager

if TYPE_CHECKING:
    from switchyard.config.settings import SwitchyardSettings
    from switchyard.dispatch.publishers import HandlerInvocation, NotificationPublisher
    from switchyard.domain.handlers import NotificationHandler, RequestHandler
    from switchyard.registration import HandlerRegistry

logger = logging.getLogger(__name__)


class Mediator:
    """In-process dispatcher for requests, commands, and notifications.

    Parameters:
        registry: Handler, behavior, and processor bindings.
        publisher: Notification fan-out strategy. ``None`` leaves
            publishing unconfigured.

    Usage::

        registry = HandlerRegistry().add_request_handler(GetUserHandler)
        mediator = Mediator.from_settings(registry)
        user = await mediator.send(GetUser(user_id="u1"))
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        publisher: NotificationPublisher | None = None,
    ) -> None:
        self._registry = registry
        self._publisher = publisher
        self._dynamic = DynamicDispatcher(registry, self._run_pipeline)

    @classmethod
    def from_settings(
        cls,
        registry: HandlerRegistry,
        settings: SwitchyardSettings | None = None,
        *,
        setup_logging: bool = True,
        discover_plugins: bool = True,
    ) -> Mediator:
        """Bootstrap a mediator from startup settings.

        Configures logging from ``verbose`` and ``log_json``, lets the
        plugins enabled under ``[plugins]`` register into *registry*, and
        selects the publisher strategy named by ``publisher``. Embedding
        applications that own logging or registration pass
        ``setup_logging=False`` or ``discover_plugins=False``.
        """
        if settings is None:
            from switchyard.config.settings import SwitchyardSettings

            settings = SwitchyardSettings.load()
        if setup_logging:
            configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if discover_plugins:
            PluginManager.from_config(settings.plugins, registry)
        logger.debug("Using %s notification publisher", settings.publisher)
        return cls(registry, create_publisher(settings.publisher))

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def publisher(self) -> NotificationPublisher | None:
        return self._publisher

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def send[TResponse](
        self,
        request: Request[TResponse],
        token: CancellationToken | None = None,
    ) -> TResponse:
        """Dispatch *request* to its handler and return the response.

        Commands return None. Raises HandlerNotFoundError when no handler
        is bound to the request type.
        """
        if not isinstance(request, Request):
            msg = (
                f"{type(request).__name__} is not a Request; "
                "use send_object() for untyped payloads"
            )
            raise TypeError(msg)
        token = token if token is not None else CancellationToken()
        request_type = type(request)
        binding = self._registry.resolve_request_binding(request_type)
        if binding is None:
            raise HandlerNotFoundError(request_type)
        token.raise_if_cancelled()
        return await self._run_pipeline(request, binding.resolve(), token)

    async def send_object(
        self,
        request: object,
        token: CancellationToken | None = None,
    ) -> Any:
        """Dispatch a payload whose request type is only known at run time.

        Returns the untyped response, or None for commands. Failures while
        resolving the handler are wrapped in InvocationError (see ``inner``);
        failures inside the pipeline propagate unchanged.
        """
        token = token if token is not None else CancellationToken()
        return await self._dynamic.send(request, token)

    async def publish(
        self,
        notification: Any,
        token: CancellationToken | None = None,
    ) -> None:
        """Deliver *notification* to every subscribed handler."""
        if self._publisher is None:
            raise PublisherNotConfiguredError()
        token = token if token is not None else CancellationToken()
        token.raise_if_cancelled()

        handlers = self._registry.resolve_notification_handlers(type(notification))
        if not handlers:
            logger.debug("No handlers for %s", type(notification).__name__)
            return
        invocations = [_invocation(handler) for handler in handlers]
        await self._publisher.publish(invocations, notification, token)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run_pipeline(
        self,
        request: Any,
        handler: RequestHandler[Any, Any],
        token: CancellationToken,
    ) -> Any:
        request_type = type(request)
        pipeline = compose_pipeline(
            request,
            lambda t: handler.handle(request, t),
            behaviors=self._registry.resolve_behaviors(request_type),
            pre_processors=self._registry.resolve_pre_processors(request_type),
            post_processors=self._registry.resolve_post_processors(request_type),
            scope=CallScope(request_type),
        )
        response = await pipeline(token)
        if isinstance(request, Command):
            return None
        return response


def _invocation(handler: NotificationHandler[Any]) -> HandlerInvocation:
    async def invoke(notification: Any, token: CancellationToken) -> None:
        await handler.handle(notification, token)

    return invoke
