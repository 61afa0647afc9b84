"""Tests for HandlerRegistry: bindings, inference, lifetimes, resolution."""

from __future__ import annotations

from typing import Any

import pytest

from switchyard.domain.cancellation import CancellationToken
from switchyard.domain.errors import RegistrationError
from switchyard.domain.handlers import (
    NotificationHandler,
    RequestHandler,
    RequestPreProcessor,
)
from switchyard.registration import HandlerRegistry, Lifetime, infer_message_type
from tests.conftest import (
    Double,
    DoubleHandler,
    Greet,
    GreetHandler,
    Ping,
    RecordingBehavior,
    RecordingNotificationHandler,
    RecordingPreProcessor,
)


class _GreetPreProcessor(RequestPreProcessor[Greet]):
    async def process(self, request: Greet, token: CancellationToken) -> None:
        pass


class _BaseGreetHandler(GreetHandler):
    """Inherits the generic base through an intermediate class."""


class TestInference:
    def test_request_type_from_generic_base(self) -> None:
        assert infer_message_type(DoubleHandler, RequestHandler) is Double

    def test_inference_walks_mro(self) -> None:
        assert infer_message_type(_BaseGreetHandler, RequestHandler) is Greet

    def test_inference_from_instance(self) -> None:
        assert infer_message_type(DoubleHandler(), RequestHandler) is Double

    def test_any_argument_is_open(self) -> None:
        assert infer_message_type(RecordingPreProcessor, RequestPreProcessor) is None

    def test_factory_cannot_be_inferred(self) -> None:
        with pytest.raises(RegistrationError, match="request_type"):
            HandlerRegistry().add_request_handler(lambda: DoubleHandler())


class TestRequestHandlers:
    def test_resolve_registered(self) -> None:
        registry = HandlerRegistry().add_request_handler(DoubleHandler)
        assert isinstance(registry.resolve_request_handler(Double), DoubleHandler)

    def test_resolve_missing_returns_none(self) -> None:
        assert HandlerRegistry().resolve_request_handler(Double) is None

    def test_last_registration_wins(self) -> None:
        class Other(RequestHandler[Double, int]):
            async def handle(self, request: Double, token: CancellationToken) -> int:
                return 0

        registry = HandlerRegistry().add_request_handler(DoubleHandler).add_request_handler(Other)
        assert isinstance(registry.resolve_request_handler(Double), Other)

    def test_explicit_type_with_factory(self) -> None:
        registry = HandlerRegistry().add_request_handler(lambda: DoubleHandler(), Double)
        assert isinstance(registry.resolve_request_handler(Double), DoubleHandler)

    def test_class_must_be_a_request_handler(self) -> None:
        with pytest.raises(RegistrationError, match="must subclass RequestHandler"):
            HandlerRegistry().add_request_handler(dict, Double)

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(RegistrationError):
            HandlerRegistry().add_request_handler(42, Double)

    def test_factory_returning_wrong_type_fails_on_resolve(self) -> None:
        registry = HandlerRegistry().add_request_handler(lambda: object(), Double)
        with pytest.raises(RegistrationError, match="returned object"):
            registry.resolve_request_handler(Double)

    def test_decorator_registration(self) -> None:
        registry = HandlerRegistry()

        @registry.request_handler()
        class Decorated(RequestHandler[Greet, str]):
            async def handle(self, request: Greet, token: CancellationToken) -> str:
                return "decorated"

        assert isinstance(registry.resolve_request_handler(Greet), Decorated)
        assert registry.registered_request_types() == [Greet]


class TestLifetimes:
    def test_transient_class_new_instance_each_time(self) -> None:
        registry = HandlerRegistry().add_request_handler(DoubleHandler)
        assert registry.resolve_request_handler(Double) is not registry.resolve_request_handler(Double)

    def test_singleton_class_cached(self) -> None:
        registry = HandlerRegistry().add_request_handler(DoubleHandler, lifetime=Lifetime.SINGLETON)
        assert registry.resolve_request_handler(Double) is registry.resolve_request_handler(Double)

    def test_instance_always_shared(self) -> None:
        handler = DoubleHandler()
        registry = HandlerRegistry().add_request_handler(handler, lifetime=Lifetime.TRANSIENT)
        assert registry.resolve_request_handler(Double) is handler

    def test_lifetime_accepts_string(self) -> None:
        registry = HandlerRegistry().add_request_handler(DoubleHandler, lifetime="singleton")  # type: ignore[arg-type]
        assert registry.resolve_request_handler(Double) is registry.resolve_request_handler(Double)


class TestMiddlewareResolution:
    def test_behaviors_in_registration_order(self) -> None:
        log: list[str] = []
        first = RecordingBehavior("first", log)
        second = RecordingBehavior("second", log)
        greet_only = RecordingBehavior("greet", log)
        registry = (
            HandlerRegistry()
            .add_behavior(first)
            .add_behavior(greet_only, Greet)
            .add_behavior(second)
        )
        assert registry.resolve_behaviors(Double) == [first, second]
        assert registry.resolve_behaviors(Greet) == [first, greet_only, second]

    def test_behavior_must_be_pipeline_behavior(self) -> None:
        with pytest.raises(RegistrationError):
            HandlerRegistry().add_behavior(DoubleHandler)

    def test_pre_processor_type_inferred(self) -> None:
        registry = HandlerRegistry().add_pre_processor(_GreetPreProcessor)
        assert registry.resolve_pre_processors(Double) == []
        assert len(registry.resolve_pre_processors(Greet)) == 1

    def test_open_pre_processor_applies_everywhere(self) -> None:
        processor = RecordingPreProcessor("pre", [])
        registry = HandlerRegistry().add_pre_processor(processor)
        assert registry.resolve_pre_processors(Double) == [processor]
        assert registry.resolve_pre_processors(Greet) == [processor]


class TestNotificationHandlers:
    def test_multiple_handlers_ordered(self) -> None:
        log: list[str] = []
        h1 = RecordingNotificationHandler("h1", log)
        h2 = RecordingNotificationHandler("h2", log)
        registry = HandlerRegistry().add_notification_handler(h1).add_notification_handler(h2)
        assert registry.resolve_notification_handlers(Ping) == [h1, h2]

    def test_base_notification_handler_receives_subclass(self) -> None:
        class LoudPing(Ping):
            pass

        handler = RecordingNotificationHandler("h", [])
        registry = HandlerRegistry().add_notification_handler(handler)
        assert registry.resolve_notification_handlers(LoudPing) == [handler]

    def test_no_handlers_resolves_empty(self) -> None:
        assert HandlerRegistry().resolve_notification_handlers(Ping) == []

    def test_uninferrable_notification_handler_rejected(self) -> None:
        class Generic(NotificationHandler[Any]):
            async def handle(self, notification: Any, token: CancellationToken) -> None:
                pass

        with pytest.raises(RegistrationError, match="notification_type"):
            HandlerRegistry().add_notification_handler(Generic)

    def test_decorator_registration(self) -> None:
        registry = HandlerRegistry()

        @registry.notification_handler(Ping)
        class OnPing(NotificationHandler[Ping]):
            async def handle(self, notification: Ping, token: CancellationToken) -> None:
                pass

        assert [type(h) for h in registry.resolve_notification_handlers(Ping)] == [OnPing]


class TestVersion:
    def test_version_increments_on_registration(self) -> None:
        registry = HandlerRegistry()
        before = registry.version
        registry.add_request_handler(DoubleHandler)
        registry.add_behavior(RecordingBehavior("b", []))
        assert registry.version == before + 2
