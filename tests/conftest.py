"""Shared pytest fixtures and test doubles for switchyard tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any

import pytest
import structlog

from switchyard.dispatch.mediator import Mediator
from switchyard.dispatch.publishers import SequentialPublisher
from switchyard.domain.cancellation import CancellationToken
from switchyard.domain.handlers import (
    NotificationHandler,
    PipelineBehavior,
    RequestHandler,
    RequestPostProcessor,
    RequestPreProcessor,
)
from switchyard.domain.messages import Command, Notification, Request
from switchyard.pipeline.composer import Continuation
from switchyard.registration import HandlerRegistry

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@dataclass
class Double(Request[int]):
    value: int


@dataclass
class Greet(Request[str]):
    name: str


@dataclass
class Record(Command):
    log: list[str] = field(default_factory=list)


@dataclass
class Unhandled(Request[str]):
    pass


@dataclass
class Ping(Notification):
    message: str


# ---------------------------------------------------------------------------
# Handlers and middleware
# ---------------------------------------------------------------------------


class DoubleHandler(RequestHandler[Double, int]):
    async def handle(self, request: Double, token: CancellationToken) -> int:
        return request.value * 2


class GreetHandler(RequestHandler[Greet, str]):
    async def handle(self, request: Greet, token: CancellationToken) -> str:
        return f"Handled: {request.name}"


class RecordHandler(RequestHandler[Record, None]):
    async def handle(self, request: Record, token: CancellationToken) -> None:
        request.log.append("handled")


class RecordingBehavior(PipelineBehavior):
    """Appends ``<name>-before`` / ``<name>-after`` around ``next``."""

    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    async def handle(self, request: Any, next: Continuation, token: CancellationToken) -> Any:  # noqa: A002
        self.log.append(f"{self.name}-before")
        response = await next(token)
        self.log.append(f"{self.name}-after")
        return response


class RecordingPreProcessor(RequestPreProcessor[Any]):
    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    async def process(self, request: Any, token: CancellationToken) -> None:
        self.log.append(self.name)


class RecordingPostProcessor(RequestPostProcessor[Any, Any]):
    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log
        self.responses: list[Any] = []

    async def process(self, request: Any, response: Any, token: CancellationToken) -> None:
        self.log.append(self.name)
        self.responses.append(response)


class RecordingNotificationHandler(NotificationHandler[Ping]):
    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    async def handle(self, notification: Ping, token: CancellationToken) -> None:
        self.log.append(f"{self.name}:{notification.message}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def log() -> list[str]:
    """Ordered record of pipeline events for a single test."""
    return []


@pytest.fixture
def registry() -> HandlerRegistry:
    """Registry with the basic request handlers bound."""
    return (
        HandlerRegistry()
        .add_request_handler(DoubleHandler)
        .add_request_handler(GreetHandler)
        .add_request_handler(RecordHandler)
    )


@pytest.fixture
def mediator(registry: HandlerRegistry) -> Mediator:
    """Mediator over ``registry`` with the default sequential publisher."""
    return Mediator(registry, SequentialPublisher())


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() side effects after each test."""
    package_logger = logging.getLogger("switchyard")
    handlers = package_logger.handlers[:]
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    package_logger.handlers = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate
    structlog.reset_defaults()
