"""switchyard: in-process request/notification dispatch.

Requests go to exactly one handler through a chain of pipeline behaviors;
notifications fan out to zero or more handlers via a publisher strategy.
"""

from switchyard.dispatch.mediator import Mediator
from switchyard.dispatch.publishers import (
    BackgroundPublisher,
    NotificationPublisher,
    ParallelPublisher,
    SequentialPublisher,
)
from switchyard.domain.cancellation import CancellationToken
from switchyard.domain.context import PipelineContext
from switchyard.domain.errors import (
    HandlerNotFoundError,
    InvocationError,
    OperationCancelledError,
    PublisherNotConfiguredError,
    RegistrationError,
    SwitchyardError,
)
from switchyard.domain.handlers import (
    NotificationHandler,
    PipelineBehavior,
    RequestHandler,
    RequestPostProcessor,
    RequestPreProcessor,
)
from switchyard.domain.messages import Command, Notification, Request
from switchyard.pipeline.contextual import ContextualBehavior
from switchyard.registration import HandlerRegistry, Lifetime

__all__ = [
    "BackgroundPublisher",
    "CancellationToken",
    "Command",
    "ContextualBehavior",
    "HandlerNotFoundError",
    "HandlerRegistry",
    "InvocationError",
    "Lifetime",
    "Mediator",
    "Notification",
    "NotificationHandler",
    "NotificationPublisher",
    "OperationCancelledError",
    "ParallelPublisher",
    "PipelineBehavior",
    "PipelineContext",
    "PublisherNotConfiguredError",
    "RegistrationError",
    "Request",
    "RequestHandler",
    "RequestPostProcessor",
    "RequestPreProcessor",
    "SequentialPublisher",
    "SwitchyardError",
]
