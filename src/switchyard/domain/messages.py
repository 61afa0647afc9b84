"""Message markers: requests, commands, and notifications.

Messages are plain caller-owned data. The engine never mutates or
retains them beyond a single call.
"""

from __future__ import annotations


class Request[TResponse]:
    """Marker for an operation expecting exactly one ``TResponse``.

    Usage::

        @dataclass
        class GetUser(Request[User]):
            user_id: str
    """


class Command(Request[None]):
    """Marker for a request that produces no response value."""


class Notification:
    """Marker for a broadcast event with zero or more subscribers."""
