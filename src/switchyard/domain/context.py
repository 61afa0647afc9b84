"""Per-call pipeline context shared by contextual behaviors."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class PipelineContext:
    """Mutable state shared by every contextual behavior in one call.

    Created by the first contextual behavior entered, marked successful
    until something inside the chain raises. Subclass it to carry
    behavior-specific fields.
    """

    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_success: bool = True
    error_code: str | None = None
    error_message: str | None = None
    items: dict[str, Any] = field(default_factory=dict)

    def mark_failed(self, exc: BaseException, *, code: str | None = None) -> None:
        self.is_success = False
        self.error_message = str(exc) or type(exc).__name__
        if code is not None:
            self.error_code = code
        elif self.error_code is None:
            self.error_code = type(exc).__name__
