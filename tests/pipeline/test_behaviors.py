"""Tests for the built-in LoggingBehavior."""

from __future__ import annotations

from typing import Any

import pytest
from structlog.testing import capture_logs

from switchyard.domain.cancellation import CancellationToken
from switchyard.pipeline.behaviors import LoggingBehavior
from switchyard.pipeline.composer import compose_pipeline
from tests.conftest import Double


class TestLoggingBehavior:
    @pytest.mark.asyncio
    async def test_logs_handling_and_handled(self) -> None:
        async def handler(token: CancellationToken) -> int:
            return 10

        with capture_logs() as logs:
            result = await compose_pipeline(
                Double(5), handler, behaviors=[LoggingBehavior()]
            )(CancellationToken())

        assert result == 10
        events = [entry["event"] for entry in logs]
        assert events == ["request.handling", "request.handled"]
        assert logs[1]["request_type"] == "Double"
        assert logs[1]["response_type"] == "int"
        assert "duration_ms" in logs[1]

    @pytest.mark.asyncio
    async def test_logs_failure_and_reraises(self) -> None:
        async def handler(token: CancellationToken) -> Any:
            raise RuntimeError("nope")

        with capture_logs() as logs, pytest.raises(RuntimeError, match="nope"):
            await compose_pipeline(Double(5), handler, behaviors=[LoggingBehavior()])(
                CancellationToken()
            )

        assert logs[-1]["event"] == "request.failed"
        assert logs[-1]["error"] == "nope"
        assert logs[-1]["log_level"] == "warning"
