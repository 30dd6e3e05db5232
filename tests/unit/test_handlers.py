"""
Unit tests for task handlers and handler option merging.
"""

from typing import Any

import pytest
from pydantic import BaseModel

from typed_tasks.constants import HandleStatus
from typed_tasks.handler import (
    DEFAULT_HANDLER_OPTIONS,
    HandlerFactory,
    TaskHandler,
    merge_handler_options,
)
from typed_tasks.types.handler import RateLimits, RetryConfig, TaskHandlerOptions


class EmailPayload(BaseModel):
    email: str


class TestMergeHandlerOptions:
    """Tests for merge_handler_options."""

    def test_defaults(self):
        merged = merge_handler_options(DEFAULT_HANDLER_OPTIONS)

        assert merged.memory == "512MiB"
        assert merged.timeout_seconds == 1800
        assert merged.vpc_connector is None
        assert merged.rate_limits == RateLimits(max_dispatches_per_second=500, max_concurrent_dispatches=1000)
        assert merged.retry_config == RetryConfig(
            max_attempts=10,
            min_backoff_seconds=10,
            max_backoff_seconds=3600,
            max_retry_seconds=0,
        )

    def test_later_layers_win(self):
        merged = merge_handler_options(
            DEFAULT_HANDLER_OPTIONS,
            TaskHandlerOptions(memory="1GiB"),
            TaskHandlerOptions(memory="2GiB", timeout_seconds=60),
        )

        assert merged.memory == "2GiB"
        assert merged.timeout_seconds == 60

    def test_nested_options_merge_field_by_field(self):
        merged = merge_handler_options(
            DEFAULT_HANDLER_OPTIONS,
            TaskHandlerOptions(rate_limits=RateLimits(max_concurrent_dispatches=5)),
            TaskHandlerOptions(retry_config=RetryConfig(max_attempts=3)),
        )

        assert merged.rate_limits.max_concurrent_dispatches == 5
        assert merged.rate_limits.max_dispatches_per_second == 500
        assert merged.retry_config.max_attempts == 3
        assert merged.retry_config.max_backoff_seconds == 3600

    def test_none_layers_ignored(self):
        assert merge_handler_options(DEFAULT_HANDLER_OPTIONS, None) == DEFAULT_HANDLER_OPTIONS


class TestHandlerFactory:
    """Tests for HandlerFactory."""

    async def noop(self, payload: Any) -> None:
        return None

    def test_global_and_handler_options(self):
        factory = HandlerFactory(
            {"emailQueue": EmailPayload},
            "europe-west1",
            TaskHandlerOptions(memory="1GiB", retry_config=RetryConfig(max_attempts=5)),
        )

        handler = factory(
            "emailQueue",
            self.noop,
            TaskHandlerOptions(retry_config=RetryConfig(min_backoff_seconds=1)),
        )

        assert handler.region == "europe-west1"
        assert handler.options.memory == "1GiB"
        assert handler.options.retry_config.max_attempts == 5
        assert handler.options.retry_config.min_backoff_seconds == 1
        assert handler.options.rate_limits.max_concurrent_dispatches == 1000


class TestTaskHandler:
    """Tests for TaskHandler.dispatch."""

    @pytest.fixture
    def calls(self) -> list[Any]:
        return []

    @pytest.fixture
    def handler(self, calls: list[Any]) -> TaskHandler:
        async def handle(payload: EmailPayload) -> None:
            calls.append(payload)

        return TaskHandler(
            "emailQueue",
            schema=EmailPayload,
            handler=handle,
            options=DEFAULT_HANDLER_OPTIONS,
            region="us-central1",
        )

    async def test_valid_payload(self, handler: TaskHandler, calls: list[Any]):
        status = await handler.dispatch({"data": {"email": "test@example.com"}})

        assert status is HandleStatus.SUCCEEDED
        assert calls == [EmailPayload(email="test@example.com")]

    async def test_invalid_payload_skips_handler(self, handler: TaskHandler, calls: list[Any], caplog):
        status = await handler.dispatch({"data": {"mail": "typo"}})

        assert status is HandleStatus.INVALID
        assert calls == []
        assert any("Validation error for queue emailQueue" in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize("body", [None, [], {"email": "test@example.com"}])
    async def test_missing_envelope(self, handler: TaskHandler, calls: list[Any], body: Any):
        status = await handler.dispatch(body)

        assert status is HandleStatus.INVALID
        assert calls == []

    async def test_handler_errors_propagate(self):
        async def explode(payload: EmailPayload) -> None:
            raise RuntimeError("downstream unavailable")

        handler = TaskHandler(
            "emailQueue",
            schema=EmailPayload,
            handler=explode,
            options=DEFAULT_HANDLER_OPTIONS,
            region="us-central1",
        )

        with pytest.raises(RuntimeError, match="downstream unavailable"):
            await handler.dispatch({"data": {"email": "test@example.com"}})

    def test_deployment_reports_region_and_options(self, handler: TaskHandler):
        deployment = handler.deployment

        assert deployment.queue_name == "emailQueue"
        assert deployment.region == "us-central1"
        assert deployment.options == DEFAULT_HANDLER_OPTIONS

    def test_router_exposes_queue_route(self, handler: TaskHandler):
        paths = [route.path for route in handler.router.routes]

        assert paths == ["/emailQueue"]
        assert handler.router is handler.router
