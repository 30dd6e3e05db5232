"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from typed_tasks.api.main import create_app
from typed_tasks.config import Settings
from typed_tasks.factory import TypedTasksClient, create_typed_tasks
from typed_tasks.handler import TaskHandler
from typed_tasks.scheduling.submission import RetryPolicy
from typed_tasks.transport.memory import InMemoryTransport
from typed_tasks.types.task import TaskDefinition, TaskSchedulerOptions

PROJECT_ID = "demo-project"
REGION = "us-central1"
NOW_MS = 1_700_000_000_000


class EmailPayload(BaseModel):
    email: str


class ReportPayload(BaseModel):
    report_id: str
    pages: int = 1


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int = NOW_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class RecordingSleep:
    """Awaitable sleep that records requested delays instead of sleeping."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        project_id=PROJECT_ID,
        region=REGION,
        log_level="DEBUG",
        log_format="console",
        submit_randomize=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry_policy() -> RetryPolicy:
    """Deterministic retry policy (no jitter)."""
    return RetryPolicy(
        max_attempts=4,
        initial_delay_seconds=1.0,
        factor=2.0,
        max_delay_seconds=10.0,
        randomize=False,
    )


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture
def definitions() -> dict[str, Any]:
    """Task definitions covering each deduplication mode."""
    return {
        "emailQueue": TaskDefinition(
            schema=EmailPayload,
            options=TaskSchedulerOptions(deduplication_window_seconds=60),
        ),
        "reportQueue": TaskDefinition(
            schema=ReportPayload,
            options=TaskSchedulerOptions(use_deduplication=True),
        ),
        "plainQueue": EmailPayload,
    }


@pytest.fixture
def tasks_client(
    transport: InMemoryTransport,
    definitions: dict[str, Any],
    test_settings: Settings,
    retry_policy: RetryPolicy,
    clock: FakeClock,
    recording_sleep: RecordingSleep,
) -> TypedTasksClient:
    """Typed tasks client wired to the in-memory transport."""
    return create_typed_tasks(
        transport,
        definitions,
        project_id=PROJECT_ID,
        region=REGION,
        retry_policy=retry_policy,
        settings=test_settings,
        clock=clock,
        sleep=recording_sleep,
    )


@pytest.fixture
def received() -> list[tuple[str, Any]]:
    """Payloads delivered to business handlers, as (queue_name, payload)."""
    return []


@pytest.fixture
def handlers(tasks_client: TypedTasksClient, received: list[tuple[str, Any]]) -> list[TaskHandler]:
    """Handlers for every defined queue that record what they receive."""

    def recorder(queue_name: str):
        async def handle(payload: Any) -> None:
            received.append((queue_name, payload))

        return handle

    return [
        tasks_client.create_handler(queue_name, recorder(queue_name))
        for queue_name in sorted(tasks_client.queue_names)
    ]


@pytest.fixture
def app(handlers: list[TaskHandler]) -> FastAPI:
    """Create a FastAPI app serving the test handlers."""
    return create_app(handlers)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
