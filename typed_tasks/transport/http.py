"""
Cloud Tasks v2 REST transport built on httpx.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import httpx

from typed_tasks.config import get_settings
from typed_tasks.constants import ALREADY_EXISTS_MARKER
from typed_tasks.exceptions import TaskAlreadyExistsError, TransportError
from typed_tasks.transport.base import queue_path, task_path
from typed_tasks.types.task import CloudTask

logger = logging.getLogger(__name__)

# Returns a bearer token for the Cloud Tasks API
TokenProvider = Callable[[], Awaitable[str]]


def _to_rest(task: CloudTask) -> dict[str, Any]:
    """Convert a task to its REST representation (RFC 3339 schedule time)."""
    body = task.to_wire()
    if task.schedule_time is not None:
        scheduled = datetime.fromtimestamp(task.schedule_time.seconds, tz=UTC)
        body["scheduleTime"] = scheduled.strftime("%Y-%m-%dT%H:%M:%SZ")
    return body


def _error_detail(response: httpx.Response) -> tuple[str, str]:
    """Extract (status, message) from a Google API error response."""
    try:
        error = response.json().get("error", {})
    except ValueError:
        return "", response.text[:500]
    return str(error.get("status", "")), str(error.get("message", response.text[:500]))


class HttpCloudTasksTransport:
    """
    Creates tasks through the Cloud Tasks REST API.

    Authentication is delegated to a token provider so that any credentials
    mechanism can be plugged in.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the transport.

        Args:
            token_provider: Async callable returning an OAuth2 access token.
            base_url: API root. Defaults to settings.cloud_tasks_base_url.
            timeout: Request timeout in seconds.
            client: Optional pre-configured httpx client. Owned by the caller.
        """
        settings = get_settings()

        self._token_provider = token_provider
        self._base_url = (base_url or settings.cloud_tasks_base_url).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout or settings.http_timeout_seconds,
        )

    def queue_path(self, project: str, location: str, queue: str) -> str:
        return queue_path(project, location, queue)

    def task_path(self, project: str, location: str, queue: str, task: str) -> str:
        return task_path(project, location, queue, task)

    async def create_task(self, parent: str, task: CloudTask) -> CloudTask:
        """
        Create a task in the given queue.

        Raises:
            TaskAlreadyExistsError: If the task name is already taken.
            TransportError: For any other failure.
        """
        token = await self._token_provider()
        url = f"{self._base_url}/v2/{parent}/tasks"

        try:
            response = await self._client.post(
                url,
                json={"task": _to_rest(task)},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Cloud Tasks request failed: {e}") from e

        if response.is_error:
            status, message = _error_detail(response)
            if response.status_code == 409 or status == ALREADY_EXISTS_MARKER:
                raise TaskAlreadyExistsError(
                    f"{ALREADY_EXISTS_MARKER}: {message}",
                    status_code=response.status_code,
                )
            raise TransportError(
                f"Cloud Tasks returned HTTP {response.status_code} {status}: {message}",
                status_code=response.status_code,
            )

        created_name = response.json().get("name", task.name)
        logger.debug("Created task", extra={"parent": parent, "task_name": created_name})
        return task.model_copy(update={"name": created_name})

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpCloudTasksTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
