"""
FastAPI application serving task handlers.
"""

import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from typed_tasks import __version__
from typed_tasks.api.routes import health_router, queues_router
from typed_tasks.handler import TaskHandler
from typed_tasks.observability.logging import setup_logging
from typed_tasks.observability.metrics import setup_metrics
from typed_tasks.observability.tracing import instrument_fastapi, setup_tracing

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    setup_logging()
    setup_metrics()
    setup_tracing()

    logger.info("Task handler app started", extra={"queues": app.state.queue_names})

    yield

    logger.info("Task handler app shutdown")


def create_app(handlers: Iterable[TaskHandler]) -> FastAPI:
    """
    Create the FastAPI application exposing one route per task handler.

    Args:
        handlers: Handlers created with TypedTasksClient.create_handler.

    Returns:
        FastAPI: The configured application instance.
    """
    handlers = list(handlers)
    queue_names = [handler.queue_name for handler in handlers]
    if len(set(queue_names)) != len(queue_names):
        raise ValueError(f"Duplicate handlers for queues: {sorted(queue_names)}")

    app = FastAPI(
        title="Typed Tasks",
        description="Handlers for typed Cloud Tasks queues",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.queue_names = sorted(queue_names)
    app.state.deployments = {handler.queue_name: handler.deployment for handler in handlers}

    app.include_router(health_router)
    app.include_router(queues_router)
    for handler in handlers:
        app.include_router(handler.router)

    instrument_fastapi(app)

    return app
