"""
API routes module.
"""

from typed_tasks.api.routes.health import router as health_router
from typed_tasks.api.routes.queues import router as queues_router

__all__ = ["health_router", "queues_router"]
