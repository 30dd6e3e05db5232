"""
API module.
Contains the FastAPI application that serves task handlers.
"""

from typed_tasks.api.main import create_app

__all__ = ["create_app"]
