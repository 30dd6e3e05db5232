"""
Package configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from typed_tasks.constants import (
    DEFAULT_SUBMIT_BACKOFF_FACTOR,
    DEFAULT_SUBMIT_INITIAL_DELAY_SECONDS,
    DEFAULT_SUBMIT_MAX_ATTEMPTS,
    DEFAULT_SUBMIT_MAX_DELAY_SECONDS,
)


class Settings(BaseSettings):
    """Package settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TYPED_TASKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Project
    project_id: str | None = None
    region: str = "us-central1"
    service_account_email: str | None = None  # defaults to the App Engine account
    function_url_template: str = "https://{region}-{project_id}.cloudfunctions.net/{queue_name}"

    # Cloud Tasks REST transport
    cloud_tasks_base_url: str = "https://cloudtasks.googleapis.com"
    http_timeout_seconds: float = 30.0

    # Submission retries
    submit_max_attempts: int = DEFAULT_SUBMIT_MAX_ATTEMPTS
    submit_initial_delay_seconds: float = DEFAULT_SUBMIT_INITIAL_DELAY_SECONDS
    submit_backoff_factor: float = DEFAULT_SUBMIT_BACKOFF_FACTOR
    submit_max_delay_seconds: float = DEFAULT_SUBMIT_MAX_DELAY_SECONDS
    submit_randomize: bool = True

    # Observability
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "typed-tasks"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    def service_account_for(self, project_id: str) -> str:
        """Service account used for the OIDC token attached to each task."""
        return self.service_account_email or f"{project_id}@appspot.gserviceaccount.com"

    def function_url_for(self, project_id: str, region: str, queue_name: str) -> str:
        """URL of the function that handles tasks for a queue."""
        return self.function_url_template.format(
            region=region,
            project_id=project_id,
            queue_name=queue_name,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
