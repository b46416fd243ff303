"""Application settings."""

from enum import StrEnum

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RepositoryBackend(StrEnum):
    """Available persistence adapters for programs and snapshots."""

    IN_MEMORY = "in_memory"
    POSTGRES = "postgres"


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "Program Clone Worker"
    api_prefix: str = ""
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"
    repository_backend: RepositoryBackend = RepositoryBackend.IN_MEMORY
    postgres_dsn: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CLONE_WORKER_POSTGRES_DSN", "DATABASE_URL"),
    )
    postgres_pool_min_size: int = 1
    postgres_pool_max_size: int = 10
    week_transaction_timeout_seconds: float = 30.0
    max_workouts_per_week: int = 10
    max_concurrent_jobs: int = 1
    pubsub_emulator_host: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "CLONE_WORKER_PUBSUB_EMULATOR_HOST",
            "PUBSUB_EMULATOR_HOST",
        ),
    )
    pubsub_project_id: str = Field(
        default="test-project",
        validation_alias=AliasChoices("CLONE_WORKER_PUBSUB_PROJECT_ID", "PUBSUB_PROJECT_ID"),
    )
    pubsub_topic: str = "program-clone-jobs"
    pubsub_subscription: str = "program-clone-jobs-sub"
    pubsub_subscription_wait_attempts: int = 30
    pubsub_subscription_wait_seconds: float = 1.0

    @property
    def pull_delivery_enabled(self) -> bool:
        """Pull delivery only runs against a local Pub/Sub emulator."""

        return bool(self.pubsub_emulator_host and self.pubsub_emulator_host.strip())

    @model_validator(mode="after")
    def validate_worker_settings(self) -> "Settings":
        """Ensure backend-specific and worker limits are valid."""

        if "repository_backend" not in self.model_fields_set and self.postgres_dsn:
            # A configured database URL selects PostgreSQL unless a backend is named.
            self.repository_backend = RepositoryBackend.POSTGRES
        if self.repository_backend == RepositoryBackend.POSTGRES and not self.postgres_dsn:
            raise ValueError(
                "CLONE_WORKER_POSTGRES_DSN (or DATABASE_URL) is required when "
                "CLONE_WORKER_REPOSITORY_BACKEND=postgres."
            )
        if self.postgres_pool_min_size < 1:
            raise ValueError("CLONE_WORKER_POSTGRES_POOL_MIN_SIZE must be >= 1.")
        if self.postgres_pool_max_size < self.postgres_pool_min_size:
            raise ValueError(
                "CLONE_WORKER_POSTGRES_POOL_MAX_SIZE must be >= "
                "CLONE_WORKER_POSTGRES_POOL_MIN_SIZE."
            )
        if self.max_concurrent_jobs < 1:
            raise ValueError("CLONE_WORKER_MAX_CONCURRENT_JOBS must be >= 1.")
        if (
            self.repository_backend == RepositoryBackend.POSTGRES
            and self.max_concurrent_jobs > self.postgres_pool_max_size - 1
        ):
            # Each job holds one connection for its program lock and needs another to write.
            raise ValueError(
                "CLONE_WORKER_MAX_CONCURRENT_JOBS must be < "
                "CLONE_WORKER_POSTGRES_POOL_MAX_SIZE for postgres."
            )
        if self.week_transaction_timeout_seconds <= 0:
            raise ValueError("CLONE_WORKER_WEEK_TRANSACTION_TIMEOUT_SECONDS must be > 0.")
        if self.max_workouts_per_week < 1:
            raise ValueError("CLONE_WORKER_MAX_WORKOUTS_PER_WEEK must be >= 1.")
        if self.pubsub_subscription_wait_attempts < 1:
            raise ValueError("CLONE_WORKER_PUBSUB_SUBSCRIPTION_WAIT_ATTEMPTS must be >= 1.")
        if self.pubsub_subscription_wait_seconds < 0:
            raise ValueError("CLONE_WORKER_PUBSUB_SUBSCRIPTION_WAIT_SECONDS must be >= 0.")
        return self

    model_config = SettingsConfigDict(
        env_prefix="CLONE_WORKER_",
        extra="ignore",
        populate_by_name=True,
    )


__all__ = ["RepositoryBackend", "Settings"]
