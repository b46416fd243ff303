"""Composition root for runtime dependencies."""

from __future__ import annotations

from program_clone_worker.application.services import (
    CloneJobDeliveryHandler,
    CloneJobService,
)
from program_clone_worker.config import RepositoryBackend, Settings
from program_clone_worker.infrastructure.messaging import (
    PubSubCloneJobPublisher,
    PubSubPullSubscriber,
)
from program_clone_worker.infrastructure.repositories import (
    InMemoryCloneRepository,
    PostgresCloneRepository,
)


def _build_repository(
    settings: Settings,
) -> InMemoryCloneRepository | PostgresCloneRepository:
    if settings.repository_backend == RepositoryBackend.POSTGRES:
        assert settings.postgres_dsn is not None
        return PostgresCloneRepository(
            dsn=settings.postgres_dsn,
            min_pool_size=settings.postgres_pool_min_size,
            max_pool_size=settings.postgres_pool_max_size,
        )
    return InMemoryCloneRepository()


def build_clone_job_service(settings: Settings) -> CloneJobService:
    """Compose the clone job service graph."""

    repository = _build_repository(settings)
    return CloneJobService(
        repository=repository,
        snapshot_store=repository,
        week_transaction_timeout_seconds=settings.week_transaction_timeout_seconds,
        max_workouts_per_week=settings.max_workouts_per_week,
        max_concurrent_jobs=settings.max_concurrent_jobs,
    )


def build_delivery_handler(settings: Settings) -> CloneJobDeliveryHandler:
    """Compose the transport-neutral delivery handler."""

    return CloneJobDeliveryHandler(build_clone_job_service(settings))


def build_pull_subscriber(
    settings: Settings,
    handler: CloneJobDeliveryHandler,
) -> PubSubPullSubscriber | None:
    """Return a pull subscriber when an emulator host is configured."""

    if not settings.pull_delivery_enabled:
        return None
    return PubSubPullSubscriber(
        handler=handler,
        project_id=settings.pubsub_project_id,
        subscription_name=settings.pubsub_subscription,
        wait_attempts=settings.pubsub_subscription_wait_attempts,
        wait_interval_seconds=settings.pubsub_subscription_wait_seconds,
        emulator_host=settings.pubsub_emulator_host,
    )


def build_job_publisher(settings: Settings) -> PubSubCloneJobPublisher:
    """Compose a publisher for the clone job topic."""

    return PubSubCloneJobPublisher(
        project_id=settings.pubsub_project_id,
        topic_name=settings.pubsub_topic,
        emulator_host=settings.pubsub_emulator_host,
    )


__all__ = [
    "build_clone_job_service",
    "build_delivery_handler",
    "build_job_publisher",
    "build_pull_subscriber",
]
