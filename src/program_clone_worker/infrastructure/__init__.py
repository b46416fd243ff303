"""Infrastructure layer public API."""

from program_clone_worker.infrastructure.messaging import (
    PubSubCloneJobPublisher,
    PubSubPullSubscriber,
)
from program_clone_worker.infrastructure.repositories import (
    InMemoryCloneRepository,
    PostgresCloneRepository,
)

__all__ = [
    "InMemoryCloneRepository",
    "PostgresCloneRepository",
    "PubSubCloneJobPublisher",
    "PubSubPullSubscriber",
]
