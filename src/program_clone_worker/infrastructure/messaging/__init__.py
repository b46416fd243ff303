"""Message transport adapters."""

from program_clone_worker.infrastructure.messaging.pubsub_job_publisher import (
    PubSubCloneJobPublisher,
)
from program_clone_worker.infrastructure.messaging.pubsub_pull_subscriber import (
    PubSubPullSubscriber,
)

__all__ = ["PubSubCloneJobPublisher", "PubSubPullSubscriber"]
