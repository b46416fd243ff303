"""Pub/Sub publisher for clone jobs."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any

from program_clone_worker.domain.jobs import CloneJob
from program_clone_worker.domain.ports import CloneJobPublisher

logger = logging.getLogger(__name__)


class PubSubCloneJobPublisher(CloneJobPublisher):
    """Publish clone jobs as UTF-8 JSON onto one topic."""

    def __init__(
        self,
        project_id: str,
        topic_name: str,
        *,
        emulator_host: str | None = None,
        publish_timeout_seconds: float = 30.0,
        publisher_client: Any | None = None,
    ) -> None:
        if not project_id.strip():
            raise ValueError("project_id cannot be empty.")
        if not topic_name.strip():
            raise ValueError("topic_name cannot be empty.")

        self._topic_path = f"projects/{project_id}/topics/{topic_name}"
        self._publish_timeout_seconds = publish_timeout_seconds

        if publisher_client is None:
            if emulator_host:
                os.environ.setdefault("PUBSUB_EMULATOR_HOST", emulator_host)
            try:
                from google.cloud import pubsub_v1  # type: ignore[import-untyped]
            except ModuleNotFoundError as exc:
                raise RuntimeError(
                    "google-cloud-pubsub is required to publish clone jobs. "
                    "Install project dependencies first."
                ) from exc
            publisher_client = pubsub_v1.PublisherClient()
        self._client = publisher_client

    @property
    def topic_path(self) -> str:
        return self._topic_path

    async def publish(self, job: CloneJob) -> str:
        """Publish one job and wait for the server-assigned message id."""

        data = json.dumps(job.to_payload(), separators=(",", ":")).encode("utf-8")
        message_id = await asyncio.to_thread(self._publish_sync, data)
        logger.info(
            "Published %s clone job for program %s as message %s.",
            job.program_type.value,
            job.destination_program_id,
            message_id,
        )
        return message_id

    def _publish_sync(self, data: bytes) -> str:
        future = self._client.publish(self._topic_path, data)
        return str(future.result(timeout=self._publish_timeout_seconds))


__all__ = ["PubSubCloneJobPublisher"]
