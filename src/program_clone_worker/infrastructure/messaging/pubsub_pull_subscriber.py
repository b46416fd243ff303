"""Streaming-pull consumer for clone jobs on a Pub/Sub subscription."""

from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import CancelledError
from typing import Any

from program_clone_worker.application.services.delivery import (
    CloneJobDeliveryHandler,
    DeliveryOutcome,
)

logger = logging.getLogger(__name__)


def _create_subscriber_client(emulator_host: str | None) -> Any:
    if emulator_host:
        os.environ.setdefault("PUBSUB_EMULATOR_HOST", emulator_host)
    try:
        from google.cloud import pubsub_v1  # type: ignore[import-untyped]
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            "google-cloud-pubsub is required for pull delivery. "
            "Install project dependencies first."
        ) from exc
    return pubsub_v1.SubscriberClient()


class PubSubPullSubscriber:
    """Feed messages from one subscription into the delivery handler.

    The client invokes the message callback on its own thread pool. Each
    message is handed to the worker's event loop and the callback blocks until
    the job finishes, so the ack or nack reflects the job outcome.
    """

    def __init__(
        self,
        handler: CloneJobDeliveryHandler,
        project_id: str,
        subscription_name: str,
        *,
        wait_attempts: int = 30,
        wait_interval_seconds: float = 1.0,
        shutdown_timeout_seconds: float = 10.0,
        emulator_host: str | None = None,
        subscriber_client: Any | None = None,
    ) -> None:
        if not project_id.strip():
            raise ValueError("project_id cannot be empty.")
        if not subscription_name.strip():
            raise ValueError("subscription_name cannot be empty.")

        self._handler = handler
        self._subscription_path = f"projects/{project_id}/subscriptions/{subscription_name}"
        self._wait_attempts = max(wait_attempts, 1)
        self._wait_interval_seconds = max(wait_interval_seconds, 0.0)
        self._shutdown_timeout_seconds = max(shutdown_timeout_seconds, 0.0)
        self._emulator_host = emulator_host
        self._client = subscriber_client
        self._loop: asyncio.AbstractEventLoop | None = None
        self._streaming_pull_future: Any | None = None

    @property
    def subscription_path(self) -> str:
        return self._subscription_path

    @property
    def is_running(self) -> bool:
        return self._streaming_pull_future is not None

    async def start(self) -> bool:
        """Wait for the subscription and attach the streaming pull.

        Returns ``False`` when the subscription never appeared.
        """

        if self._streaming_pull_future is not None:
            return True

        self._loop = asyncio.get_running_loop()
        if self._client is None:
            self._client = _create_subscriber_client(self._emulator_host)
        client = self._client

        for attempt in range(1, self._wait_attempts + 1):
            try:
                await asyncio.to_thread(
                    client.get_subscription,
                    request={"subscription": self._subscription_path},
                )
                break
            except Exception as exc:  # noqa: BLE001
                logger.info(
                    "Waiting for subscription %s (attempt %s/%s): %s",
                    self._subscription_path,
                    attempt,
                    self._wait_attempts,
                    exc,
                )
                if attempt < self._wait_attempts:
                    await asyncio.sleep(self._wait_interval_seconds)
        else:
            logger.error(
                "Subscription %s not available after %s attempts; pull delivery disabled.",
                self._subscription_path,
                self._wait_attempts,
            )
            return False

        self._streaming_pull_future = client.subscribe(
            self._subscription_path,
            callback=self._on_message,
        )
        logger.info("Listening for clone jobs on %s.", self._subscription_path)
        return True

    async def stop(self) -> None:
        """Cancel the streaming pull and close the client."""

        future = self._streaming_pull_future
        self._streaming_pull_future = None
        if future is not None:
            future.cancel()
            await asyncio.to_thread(self._await_shutdown, future)
            logger.info("Stopped listening on %s.", self._subscription_path)

        client = self._client
        self._client = None
        if client is not None:
            await asyncio.to_thread(client.close)

    def _on_message(self, message: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            message.nack()
            return

        future = asyncio.run_coroutine_threadsafe(
            self._handler.handle_message_data(message.data),
            loop,
        )
        try:
            result = future.result()
        except Exception:  # noqa: BLE001
            logger.exception(
                "Unexpected error handling message %s from %s.",
                getattr(message, "message_id", "<unknown>"),
                self._subscription_path,
            )
            message.nack()
            return

        if result.outcome is DeliveryOutcome.RETRY:
            message.nack()
        else:
            message.ack()

    def _await_shutdown(self, future: Any) -> None:
        try:
            future.result(timeout=self._shutdown_timeout_seconds)
        except (CancelledError, TimeoutError):
            pass
        except Exception:  # noqa: BLE001
            logger.exception("Streaming pull on %s ended with an error.", self._subscription_path)


__all__ = ["PubSubPullSubscriber"]
