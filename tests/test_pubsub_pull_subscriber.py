from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

from program_clone_worker.application.services import (
    CloneJobDeliveryHandler,
    CloneJobService,
    DeliveryResult,
)
from program_clone_worker.domain.copy_status import CopyStatus
from program_clone_worker.domain.jobs import ProgramType
from program_clone_worker.infrastructure.messaging import PubSubPullSubscriber
from program_clone_worker.infrastructure.repositories import InMemoryCloneRepository


class FakeStreamingPullFuture:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def result(self, timeout: float | None = None) -> None:
        return None


class FakeSubscriberClient:
    def __init__(self, missing_lookups: int = 0) -> None:
        self.missing_lookups = missing_lookups
        self.lookups: list[str] = []
        self.callback: Callable[[Any], None] | None = None
        self.subscribed_path: str | None = None
        self.future = FakeStreamingPullFuture()
        self.closed = False

    def get_subscription(self, request: dict[str, str]) -> dict[str, str]:
        self.lookups.append(request["subscription"])
        if len(self.lookups) <= self.missing_lookups:
            raise LookupError("404 Subscription does not exist")
        return {"name": request["subscription"]}

    def subscribe(self, subscription: str, callback: Callable[[Any], None]) -> FakeStreamingPullFuture:
        self.subscribed_path = subscription
        self.callback = callback
        return self.future

    def close(self) -> None:
        self.closed = True


class FakeMessage:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.message_id = "message-1"
        self.acked = False
        self.nacked = False

    def ack(self) -> None:
        self.acked = True

    def nack(self) -> None:
        self.nacked = True


class ExplodingHandler:
    async def handle_message_data(self, data: bytes) -> DeliveryResult:
        raise RuntimeError("handler crashed")


class _UnreachableDatabaseRepository(InMemoryCloneRepository):
    async def count_weeks(self, program_type: ProgramType, program_id: str) -> int:
        raise ConnectionError("database unreachable")


def _handler(
    repository: InMemoryCloneRepository | None = None,
) -> tuple[CloneJobDeliveryHandler, InMemoryCloneRepository]:
    repository = repository or InMemoryCloneRepository()
    repository.add_program(ProgramType.STRENGTH, "program-1")
    repository.add_snapshot("community-1", {"weeks": [{"weekNumber": 1, "workouts": []}]})
    service = CloneJobService(repository=repository, snapshot_store=repository)
    return CloneJobDeliveryHandler(service), repository


def _job_bytes() -> bytes:
    return json.dumps(
        {
            "communityProgramId": "community-1",
            "programId": "program-1",
            "userId": "user-1",
            "programType": "strength",
        }
    ).encode("utf-8")


def _subscriber(
    handler: Any,
    client: FakeSubscriberClient,
    wait_attempts: int = 30,
) -> PubSubPullSubscriber:
    return PubSubPullSubscriber(
        handler=handler,
        project_id="test-project",
        subscription_name="program-clone-jobs-sub",
        wait_attempts=wait_attempts,
        wait_interval_seconds=0.0,
        subscriber_client=client,
    )


def _deliver(subscriber: PubSubPullSubscriber, client: FakeSubscriberClient, message: FakeMessage) -> bool:
    async def _run() -> bool:
        started = await subscriber.start()
        if started:
            assert client.callback is not None
            # The client library invokes callbacks from its own worker threads.
            await asyncio.to_thread(client.callback, message)
        await subscriber.stop()
        return started

    return asyncio.run(_run())


def test_successful_job_is_acked() -> None:
    handler, repository = _handler()
    client = FakeSubscriberClient()
    message = FakeMessage(_job_bytes())

    started = _deliver(_subscriber(handler, client), client, message)

    assert started
    assert client.subscribed_path == "projects/test-project/subscriptions/program-clone-jobs-sub"
    assert message.acked
    assert not message.nacked
    status = asyncio.run(repository.get_copy_status(ProgramType.STRENGTH, "program-1"))
    assert status == CopyStatus.ready()


def test_malformed_job_is_acked_and_dropped() -> None:
    handler, _ = _handler()
    client = FakeSubscriberClient()
    message = FakeMessage(b"not json")

    _deliver(_subscriber(handler, client), client, message)

    assert message.acked
    assert not message.nacked


def test_transient_failure_is_nacked() -> None:
    handler, _ = _handler(repository=_UnreachableDatabaseRepository())
    client = FakeSubscriberClient()
    message = FakeMessage(_job_bytes())

    _deliver(_subscriber(handler, client), client, message)

    assert message.nacked
    assert not message.acked


def test_unexpected_handler_error_is_nacked() -> None:
    client = FakeSubscriberClient()
    message = FakeMessage(_job_bytes())

    _deliver(_subscriber(ExplodingHandler(), client), client, message)

    assert message.nacked


def test_start_waits_for_subscription_to_appear() -> None:
    handler, _ = _handler()
    client = FakeSubscriberClient(missing_lookups=2)
    message = FakeMessage(_job_bytes())

    started = _deliver(_subscriber(handler, client), client, message)

    assert started
    assert len(client.lookups) == 3
    assert message.acked


def test_start_gives_up_after_wait_attempts() -> None:
    handler, _ = _handler()
    client = FakeSubscriberClient(missing_lookups=100)
    message = FakeMessage(_job_bytes())

    started = _deliver(_subscriber(handler, client, wait_attempts=4), client, message)

    assert not started
    assert len(client.lookups) == 4
    assert client.callback is None
    assert client.closed


def test_stop_cancels_streaming_pull_and_closes_client() -> None:
    handler, _ = _handler()
    client = FakeSubscriberClient()
    subscriber = _subscriber(handler, client)

    async def _run() -> None:
        await subscriber.start()
        assert subscriber.is_running
        await subscriber.stop()

    asyncio.run(_run())

    assert client.future.cancelled
    assert client.closed
    assert not subscriber.is_running
