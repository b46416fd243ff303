from __future__ import annotations

import asyncio
import base64
import json

import pytest

from program_clone_worker.application.services import (
    CloneJobDeliveryHandler,
    CloneJobService,
    DeliveryOutcome,
)
from program_clone_worker.domain.copy_status import CopyStatus
from program_clone_worker.domain.errors import MalformedCloneJobError
from program_clone_worker.domain.jobs import ProgramType
from program_clone_worker.infrastructure.repositories import InMemoryCloneRepository

_SNAPSHOT = {
    "weeks": [
        {
            "weekNumber": 1,
            "workouts": [
                {
                    "name": "Full body",
                    "dayNumber": 1,
                    "exercises": [
                        {
                            "name": "Deadlift",
                            "exerciseDefinitionId": "def-deadlift",
                            "order": 1,
                            "prescribedSets": [{"setNumber": 1, "reps": "3"}],
                        }
                    ],
                }
            ],
        }
    ]
}


def _job_bytes(**overrides: str) -> bytes:
    payload = {
        "communityProgramId": "community-1",
        "programId": "program-1",
        "userId": "user-1",
        "programType": "strength",
    }
    payload.update(overrides)
    return json.dumps(payload).encode("utf-8")


def _envelope(data: bytes) -> dict[str, object]:
    return {
        "message": {"data": base64.b64encode(data).decode("ascii"), "messageId": "m-1"},
        "subscription": "projects/test-project/subscriptions/program-clone-jobs-sub",
    }


class _UnreachableDatabaseRepository(InMemoryCloneRepository):
    async def count_weeks(self, program_type: ProgramType, program_id: str) -> int:
        raise ConnectionError("database unreachable")


class _ClosingRepository(InMemoryCloneRepository):
    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _handler(
    repository: InMemoryCloneRepository | None = None,
    snapshot: dict[str, object] | None = _SNAPSHOT,
    with_program: bool = True,
) -> tuple[CloneJobDeliveryHandler, InMemoryCloneRepository]:
    repository = repository or InMemoryCloneRepository()
    if with_program:
        repository.add_program(ProgramType.STRENGTH, "program-1")
    if snapshot is not None:
        repository.add_snapshot("community-1", snapshot)
    service = CloneJobService(repository=repository, snapshot_store=repository)
    return CloneJobDeliveryHandler(service), repository


def _status(repository: InMemoryCloneRepository) -> CopyStatus:
    return asyncio.run(repository.get_copy_status(ProgramType.STRENGTH, "program-1"))


def test_decode_push_envelope_returns_message_bytes() -> None:
    data = _job_bytes()

    assert CloneJobDeliveryHandler.decode_push_envelope(_envelope(data)) == data


@pytest.mark.parametrize(
    "body",
    [
        [],
        {},
        {"message": "hello"},
        {"message": {}},
        {"message": {"data": ""}},
        {"message": {"data": "***not-base64***"}},
    ],
)
def test_decode_push_envelope_rejects_malformed_bodies(body: object) -> None:
    with pytest.raises(MalformedCloneJobError):
        CloneJobDeliveryHandler.decode_push_envelope(body)


def test_successful_job_is_acked() -> None:
    handler, repository = _handler()

    result = asyncio.run(handler.handle_push(_envelope(_job_bytes())))

    assert result.outcome is DeliveryOutcome.ACK
    assert result.detail == "ready"
    assert result.job is not None
    assert result.job.destination_program_id == "program-1"
    assert _status(repository) == CopyStatus.ready()


def test_replayed_job_is_acked_again() -> None:
    handler, _ = _handler()
    asyncio.run(handler.handle_message_data(_job_bytes()))

    result = asyncio.run(handler.handle_message_data(_job_bytes()))

    assert result.outcome is DeliveryOutcome.ACK


def test_malformed_envelope_is_rejected_without_status_write() -> None:
    handler, repository = _handler()

    result = asyncio.run(handler.handle_push({"message": {}}))

    assert result.outcome is DeliveryOutcome.REJECT
    assert result.job is None
    assert _status(repository) == CopyStatus.cloning()


def test_job_with_missing_fields_is_rejected_without_status_write() -> None:
    handler, repository = _handler()
    data = json.dumps({"programId": "program-1", "programType": "strength"}).encode("utf-8")

    result = asyncio.run(handler.handle_message_data(data))

    assert result.outcome is DeliveryOutcome.REJECT
    assert "communityProgramId" in result.detail
    assert repository.status_history(ProgramType.STRENGTH, "program-1") == []


def test_missing_snapshot_is_rejected_and_marked_failed() -> None:
    handler, repository = _handler(snapshot=None)

    result = asyncio.run(handler.handle_message_data(_job_bytes()))

    assert result.outcome is DeliveryOutcome.REJECT
    assert "not found" in result.detail
    assert _status(repository) == CopyStatus.failed()


def test_invalid_snapshot_is_rejected_and_marked_failed() -> None:
    handler, repository = _handler(snapshot={"weeks": [{"workouts": []}]})

    result = asyncio.run(handler.handle_message_data(_job_bytes()))

    assert result.outcome is DeliveryOutcome.REJECT
    assert "weekNumber" in result.detail
    assert _status(repository) == CopyStatus.failed()


def test_partial_clone_is_rejected() -> None:
    repository = InMemoryCloneRepository()
    handler, _ = _handler(
        repository=repository,
        snapshot={"weeks": [{"weekNumber": 1}, {"weekNumber": 2}]},
    )
    repository.add_week(ProgramType.STRENGTH, "program-1", 1)

    result = asyncio.run(handler.handle_message_data(_job_bytes()))

    assert result.outcome is DeliveryOutcome.REJECT
    assert result.detail == "Partial clone detected: 1/2 weeks"
    assert _status(repository) == CopyStatus.failed()


def test_transient_failure_is_retried_and_marked_failed() -> None:
    handler, repository = _handler(repository=_UnreachableDatabaseRepository())

    result = asyncio.run(handler.handle_message_data(_job_bytes()))

    assert result.outcome is DeliveryOutcome.RETRY
    assert result.detail == "database unreachable"
    assert _status(repository) == CopyStatus.failed()


def test_failed_status_write_is_swallowed() -> None:
    handler, repository = _handler(snapshot=None, with_program=False)

    result = asyncio.run(handler.handle_message_data(_job_bytes()))

    assert result.outcome is DeliveryOutcome.REJECT
    assert result.detail == "Snapshot community-1 not found."
    assert _status(repository) == CopyStatus.not_found()


def test_removed_destination_program_is_rejected_without_status_write() -> None:
    handler, repository = _handler(with_program=False)

    result = asyncio.run(handler.handle_message_data(_job_bytes()))

    assert result.outcome is DeliveryOutcome.REJECT
    assert result.detail == "strength program program-1 not found."
    assert repository.status_history(ProgramType.STRENGTH, "program-1") == []
    assert repository.weeks_for(ProgramType.STRENGTH, "program-1") == []


def test_shutdown_closes_repository() -> None:
    repository = _ClosingRepository()
    handler, _ = _handler(repository=repository)

    asyncio.run(handler.shutdown())

    assert repository.closed
