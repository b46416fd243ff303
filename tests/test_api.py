from __future__ import annotations

import asyncio
import base64
import json
from uuid import uuid4

from fastapi.testclient import TestClient

from program_clone_worker.api.dependencies import get_delivery_handler, get_settings
from program_clone_worker.domain.copy_status import CopyStatus
from program_clone_worker.domain.jobs import ProgramType
from program_clone_worker.main import app

_SNAPSHOT = {
    "weeks": [
        {
            "weekNumber": 1,
            "sessions": [{"dayNumber": 1, "name": "Recovery spin", "targetDuration": 40}],
        },
        {
            "weekNumber": 2,
            "sessions": [{"dayNumber": 1, "name": "Sweet spot", "targetDuration": 60}],
        },
    ]
}


def _reset_singletons() -> None:
    get_delivery_handler.cache_clear()
    get_settings.cache_clear()


def _envelope(job: dict[str, str]) -> dict[str, object]:
    data = base64.b64encode(json.dumps(job).encode("utf-8")).decode("ascii")
    return {"message": {"data": data, "messageId": f"msg-{uuid4()}"}}


def _cardio_job(program_id: str, snapshot_id: str) -> dict[str, str]:
    return {
        "communityProgramId": snapshot_id,
        "programId": program_id,
        "userId": "user-1",
        "programType": "cardio",
    }


def _seed(program_id: str, snapshot_id: str) -> None:
    repository = get_delivery_handler().service._repository
    repository.add_program(ProgramType.CARDIO, program_id)  # type: ignore[attr-defined]
    repository.add_snapshot(snapshot_id, _SNAPSHOT)  # type: ignore[attr-defined]


def test_root_health_check() -> None:
    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_healthz() -> None:
    with TestClient(app) as client:
        response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_push_clones_program_and_returns_ok() -> None:
    _reset_singletons()
    program_id = f"program-{uuid4()}"
    snapshot_id = f"community-{uuid4()}"

    with TestClient(app) as client:
        _seed(program_id, snapshot_id)
        response = client.post("/", json=_envelope(_cardio_job(program_id, snapshot_id)))
        repository = get_delivery_handler().service._repository
        weeks = repository.weeks_for(ProgramType.CARDIO, program_id)  # type: ignore[attr-defined]

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert len(weeks) == 2


def test_push_replay_returns_ok() -> None:
    _reset_singletons()
    program_id = f"program-{uuid4()}"
    snapshot_id = f"community-{uuid4()}"

    with TestClient(app) as client:
        _seed(program_id, snapshot_id)
        first = client.post("/", json=_envelope(_cardio_job(program_id, snapshot_id)))
        second = client.post("/", json=_envelope(_cardio_job(program_id, snapshot_id)))

    assert first.status_code == 200
    assert second.status_code == 200


def test_push_with_invalid_json_returns_400() -> None:
    _reset_singletons()

    with TestClient(app) as client:
        response = client.post(
            "/",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

    assert response.status_code == 400
    assert response.json()["detail"] == "Request body is not valid JSON."


def test_push_without_message_data_returns_400() -> None:
    _reset_singletons()

    with TestClient(app) as client:
        response = client.post("/", json={"message": {"attributes": {}}})

    assert response.status_code == 400
    assert "message.data" in response.json()["detail"]


def test_push_with_missing_job_fields_returns_400() -> None:
    _reset_singletons()
    job = _cardio_job("program-1", "community-1")
    job.pop("userId")

    with TestClient(app) as client:
        response = client.post("/", json=_envelope(job))

    assert response.status_code == 400
    assert "userId" in response.json()["detail"]


def test_push_with_missing_snapshot_returns_400_and_marks_failed() -> None:
    _reset_singletons()
    program_id = f"program-{uuid4()}"

    with TestClient(app) as client:
        repository = get_delivery_handler().service._repository
        repository.add_program(ProgramType.CARDIO, program_id)  # type: ignore[attr-defined]
        response = client.post("/", json=_envelope(_cardio_job(program_id, "missing")))

    assert response.status_code == 400
    status = asyncio.run(repository.get_copy_status(ProgramType.CARDIO, program_id))
    assert status == CopyStatus.failed()


def test_push_with_missing_destination_program_returns_400() -> None:
    _reset_singletons()
    snapshot_id = f"community-{uuid4()}"

    with TestClient(app) as client:
        repository = get_delivery_handler().service._repository
        repository.add_snapshot(snapshot_id, _SNAPSHOT)  # type: ignore[attr-defined]
        response = client.post("/", json=_envelope(_cardio_job("program-gone", snapshot_id)))

    assert response.status_code == 400
    assert response.json()["detail"] == "cardio program program-gone not found."
