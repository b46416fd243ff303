"""Transport-neutral handling of delivered clone job messages."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from program_clone_worker.application.services.clone_service import CloneJobService
from program_clone_worker.domain.errors import (
    CloneJobFailedError,
    MalformedCloneJobError,
    ProgramNotFoundError,
    SnapshotNotFoundError,
    SnapshotValidationError,
)
from program_clone_worker.domain.jobs import CloneJob

logger = logging.getLogger(__name__)


class DeliveryOutcome(StrEnum):
    """What the transport should do with a delivered message."""

    ACK = "ack"
    REJECT = "reject"
    RETRY = "retry"


@dataclass(slots=True)
class DeliveryResult:
    """Outcome of one delivery plus a human-readable detail."""

    outcome: DeliveryOutcome
    detail: str
    job: CloneJob | None = None


class CloneJobDeliveryHandler:
    """Decode delivered messages, run clone jobs and classify the result."""

    def __init__(self, service: CloneJobService) -> None:
        self._service = service

    @property
    def service(self) -> CloneJobService:
        return self._service

    @staticmethod
    def decode_push_envelope(body: Any) -> bytes:
        """Return the decoded ``message.data`` bytes of a push envelope."""

        if not isinstance(body, dict):
            raise MalformedCloneJobError("Push body must be a JSON object.")
        message = body.get("message")
        if not isinstance(message, dict):
            raise MalformedCloneJobError("Missing message in push body.")
        data = message.get("data")
        if not isinstance(data, str) or not data:
            raise MalformedCloneJobError("Missing message.data in push body.")
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedCloneJobError("message.data is not valid base64.") from exc

    async def handle_push(self, body: Any) -> DeliveryResult:
        """Handle one push delivery body."""

        try:
            data = self.decode_push_envelope(body)
        except MalformedCloneJobError as exc:
            logger.warning("Rejected push delivery: %s", exc)
            return DeliveryResult(outcome=DeliveryOutcome.REJECT, detail=str(exc))
        return await self.handle_message_data(data)

    async def handle_message_data(self, data: bytes) -> DeliveryResult:
        """Parse and run one job from raw message bytes."""

        try:
            job = CloneJob.from_payload(data)
        except MalformedCloneJobError as exc:
            logger.warning("Rejected clone job message: %s", exc)
            return DeliveryResult(outcome=DeliveryOutcome.REJECT, detail=str(exc))

        logger.info(
            "Received %s clone job for program %s from snapshot %s.",
            job.program_type.value,
            job.destination_program_id,
            job.snapshot_id,
        )

        try:
            status = await self._service.clone(job)
        except (SnapshotNotFoundError, SnapshotValidationError) as exc:
            logger.warning(
                "Snapshot %s for program %s is unusable: %s",
                job.snapshot_id,
                job.destination_program_id,
                exc,
            )
            await self._mark_failed(job)
            return DeliveryResult(outcome=DeliveryOutcome.REJECT, detail=str(exc), job=job)
        except CloneJobFailedError as exc:
            logger.warning(
                "Clone job for program %s failed permanently: %s",
                job.destination_program_id,
                exc,
            )
            return DeliveryResult(outcome=DeliveryOutcome.REJECT, detail=str(exc), job=job)
        except ProgramNotFoundError as exc:
            logger.warning(
                "Destination program %s no longer exists: %s",
                job.destination_program_id,
                exc,
            )
            return DeliveryResult(outcome=DeliveryOutcome.REJECT, detail=str(exc), job=job)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Clone job for program %s from snapshot %s failed.",
                job.destination_program_id,
                job.snapshot_id,
            )
            await self._mark_failed(job)
            detail = str(exc) or type(exc).__name__
            return DeliveryResult(outcome=DeliveryOutcome.RETRY, detail=detail, job=job)

        logger.info(
            "Clone job for program %s finished with status %s.",
            job.destination_program_id,
            status,
        )
        return DeliveryResult(outcome=DeliveryOutcome.ACK, detail=str(status), job=job)

    async def shutdown(self) -> None:
        await self._service.shutdown()

    async def _mark_failed(self, job: CloneJob) -> None:
        try:
            await self._service.mark_failed(job)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Could not mark program %s as failed.",
                job.destination_program_id,
            )


__all__ = ["CloneJobDeliveryHandler", "DeliveryOutcome", "DeliveryResult"]
