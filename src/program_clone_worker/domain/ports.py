"""Ports for snapshot reads, destination writes, and message publishing."""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from program_clone_worker.domain.copy_status import CopyStatus
from program_clone_worker.domain.jobs import CloneJob, ProgramType
from program_clone_worker.domain.rows import (
    CardioSessionRow,
    CardioWeekRow,
    ExerciseRow,
    PrescribedSetRow,
    WeekRow,
    WorkoutRow,
)


class SnapshotStore(Protocol):
    """Read-only access to published program snapshots."""

    async def get_program_data(self, snapshot_id: str) -> dict[str, Any] | None:
        """Return the raw snapshot tree, or None when it does not exist."""


class CloneWriteSession(Protocol):
    """Transaction-scoped handle; each method issues one multi-row insert."""

    async def insert_week(self, row: WeekRow) -> None:
        """Insert one strength week row."""

    async def insert_workouts(self, rows: Sequence[WorkoutRow]) -> None:
        """Insert all workouts of one week."""

    async def insert_exercises(self, rows: Sequence[ExerciseRow]) -> None:
        """Insert all exercises of one week."""

    async def insert_prescribed_sets(self, rows: Sequence[PrescribedSetRow]) -> None:
        """Insert all prescribed sets of one week."""

    async def insert_cardio_week(self, row: CardioWeekRow) -> None:
        """Insert one cardio week row."""

    async def insert_cardio_sessions(self, rows: Sequence[CardioSessionRow]) -> None:
        """Insert all cardio sessions of one week."""


class CloneRepository(Protocol):
    """Persistence port for destination programs and their week trees."""

    async def count_weeks(self, program_type: ProgramType, program_id: str) -> int:
        """Return how many destination weeks exist for a program."""

    async def get_copy_status(self, program_type: ProgramType, program_id: str) -> CopyStatus:
        """Return the current status of a destination program."""

    async def set_copy_status(
        self,
        program_type: ProgramType,
        program_id: str,
        status: CopyStatus,
    ) -> None:
        """Persist a status, raising ProgramNotFoundError when no row matched."""

    def week_transaction(
        self,
        timeout_seconds: float,
    ) -> AbstractAsyncContextManager[CloneWriteSession]:
        """Open one transaction; commit on clean exit, roll back on error."""

    def program_lock(self, program_id: str) -> AbstractAsyncContextManager[None]:
        """Serialize clone work on one destination program."""

    async def close(self) -> None:
        """Release pooled resources."""


class CloneJobPublisher(Protocol):
    """Outbound port that enqueues clone jobs onto the message transport."""

    async def publish(self, job: CloneJob) -> str:
        """Publish a job and return the transport message id."""


__all__ = [
    "CloneJobPublisher",
    "CloneRepository",
    "CloneWriteSession",
    "SnapshotStore",
]
