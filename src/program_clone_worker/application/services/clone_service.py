"""Clone job use-case service."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import ClassVar

from program_clone_worker.application.services.batch_insert import BatchInsertEngine
from program_clone_worker.domain.copy_status import CopyStatus
from program_clone_worker.domain.errors import (
    CloneJobFailedError,
    PartialCloneError,
    SnapshotNotFoundError,
    WorkoutLimitExceededError,
)
from program_clone_worker.domain.jobs import CloneJob, ProgramType
from program_clone_worker.domain.ports import CloneRepository, CloneWriteSession, SnapshotStore
from program_clone_worker.domain.snapshots import (
    CardioWeekSnapshot,
    ProgramSnapshot,
    StrengthWeekSnapshot,
    parse_snapshot,
)

_DEFAULT_WEEK_TRANSACTION_TIMEOUT_SECONDS = 30.0
_DEFAULT_MAX_WORKOUTS_PER_WEEK = 10
_DEFAULT_MAX_CONCURRENT_JOBS = 1

logger = logging.getLogger(__name__)


class ProgramCloner(ABC):
    """Copy snapshot weeks onto a destination program, one transaction per week.

    A clone is idempotent: when the destination already holds every week the
    status is set to ``ready`` and nothing is written. A destination holding
    some other non-zero number of weeks was left behind by an interrupted
    attempt and is marked ``failed``.
    """

    program_type: ClassVar[ProgramType]

    def __init__(
        self,
        repository: CloneRepository,
        engine: BatchInsertEngine,
        week_transaction_timeout_seconds: float = _DEFAULT_WEEK_TRANSACTION_TIMEOUT_SECONDS,
    ) -> None:
        self._repository = repository
        self._engine = engine
        self._week_transaction_timeout_seconds = week_transaction_timeout_seconds

    async def clone(
        self,
        program_id: str,
        user_id: str,
        snapshot: ProgramSnapshot,
    ) -> CopyStatus:
        """Clone all snapshot weeks and return the final status."""

        weeks = snapshot.weeks
        total_weeks = len(weeks)

        existing_weeks = await self._repository.count_weeks(self.program_type, program_id)
        if existing_weeks == total_weeks:
            logger.info(
                "Program %s already has all %s weeks; marking ready.",
                program_id,
                total_weeks,
            )
            await self._set_status(program_id, CopyStatus.ready())
            return CopyStatus.ready()

        if existing_weeks > 0:
            logger.warning(
                "Partial clone detected for program %s: %s/%s weeks.",
                program_id,
                existing_weeks,
                total_weeks,
            )
            await self._set_status(program_id, CopyStatus.failed())
            raise PartialCloneError(existing_weeks, total_weeks)

        for index, week in enumerate(weeks):
            try:
                self._validate_week(week)
            except CloneJobFailedError:
                await self._set_status(program_id, CopyStatus.failed())
                raise

            await self._set_status(program_id, CopyStatus.cloning_week(index + 1, total_weeks))
            await asyncio.wait_for(
                self._write_week(program_id, user_id, week),
                timeout=self._week_transaction_timeout_seconds,
            )

        try:
            await self._set_status(program_id, CopyStatus.ready())
        except Exception:
            logger.exception(
                "All %s weeks of program %s were written but marking it ready failed.",
                total_weeks,
                program_id,
            )
            raise

        logger.info("Cloned %s weeks into program %s.", total_weeks, program_id)
        return CopyStatus.ready()

    async def _write_week(
        self,
        program_id: str,
        user_id: str,
        week: StrengthWeekSnapshot | CardioWeekSnapshot,
    ) -> None:
        async with self._repository.week_transaction(
            self._week_transaction_timeout_seconds
        ) as session:
            await self._insert_week(session, program_id, user_id, week)

    async def _set_status(self, program_id: str, status: CopyStatus) -> None:
        await self._repository.set_copy_status(self.program_type, program_id, status)

    def _validate_week(self, week: StrengthWeekSnapshot | CardioWeekSnapshot) -> None:
        """Raise CloneJobFailedError when a week cannot be cloned."""

    @abstractmethod
    async def _insert_week(
        self,
        session: CloneWriteSession,
        program_id: str,
        user_id: str,
        week: StrengthWeekSnapshot | CardioWeekSnapshot,
    ) -> None:
        """Write one week's rows through the batch insert engine."""


class StrengthProgramCloner(ProgramCloner):
    """Clone strength weeks with their workouts, exercises and sets."""

    program_type = ProgramType.STRENGTH

    def __init__(
        self,
        repository: CloneRepository,
        engine: BatchInsertEngine,
        week_transaction_timeout_seconds: float = _DEFAULT_WEEK_TRANSACTION_TIMEOUT_SECONDS,
        max_workouts_per_week: int = _DEFAULT_MAX_WORKOUTS_PER_WEEK,
    ) -> None:
        super().__init__(repository, engine, week_transaction_timeout_seconds)
        self._max_workouts_per_week = max_workouts_per_week

    def _validate_week(self, week: StrengthWeekSnapshot | CardioWeekSnapshot) -> None:
        assert isinstance(week, StrengthWeekSnapshot)
        workout_count = len(week.workouts)
        if workout_count > self._max_workouts_per_week:
            logger.warning(
                "Week %s has %s workouts, above the limit of %s.",
                week.week_number,
                workout_count,
                self._max_workouts_per_week,
            )
            raise WorkoutLimitExceededError(
                week.week_number,
                workout_count,
                self._max_workouts_per_week,
            )

    async def _insert_week(
        self,
        session: CloneWriteSession,
        program_id: str,
        user_id: str,
        week: StrengthWeekSnapshot | CardioWeekSnapshot,
    ) -> None:
        assert isinstance(week, StrengthWeekSnapshot)
        await self._engine.insert_strength_week(session, week, program_id, user_id)


class CardioProgramCloner(ProgramCloner):
    """Clone cardio weeks with their sessions."""

    program_type = ProgramType.CARDIO

    async def _insert_week(
        self,
        session: CloneWriteSession,
        program_id: str,
        user_id: str,
        week: StrengthWeekSnapshot | CardioWeekSnapshot,
    ) -> None:
        assert isinstance(week, CardioWeekSnapshot)
        await self._engine.insert_cardio_week(session, week, program_id, user_id)


class CloneJobService:
    """Load snapshots and run the cloner matching each job's program type.

    At most ``max_concurrent_jobs`` jobs run at once; further deliveries wait
    for a free slot. Each running job holds one repository connection for its
    program lock, so the slot count must stay below the connection pool size.
    """

    def __init__(
        self,
        repository: CloneRepository,
        snapshot_store: SnapshotStore,
        engine: BatchInsertEngine | None = None,
        week_transaction_timeout_seconds: float = _DEFAULT_WEEK_TRANSACTION_TIMEOUT_SECONDS,
        max_workouts_per_week: int = _DEFAULT_MAX_WORKOUTS_PER_WEEK,
        max_concurrent_jobs: int = _DEFAULT_MAX_CONCURRENT_JOBS,
    ) -> None:
        self._repository = repository
        self._snapshot_store = snapshot_store
        self._max_concurrent_jobs = max(1, max_concurrent_jobs)
        self._job_slots = asyncio.Semaphore(self._max_concurrent_jobs)
        engine = engine or BatchInsertEngine()
        self._cloners: dict[ProgramType, ProgramCloner] = {
            ProgramType.STRENGTH: StrengthProgramCloner(
                repository,
                engine,
                week_transaction_timeout_seconds=week_transaction_timeout_seconds,
                max_workouts_per_week=max_workouts_per_week,
            ),
            ProgramType.CARDIO: CardioProgramCloner(
                repository,
                engine,
                week_transaction_timeout_seconds=week_transaction_timeout_seconds,
            ),
        }

    @property
    def max_concurrent_jobs(self) -> int:
        return self._max_concurrent_jobs

    async def clone(self, job: CloneJob) -> CopyStatus:
        """Clone one job; safe to call again for the same job."""

        async with self._job_slots:
            raw = await self._snapshot_store.get_program_data(job.snapshot_id)
            if raw is None:
                raise SnapshotNotFoundError(f"Snapshot {job.snapshot_id} not found.")
            snapshot = parse_snapshot(job.program_type, raw)

            async with self._repository.program_lock(job.destination_program_id):
                return await self._cloners[job.program_type].clone(
                    job.destination_program_id,
                    job.owner_user_id,
                    snapshot,
                )

    async def mark_failed(self, job: CloneJob) -> None:
        """Set the job's destination program to ``failed``."""

        await self._repository.set_copy_status(
            job.program_type,
            job.destination_program_id,
            CopyStatus.failed(),
        )

    async def get_copy_status(self, job: CloneJob) -> CopyStatus:
        return await self._repository.get_copy_status(
            job.program_type,
            job.destination_program_id,
        )

    async def shutdown(self) -> None:
        """Release repository resources."""

        await self._repository.close()


__all__ = [
    "CardioProgramCloner",
    "CloneJobService",
    "ProgramCloner",
    "StrengthProgramCloner",
]
