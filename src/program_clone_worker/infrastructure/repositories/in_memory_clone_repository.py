"""In-memory repository implementation for clone jobs."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from program_clone_worker.domain.copy_status import CopyStatus
from program_clone_worker.domain.errors import ProgramNotFoundError
from program_clone_worker.domain.jobs import ProgramType
from program_clone_worker.domain.ports import CloneRepository, CloneWriteSession, SnapshotStore
from program_clone_worker.domain.rows import (
    CardioSessionRow,
    CardioWeekRow,
    ExerciseRow,
    PrescribedSetRow,
    WeekRow,
    WorkoutRow,
)

_ProgramKey = tuple[ProgramType, str]


@dataclass(slots=True)
class _StagedRows:
    weeks: list[WeekRow] = field(default_factory=list)
    workouts: list[WorkoutRow] = field(default_factory=list)
    exercises: list[ExerciseRow] = field(default_factory=list)
    prescribed_sets: list[PrescribedSetRow] = field(default_factory=list)
    cardio_weeks: list[CardioWeekRow] = field(default_factory=list)
    cardio_sessions: list[CardioSessionRow] = field(default_factory=list)


class _InMemoryWriteSession(CloneWriteSession):
    """Stage rows until the owning transaction commits."""

    def __init__(self, insert_calls: list[tuple[str, int]]) -> None:
        self.staged = _StagedRows()
        self._insert_calls = insert_calls

    async def insert_week(self, row: WeekRow) -> None:
        self._record("Week", 1)
        self.staged.weeks.append(row)

    async def insert_workouts(self, rows: Sequence[WorkoutRow]) -> None:
        self._record("Workout", len(rows))
        self.staged.workouts.extend(rows)

    async def insert_exercises(self, rows: Sequence[ExerciseRow]) -> None:
        self._record("Exercise", len(rows))
        self.staged.exercises.extend(rows)

    async def insert_prescribed_sets(self, rows: Sequence[PrescribedSetRow]) -> None:
        self._record("PrescribedSet", len(rows))
        self.staged.prescribed_sets.extend(rows)

    async def insert_cardio_week(self, row: CardioWeekRow) -> None:
        self._record("CardioWeek", 1)
        self.staged.cardio_weeks.append(row)

    async def insert_cardio_sessions(self, rows: Sequence[CardioSessionRow]) -> None:
        self._record("PrescribedCardioSession", len(rows))
        self.staged.cardio_sessions.extend(rows)

    def _record(self, table: str, row_count: int) -> None:
        self._insert_calls.append((table, row_count))


class InMemoryCloneRepository(CloneRepository, SnapshotStore):
    """Simple repository for local development and tests."""

    def __init__(self) -> None:
        self._statuses: dict[_ProgramKey, str | None] = {}
        self._status_history: dict[_ProgramKey, list[str]] = {}
        self._snapshots: dict[str, dict[str, Any] | None] = {}
        self._weeks: dict[str, WeekRow] = {}
        self._workouts: dict[str, WorkoutRow] = {}
        self._exercises: dict[str, ExerciseRow] = {}
        self._prescribed_sets: dict[str, PrescribedSetRow] = {}
        self._cardio_weeks: dict[str, CardioWeekRow] = {}
        self._cardio_sessions: dict[str, CardioSessionRow] = {}
        self._insert_calls: list[tuple[str, int]] = []
        self._program_locks: dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()

    def add_program(
        self,
        program_type: ProgramType,
        program_id: str,
        copy_status: CopyStatus | None = None,
    ) -> None:
        """Create a shell program; the status defaults to ``cloning``."""

        status = CopyStatus.cloning() if copy_status is None else copy_status
        self._statuses[(program_type, program_id)] = status.to_wire()

    def add_snapshot(self, snapshot_id: str, program_data: dict[str, Any] | None) -> None:
        self._snapshots[snapshot_id] = program_data

    def add_week(
        self,
        program_type: ProgramType,
        program_id: str,
        week_number: int,
        user_id: str = "seed-user",
    ) -> str:
        """Seed one committed destination week and return its id."""

        week_id = f"seed-week-{program_id}-{week_number}"
        if program_type is ProgramType.STRENGTH:
            self._weeks[week_id] = WeekRow(
                id=week_id,
                week_number=week_number,
                program_id=program_id,
                user_id=user_id,
            )
        else:
            self._cardio_weeks[week_id] = CardioWeekRow(
                id=week_id,
                week_number=week_number,
                cardio_program_id=program_id,
                user_id=user_id,
            )
        return week_id

    async def get_program_data(self, snapshot_id: str) -> dict[str, Any] | None:
        """Return a copy of the stored snapshot tree."""

        return copy.deepcopy(self._snapshots.get(snapshot_id))

    async def count_weeks(self, program_type: ProgramType, program_id: str) -> int:
        return len(self.weeks_for(program_type, program_id))

    async def get_copy_status(self, program_type: ProgramType, program_id: str) -> CopyStatus:
        key = (program_type, program_id)
        if key not in self._statuses:
            return CopyStatus.not_found()
        return CopyStatus.from_wire(self._statuses[key])

    async def set_copy_status(
        self,
        program_type: ProgramType,
        program_id: str,
        status: CopyStatus,
    ) -> None:
        key = (program_type, program_id)
        async with self._lock:
            if key not in self._statuses:
                raise ProgramNotFoundError(
                    f"{program_type.value} program {program_id} not found."
                )
            self._statuses[key] = status.to_wire()
            self._status_history.setdefault(key, []).append(status.to_wire())

    @asynccontextmanager
    async def week_transaction(
        self,
        timeout_seconds: float,
    ) -> AsyncIterator[CloneWriteSession]:
        """Stage writes and publish them only when the block exits cleanly."""

        session = _InMemoryWriteSession(self._insert_calls)
        yield session

        staged = session.staged
        async with self._lock:
            self._weeks.update((row.id, row) for row in staged.weeks)
            self._workouts.update((row.id, row) for row in staged.workouts)
            self._exercises.update((row.id, row) for row in staged.exercises)
            self._prescribed_sets.update((row.id, row) for row in staged.prescribed_sets)
            self._cardio_weeks.update((row.id, row) for row in staged.cardio_weeks)
            self._cardio_sessions.update((row.id, row) for row in staged.cardio_sessions)

    @asynccontextmanager
    async def program_lock(self, program_id: str) -> AsyncIterator[None]:
        lock = self._program_locks.setdefault(program_id, asyncio.Lock())
        async with lock:
            yield

    async def close(self) -> None:
        """Nothing to release."""

    def weeks_for(
        self,
        program_type: ProgramType,
        program_id: str,
    ) -> list[WeekRow] | list[CardioWeekRow]:
        """Return committed weeks of one program ordered by week number."""

        if program_type is ProgramType.STRENGTH:
            return sorted(
                (row for row in self._weeks.values() if row.program_id == program_id),
                key=lambda row: row.week_number,
            )
        return sorted(
            (row for row in self._cardio_weeks.values() if row.cardio_program_id == program_id),
            key=lambda row: row.week_number,
        )

    def workouts_for(self, week_id: str) -> list[WorkoutRow]:
        return [row for row in self._workouts.values() if row.week_id == week_id]

    def exercises_for(self, workout_id: str) -> list[ExerciseRow]:
        return sorted(
            (row for row in self._exercises.values() if row.workout_id == workout_id),
            key=lambda row: row.order,
        )

    def sets_for(self, exercise_id: str) -> list[PrescribedSetRow]:
        return sorted(
            (row for row in self._prescribed_sets.values() if row.exercise_id == exercise_id),
            key=lambda row: row.set_number,
        )

    def cardio_sessions_for(self, week_id: str) -> list[CardioSessionRow]:
        return sorted(
            (row for row in self._cardio_sessions.values() if row.week_id == week_id),
            key=lambda row: row.day_number,
        )

    def status_history(self, program_type: ProgramType, program_id: str) -> list[str]:
        """Return every status written for a program, oldest first."""

        return list(self._status_history.get((program_type, program_id), []))

    @property
    def tier_insert_calls(self) -> list[tuple[str, int]]:
        """Return ``(table, row_count)`` for every insert issued, committed or not."""

        return list(self._insert_calls)


__all__ = ["InMemoryCloneRepository"]
