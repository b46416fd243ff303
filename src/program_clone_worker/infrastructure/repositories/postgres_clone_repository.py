"""PostgreSQL repository implementation for clone jobs."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import asyncpg  # type: ignore[import-untyped]

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

# PostgreSQL wire protocol limit per statement.
_MAX_BIND_PARAMETERS = 32767

_PROGRAM_TABLES: dict[ProgramType, str] = {
    ProgramType.STRENGTH: '"Program"',
    ProgramType.CARDIO: '"CardioProgram"',
}

_WEEK_TABLES: dict[ProgramType, tuple[str, str]] = {
    ProgramType.STRENGTH: ('"Week"', '"programId"'),
    ProgramType.CARDIO: ('"CardioWeek"', '"cardioProgramId"'),
}

_WEEK_COLUMNS = ("id", '"weekNumber"', '"programId"', '"userId"')
_WORKOUT_COLUMNS = ("id", "name", '"dayNumber"', '"weekId"', '"userId"')
_EXERCISE_COLUMNS = (
    "id",
    "name",
    '"exerciseDefinitionId"',
    '"order"',
    '"exerciseGroup"',
    '"workoutId"',
    "notes",
    '"userId"',
    '"isOneOff"',
)
_PRESCRIBED_SET_COLUMNS = (
    "id",
    '"setNumber"',
    "reps",
    "weight",
    "rpe",
    "rir",
    '"exerciseId"',
    '"userId"',
)
_CARDIO_WEEK_COLUMNS = ("id", '"weekNumber"', '"cardioProgramId"', '"userId"')
_CARDIO_SESSION_COLUMNS = (
    "id",
    '"weekId"',
    '"dayNumber"',
    "name",
    "description",
    '"targetDuration"',
    '"intensityZone"',
    "equipment",
    '"targetHRRange"',
    '"targetPowerRange"',
    '"intervalStructure"',
    "notes",
    '"userId"',
    '"createdAt"',
    '"updatedAt"',
)


class _PostgresWriteSession(CloneWriteSession):
    """Issue multi-row inserts on one transaction-bound connection."""

    def __init__(self, connection: asyncpg.Connection) -> None:
        self._connection = connection

    async def insert_week(self, row: WeekRow) -> None:
        await self._insert_rows(
            '"Week"',
            _WEEK_COLUMNS,
            [(row.id, row.week_number, row.program_id, row.user_id)],
        )

    async def insert_workouts(self, rows: Sequence[WorkoutRow]) -> None:
        await self._insert_rows(
            '"Workout"',
            _WORKOUT_COLUMNS,
            [(row.id, row.name, row.day_number, row.week_id, row.user_id) for row in rows],
        )

    async def insert_exercises(self, rows: Sequence[ExerciseRow]) -> None:
        await self._insert_rows(
            '"Exercise"',
            _EXERCISE_COLUMNS,
            [
                (
                    row.id,
                    row.name,
                    row.exercise_definition_id,
                    row.order,
                    row.exercise_group,
                    row.workout_id,
                    row.notes,
                    row.user_id,
                    row.is_one_off,
                )
                for row in rows
            ],
        )

    async def insert_prescribed_sets(self, rows: Sequence[PrescribedSetRow]) -> None:
        await self._insert_rows(
            '"PrescribedSet"',
            _PRESCRIBED_SET_COLUMNS,
            [
                (
                    row.id,
                    row.set_number,
                    row.reps,
                    row.weight,
                    row.rpe,
                    row.rir,
                    row.exercise_id,
                    row.user_id,
                )
                for row in rows
            ],
        )

    async def insert_cardio_week(self, row: CardioWeekRow) -> None:
        await self._insert_rows(
            '"CardioWeek"',
            _CARDIO_WEEK_COLUMNS,
            [(row.id, row.week_number, row.cardio_program_id, row.user_id)],
        )

    async def insert_cardio_sessions(self, rows: Sequence[CardioSessionRow]) -> None:
        await self._insert_rows(
            '"PrescribedCardioSession"',
            _CARDIO_SESSION_COLUMNS,
            [
                (
                    row.id,
                    row.week_id,
                    row.day_number,
                    row.name,
                    row.description,
                    row.target_duration,
                    row.intensity_zone,
                    row.equipment,
                    row.target_hr_range,
                    row.target_power_range,
                    row.interval_structure,
                    row.notes,
                    row.user_id,
                    row.created_at,
                    row.updated_at,
                )
                for row in rows
            ],
        )

    async def _insert_rows(
        self,
        table: str,
        columns: tuple[str, ...],
        rows: list[tuple[Any, ...]],
    ) -> None:
        if not rows:
            return
        rows_per_statement = max(_MAX_BIND_PARAMETERS // len(columns), 1)
        for start in range(0, len(rows), rows_per_statement):
            chunk = rows[start : start + rows_per_statement]
            await self._connection.execute(
                build_multi_row_insert(table, columns, len(chunk)),
                *[value for row in chunk for value in row],
            )


def build_multi_row_insert(table: str, columns: tuple[str, ...], row_count: int) -> str:
    """Return ``INSERT ... VALUES ($1, ...), (...)`` for ``row_count`` rows."""

    width = len(columns)
    values = ", ".join(
        "(" + ", ".join(f"${index * width + offset + 1}" for offset in range(width)) + ")"
        for index in range(row_count)
    )
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES {values}"


class PostgresCloneRepository(CloneRepository, SnapshotStore):
    """Clone repository backed by the main application's PostgreSQL schema."""

    def __init__(
        self,
        dsn: str,
        min_pool_size: int = 1,
        max_pool_size: int = 10,
    ) -> None:
        self._dsn = dsn
        self._min_pool_size = min_pool_size
        self._max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None
        self._pool_lock = asyncio.Lock()

    async def get_program_data(self, snapshot_id: str) -> dict[str, Any] | None:
        """Return the published snapshot tree."""

        pool = await self._get_pool()
        row = await pool.fetchrow(
            'SELECT "programData" FROM "CommunityProgram" WHERE id = $1',
            snapshot_id,
        )
        if row is None:
            return None
        return self._decode_json_field(row["programData"])

    async def count_weeks(self, program_type: ProgramType, program_id: str) -> int:
        table, program_column = _WEEK_TABLES[program_type]
        pool = await self._get_pool()
        count = await pool.fetchval(
            f"SELECT COUNT(*) FROM {table} WHERE {program_column} = $1",
            program_id,
        )
        return int(count or 0)

    async def get_copy_status(self, program_type: ProgramType, program_id: str) -> CopyStatus:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f'SELECT "copyStatus" FROM {_PROGRAM_TABLES[program_type]} WHERE id = $1',
            program_id,
        )
        if row is None:
            return CopyStatus.not_found()
        return CopyStatus.from_wire(row["copyStatus"])

    async def set_copy_status(
        self,
        program_type: ProgramType,
        program_id: str,
        status: CopyStatus,
    ) -> None:
        pool = await self._get_pool()
        result = await pool.execute(
            f'UPDATE {_PROGRAM_TABLES[program_type]} SET "copyStatus" = $2 WHERE id = $1',
            program_id,
            status.to_wire(),
        )
        if result.endswith(" 0"):
            raise ProgramNotFoundError(f"{program_type.value} program {program_id} not found.")

    @asynccontextmanager
    async def week_transaction(
        self,
        timeout_seconds: float,
    ) -> AsyncIterator[CloneWriteSession]:
        """Run writes in one transaction with a local statement timeout."""

        timeout_ms = max(int(timeout_seconds * 1000), 1)
        pool = await self._get_pool()
        async with pool.acquire() as connection:
            async with connection.transaction():
                await connection.execute(f"SET LOCAL statement_timeout = {timeout_ms}")
                yield _PostgresWriteSession(connection)

    @asynccontextmanager
    async def program_lock(self, program_id: str) -> AsyncIterator[None]:
        """Hold a session advisory lock keyed by the destination program id."""

        pool = await self._get_pool()
        async with pool.acquire() as connection:
            await connection.execute("SELECT pg_advisory_lock(hashtext($1))", program_id)
            try:
                yield
            finally:
                await connection.execute("SELECT pg_advisory_unlock(hashtext($1))", program_id)

    async def close(self) -> None:
        """Close the pool if it was initialized."""

        pool = self._pool
        self._pool = None
        if pool is not None:
            await pool.close()

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is not None:
            return self._pool

        async with self._pool_lock:
            if self._pool is None:
                self._pool = await asyncpg.create_pool(
                    dsn=self._dsn,
                    min_size=self._min_pool_size,
                    max_size=self._max_pool_size,
                )
        assert self._pool is not None
        return self._pool

    def _decode_json_field(self, value: object) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            return json.loads(value)
        return value


__all__ = ["PostgresCloneRepository", "build_multi_row_insert"]
