"""Tiered multi-row inserts for one program week."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from program_clone_worker.domain.ports import CloneWriteSession
from program_clone_worker.domain.rows import (
    CardioSessionRow,
    CardioWeekPlan,
    CardioWeekRow,
    ExerciseRow,
    PrescribedSetRow,
    StrengthWeekPlan,
    WeekRow,
    WorkoutRow,
)
from program_clone_worker.domain.snapshots import CardioWeekSnapshot, StrengthWeekSnapshot

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class BatchInsertEngine:
    """Write one week as a fixed number of multi-row inserts.

    Every id is generated before the first write so child rows can reference
    their parents without reading anything back. Row count per week does not
    change the number of round trips: a strength week is at most four inserts
    and a cardio week at most two.
    """

    def __init__(
        self,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._id_factory = id_factory
        self._clock = clock

    def plan_strength_week(
        self,
        week: StrengthWeekSnapshot,
        program_id: str,
        user_id: str,
    ) -> StrengthWeekPlan:
        """Flatten one strength week into per-tier rows."""

        week_row = WeekRow(
            id=self._id_factory(),
            week_number=week.week_number,
            program_id=program_id,
            user_id=user_id,
        )
        workouts: list[WorkoutRow] = []
        exercises: list[ExerciseRow] = []
        prescribed_sets: list[PrescribedSetRow] = []

        for workout in week.workouts:
            workout_row = WorkoutRow(
                id=self._id_factory(),
                name=workout.name,
                day_number=workout.day_number,
                week_id=week_row.id,
                user_id=user_id,
            )
            workouts.append(workout_row)

            for exercise in workout.exercises:
                exercise_row = ExerciseRow(
                    id=self._id_factory(),
                    name=exercise.name,
                    exercise_definition_id=exercise.exercise_definition_id,
                    order=exercise.order,
                    exercise_group=exercise.exercise_group,
                    workout_id=workout_row.id,
                    notes=exercise.notes,
                    user_id=user_id,
                )
                exercises.append(exercise_row)

                for prescribed_set in exercise.prescribed_sets:
                    prescribed_sets.append(
                        PrescribedSetRow(
                            id=self._id_factory(),
                            set_number=prescribed_set.set_number,
                            reps=prescribed_set.reps,
                            weight=prescribed_set.weight,
                            rpe=prescribed_set.rpe,
                            rir=prescribed_set.rir,
                            exercise_id=exercise_row.id,
                            user_id=user_id,
                        )
                    )

        return StrengthWeekPlan(
            week=week_row,
            workouts=workouts,
            exercises=exercises,
            prescribed_sets=prescribed_sets,
        )

    def plan_cardio_week(
        self,
        week: CardioWeekSnapshot,
        program_id: str,
        user_id: str,
    ) -> CardioWeekPlan:
        """Flatten one cardio week into its week row and session rows."""

        week_row = CardioWeekRow(
            id=self._id_factory(),
            week_number=week.week_number,
            cardio_program_id=program_id,
            user_id=user_id,
        )
        now = self._clock()
        sessions = [
            CardioSessionRow(
                id=self._id_factory(),
                week_id=week_row.id,
                day_number=session.day_number,
                name=session.name,
                description=session.description,
                target_duration=session.target_duration,
                intensity_zone=session.intensity_zone,
                equipment=session.equipment,
                target_hr_range=session.target_hr_range,
                target_power_range=session.target_power_range,
                interval_structure=session.interval_structure,
                notes=session.notes,
                user_id=user_id,
                created_at=now,
                updated_at=now,
            )
            for session in week.sessions
        ]
        return CardioWeekPlan(week=week_row, sessions=sessions)

    async def insert_strength_week(
        self,
        session: CloneWriteSession,
        week: StrengthWeekSnapshot,
        program_id: str,
        user_id: str,
    ) -> dict[str, int]:
        """Insert week, workouts, exercises and sets in parent-first order."""

        started = time.perf_counter()
        plan = self.plan_strength_week(week, program_id, user_id)

        await session.insert_week(plan.week)
        if plan.workouts:
            await session.insert_workouts(plan.workouts)
        if plan.exercises:
            await session.insert_exercises(plan.exercises)
        if plan.prescribed_sets:
            await session.insert_prescribed_sets(plan.prescribed_sets)

        logger.info(
            "Batch insert week %s: %.0fms (%s workouts, %s exercises, %s sets)",
            week.week_number,
            (time.perf_counter() - started) * 1000,
            len(plan.workouts),
            len(plan.exercises),
            len(plan.prescribed_sets),
        )
        return plan.tier_counts()

    async def insert_cardio_week(
        self,
        session: CloneWriteSession,
        week: CardioWeekSnapshot,
        program_id: str,
        user_id: str,
    ) -> dict[str, int]:
        """Insert the cardio week and then all of its sessions."""

        started = time.perf_counter()
        plan = self.plan_cardio_week(week, program_id, user_id)

        await session.insert_cardio_week(plan.week)
        if plan.sessions:
            await session.insert_cardio_sessions(plan.sessions)

        logger.info(
            "Batch insert cardio week %s: %.0fms (%s sessions)",
            week.week_number,
            (time.perf_counter() - started) * 1000,
            len(plan.sessions),
        )
        return plan.tier_counts()


__all__ = ["BatchInsertEngine"]
