"""Destination rows written by the batch insert engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True, frozen=True)
class WeekRow:
    id: str
    week_number: int
    program_id: str
    user_id: str


@dataclass(slots=True, frozen=True)
class WorkoutRow:
    id: str
    name: str
    day_number: int
    week_id: str
    user_id: str


@dataclass(slots=True, frozen=True)
class ExerciseRow:
    id: str
    name: str
    exercise_definition_id: str
    order: int
    exercise_group: str | None
    workout_id: str
    notes: str | None
    user_id: str
    is_one_off: bool = False


@dataclass(slots=True, frozen=True)
class PrescribedSetRow:
    id: str
    set_number: int
    reps: str
    weight: str | None
    rpe: int | None
    rir: int | None
    exercise_id: str
    user_id: str


@dataclass(slots=True, frozen=True)
class CardioWeekRow:
    id: str
    week_number: int
    cardio_program_id: str
    user_id: str


@dataclass(slots=True, frozen=True)
class CardioSessionRow:
    id: str
    week_id: str
    day_number: int
    name: str
    description: str | None
    target_duration: int
    intensity_zone: str | None
    equipment: str | None
    target_hr_range: str | None
    target_power_range: str | None
    interval_structure: str | None
    notes: str | None
    user_id: str
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True, frozen=True)
class StrengthWeekPlan:
    """All rows of one strength week, grouped by insert tier."""

    week: WeekRow
    workouts: list[WorkoutRow] = field(default_factory=list)
    exercises: list[ExerciseRow] = field(default_factory=list)
    prescribed_sets: list[PrescribedSetRow] = field(default_factory=list)

    def tier_counts(self) -> dict[str, int]:
        return {
            "weeks": 1,
            "workouts": len(self.workouts),
            "exercises": len(self.exercises),
            "prescribed_sets": len(self.prescribed_sets),
        }


@dataclass(slots=True, frozen=True)
class CardioWeekPlan:
    """All rows of one cardio week, grouped by insert tier."""

    week: CardioWeekRow
    sessions: list[CardioSessionRow] = field(default_factory=list)

    def tier_counts(self) -> dict[str, int]:
        return {"weeks": 1, "sessions": len(self.sessions)}


__all__ = [
    "CardioSessionRow",
    "CardioWeekPlan",
    "CardioWeekRow",
    "ExerciseRow",
    "PrescribedSetRow",
    "StrengthWeekPlan",
    "WeekRow",
    "WorkoutRow",
]
