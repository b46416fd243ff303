"""Pydantic schemas for published program snapshots."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from program_clone_worker.domain.errors import SnapshotNotFoundError, SnapshotValidationError
from program_clone_worker.domain.jobs import ProgramType


class SnapshotModel(BaseModel):
    """Base model for read-only snapshot nodes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class PrescribedSetSnapshot(SnapshotModel):
    """One prescribed set of an exercise."""

    set_number: int = Field(alias="setNumber")
    reps: str
    weight: str | None = None
    rpe: int | None = None
    rir: int | None = None


class ExerciseSnapshot(SnapshotModel):
    """One exercise of a workout."""

    name: str
    exercise_definition_id: str = Field(alias="exerciseDefinitionId")
    order: int
    exercise_group: str | None = Field(default=None, alias="exerciseGroup")
    notes: str | None = None
    prescribed_sets: list[PrescribedSetSnapshot] = Field(
        default_factory=list, alias="prescribedSets"
    )


class WorkoutSnapshot(SnapshotModel):
    """One workout day of a strength week."""

    name: str
    day_number: int = Field(alias="dayNumber")
    exercises: list[ExerciseSnapshot] = Field(default_factory=list)


class StrengthWeekSnapshot(SnapshotModel):
    """One week of a strength program."""

    week_number: int = Field(alias="weekNumber")
    workouts: list[WorkoutSnapshot] = Field(default_factory=list)


class StrengthProgramSnapshot(SnapshotModel):
    """Snapshot tree of a strength program."""

    weeks: list[StrengthWeekSnapshot]


class CardioSessionSnapshot(SnapshotModel):
    """One prescribed cardio session."""

    day_number: int = Field(alias="dayNumber")
    name: str
    description: str | None = None
    target_duration: int = Field(alias="targetDuration")
    intensity_zone: str | None = Field(default=None, alias="intensityZone")
    equipment: str | None = None
    target_hr_range: str | None = Field(default=None, alias="targetHRRange")
    target_power_range: str | None = Field(default=None, alias="targetPowerRange")
    interval_structure: str | None = Field(default=None, alias="intervalStructure")
    notes: str | None = None


class CardioWeekSnapshot(SnapshotModel):
    """One week of a cardio program."""

    week_number: int = Field(alias="weekNumber")
    sessions: list[CardioSessionSnapshot] = Field(default_factory=list)


class CardioProgramSnapshot(SnapshotModel):
    """Snapshot tree of a cardio program."""

    weeks: list[CardioWeekSnapshot]


ProgramSnapshot = StrengthProgramSnapshot | CardioProgramSnapshot

_SNAPSHOT_SCHEMAS: dict[ProgramType, type[StrengthProgramSnapshot] | type[CardioProgramSnapshot]] = {
    ProgramType.STRENGTH: StrengthProgramSnapshot,
    ProgramType.CARDIO: CardioProgramSnapshot,
}


def parse_snapshot(program_type: ProgramType, raw: Any) -> ProgramSnapshot:
    """Validate a raw snapshot tree against the schema for its program type."""

    if raw is None:
        raise SnapshotNotFoundError("Snapshot has no program data.")
    if not isinstance(raw, dict):
        raise SnapshotValidationError(
            f"Snapshot program data must be a JSON object, got {type(raw).__name__}."
        )

    schema = _SNAPSHOT_SCHEMAS[program_type]
    try:
        snapshot = schema.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        path = ".".join(str(part) for part in first["loc"])
        raise SnapshotValidationError(
            f"Invalid {program_type.value} snapshot at '{path}': {first['msg']} "
            f"({exc.error_count()} error(s))"
        ) from exc

    if not snapshot.weeks:
        raise SnapshotNotFoundError("Snapshot has no weeks.")
    return snapshot


__all__ = [
    "CardioProgramSnapshot",
    "CardioSessionSnapshot",
    "CardioWeekSnapshot",
    "ExerciseSnapshot",
    "PrescribedSetSnapshot",
    "ProgramSnapshot",
    "StrengthProgramSnapshot",
    "StrengthWeekSnapshot",
    "WorkoutSnapshot",
    "parse_snapshot",
]
