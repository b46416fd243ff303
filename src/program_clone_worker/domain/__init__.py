"""Domain public API."""

from program_clone_worker.domain.copy_status import (
    TERMINAL_COPY_STATUS_KINDS,
    CopyStatus,
    CopyStatusKind,
)
from program_clone_worker.domain.errors import (
    CloneError,
    CloneJobFailedError,
    MalformedCloneJobError,
    PartialCloneError,
    ProgramNotFoundError,
    SnapshotNotFoundError,
    SnapshotValidationError,
    WorkoutLimitExceededError,
)
from program_clone_worker.domain.jobs import CloneJob, ProgramType
from program_clone_worker.domain.ports import (
    CloneJobPublisher,
    CloneRepository,
    CloneWriteSession,
    SnapshotStore,
)
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
from program_clone_worker.domain.snapshots import (
    CardioProgramSnapshot,
    CardioSessionSnapshot,
    CardioWeekSnapshot,
    ExerciseSnapshot,
    PrescribedSetSnapshot,
    ProgramSnapshot,
    StrengthProgramSnapshot,
    StrengthWeekSnapshot,
    WorkoutSnapshot,
    parse_snapshot,
)

__all__ = [
    "CardioProgramSnapshot",
    "CardioSessionRow",
    "CardioSessionSnapshot",
    "CardioWeekPlan",
    "CardioWeekRow",
    "CardioWeekSnapshot",
    "CloneError",
    "CloneJob",
    "CloneJobFailedError",
    "CloneJobPublisher",
    "CloneRepository",
    "CloneWriteSession",
    "CopyStatus",
    "CopyStatusKind",
    "ExerciseRow",
    "ExerciseSnapshot",
    "MalformedCloneJobError",
    "PartialCloneError",
    "PrescribedSetRow",
    "PrescribedSetSnapshot",
    "ProgramNotFoundError",
    "ProgramSnapshot",
    "ProgramType",
    "SnapshotNotFoundError",
    "SnapshotStore",
    "SnapshotValidationError",
    "StrengthProgramSnapshot",
    "StrengthWeekPlan",
    "StrengthWeekSnapshot",
    "TERMINAL_COPY_STATUS_KINDS",
    "WeekRow",
    "WorkoutLimitExceededError",
    "WorkoutRow",
    "WorkoutSnapshot",
    "parse_snapshot",
]
