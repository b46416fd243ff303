"""Domain exceptions for clone job processing."""


class CloneError(Exception):
    """Base class for clone job errors."""


class MalformedCloneJobError(CloneError):
    """Raised when a delivered message cannot be decoded into a clone job."""


class SnapshotNotFoundError(CloneError):
    """Raised when the referenced program snapshot is missing or empty."""


class SnapshotValidationError(CloneError):
    """Raised when a snapshot does not match the schema for its program type."""


class ProgramNotFoundError(CloneError):
    """Raised when the destination shell program does not exist."""


class CloneJobFailedError(CloneError):
    """Raised after a job was marked failed; redelivery cannot succeed."""


class PartialCloneError(CloneJobFailedError):
    """Raised when a previous attempt left some but not all weeks behind."""

    def __init__(self, existing_weeks: int, total_weeks: int) -> None:
        super().__init__(f"Partial clone detected: {existing_weeks}/{total_weeks} weeks")
        self.existing_weeks = existing_weeks
        self.total_weeks = total_weeks


class WorkoutLimitExceededError(CloneJobFailedError):
    """Raised when one snapshot week holds more workouts than allowed."""

    def __init__(self, week_number: int, workout_count: int, limit: int) -> None:
        super().__init__(
            f"Week {week_number} has {workout_count} workouts. "
            f"Maximum {limit} workouts per week allowed."
        )
        self.week_number = week_number
        self.workout_count = workout_count
        self.limit = limit


__all__ = [
    "CloneError",
    "CloneJobFailedError",
    "MalformedCloneJobError",
    "PartialCloneError",
    "ProgramNotFoundError",
    "SnapshotNotFoundError",
    "SnapshotValidationError",
    "WorkoutLimitExceededError",
]
