"""Copy status variants shown on the destination program."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum


class CopyStatusKind(StrEnum):
    """Tag of a copy status value."""

    CLONING = "cloning"
    CLONING_WEEK = "cloning_week"
    READY = "ready"
    FAILED = "failed"
    NOT_FOUND = "not_found"


_CLONING_WEEK_PATTERN = re.compile(r"^cloning_week_(\d+)_of_(\d+)$")

TERMINAL_COPY_STATUS_KINDS = frozenset(
    {CopyStatusKind.READY, CopyStatusKind.FAILED, CopyStatusKind.NOT_FOUND}
)


@dataclass(slots=True, frozen=True)
class CopyStatus:
    """Tagged copy status; only the in-progress variant carries week numbers.

    The persisted representation is a plain string (``cloning``,
    ``cloning_week_<i>_of_<n>``, ``ready``, ``failed``) because the polling
    endpoint reads the column directly.
    """

    kind: CopyStatusKind
    week: int | None = None
    total_weeks: int | None = None

    def __post_init__(self) -> None:
        if self.kind is CopyStatusKind.CLONING_WEEK:
            if self.week is None or self.total_weeks is None:
                raise ValueError("cloning_week status requires week and total_weeks.")
            if not 1 <= self.week <= self.total_weeks:
                raise ValueError(
                    f"Week {self.week} is outside 1..{self.total_weeks} for cloning_week."
                )
        elif self.week is not None or self.total_weeks is not None:
            raise ValueError(f"Status '{self.kind}' does not carry week progress.")

    @classmethod
    def cloning(cls) -> CopyStatus:
        return cls(CopyStatusKind.CLONING)

    @classmethod
    def cloning_week(cls, week: int, total_weeks: int) -> CopyStatus:
        return cls(CopyStatusKind.CLONING_WEEK, week=week, total_weeks=total_weeks)

    @classmethod
    def ready(cls) -> CopyStatus:
        return cls(CopyStatusKind.READY)

    @classmethod
    def failed(cls) -> CopyStatus:
        return cls(CopyStatusKind.FAILED)

    @classmethod
    def not_found(cls) -> CopyStatus:
        return cls(CopyStatusKind.NOT_FOUND)

    @classmethod
    def from_wire(cls, value: str | None) -> CopyStatus:
        """Parse a persisted status string."""

        if value is None or not value.strip():
            # Programs created before background cloning carry no status.
            return cls.ready()

        normalized = value.strip()
        match = _CLONING_WEEK_PATTERN.match(normalized)
        if match is not None:
            return cls.cloning_week(int(match.group(1)), int(match.group(2)))
        try:
            kind = CopyStatusKind(normalized)
        except ValueError as exc:
            raise ValueError(f"Unknown copy status '{value}'.") from exc
        if kind is CopyStatusKind.CLONING_WEEK:
            raise ValueError("cloning_week status requires week progress.")
        return cls(kind)

    def to_wire(self) -> str:
        """Render the persisted status string."""

        if self.kind is CopyStatusKind.CLONING_WEEK:
            return f"cloning_week_{self.week}_of_{self.total_weeks}"
        return self.kind.value

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_COPY_STATUS_KINDS

    @property
    def is_failure(self) -> bool:
        """Pollers treat a removed destination the same as a failed one."""

        return self.kind in {CopyStatusKind.FAILED, CopyStatusKind.NOT_FOUND}

    @property
    def progress_fraction(self) -> float | None:
        if self.kind is CopyStatusKind.READY:
            return 1.0
        if self.kind is CopyStatusKind.CLONING:
            return 0.0
        if self.kind is CopyStatusKind.CLONING_WEEK:
            assert self.week is not None and self.total_weeks is not None
            # The current week is still being written.
            return (self.week - 1) / self.total_weeks
        return None

    def __str__(self) -> str:
        return self.to_wire()


__all__ = ["CopyStatus", "CopyStatusKind", "TERMINAL_COPY_STATUS_KINDS"]
