"""Application services public API."""

from program_clone_worker.application.services.batch_insert import BatchInsertEngine
from program_clone_worker.application.services.clone_service import (
    CardioProgramCloner,
    CloneJobService,
    ProgramCloner,
    StrengthProgramCloner,
)
from program_clone_worker.application.services.delivery import (
    CloneJobDeliveryHandler,
    DeliveryOutcome,
    DeliveryResult,
)

__all__ = [
    "BatchInsertEngine",
    "CardioProgramCloner",
    "CloneJobDeliveryHandler",
    "CloneJobService",
    "DeliveryOutcome",
    "DeliveryResult",
    "ProgramCloner",
    "StrengthProgramCloner",
]
