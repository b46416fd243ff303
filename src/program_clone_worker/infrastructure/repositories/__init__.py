"""Repository implementations."""

from program_clone_worker.infrastructure.repositories.in_memory_clone_repository import (
    InMemoryCloneRepository,
)
from program_clone_worker.infrastructure.repositories.postgres_clone_repository import (
    PostgresCloneRepository,
)

__all__ = ["InMemoryCloneRepository", "PostgresCloneRepository"]
