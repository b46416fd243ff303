"""Clone job message contract."""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from program_clone_worker.domain.errors import MalformedCloneJobError


class ProgramType(StrEnum):
    """Program variants with their own destination tables and cloner."""

    STRENGTH = "strength"
    CARDIO = "cardio"


class CloneJob(BaseModel):
    """Immutable job published onto the message transport."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    snapshot_id: str = Field(alias="communityProgramId", min_length=1)
    destination_program_id: str = Field(alias="programId", min_length=1)
    owner_user_id: str = Field(alias="userId", min_length=1)
    program_type: ProgramType = Field(alias="programType")

    def to_payload(self) -> dict[str, str]:
        """Return the camelCase wire representation."""

        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_payload(cls, payload: bytes | str | dict[str, Any]) -> CloneJob:
        """Parse a raw message body into a job."""

        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedCloneJobError("Job payload is not valid UTF-8.") from exc
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as exc:
                raise MalformedCloneJobError(f"Job payload is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise MalformedCloneJobError("Job payload must be a JSON object.")

        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            fields = sorted(
                {
                    ".".join(str(part) for part in error["loc"])
                    for error in exc.errors()
                }
            )
            raise MalformedCloneJobError(
                f"Missing or invalid job fields: {', '.join(fields)}"
            ) from exc


__all__ = ["CloneJob", "ProgramType"]
