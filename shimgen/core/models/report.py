"""
Run report — what a generation pass wrote, skipped, moved and deleted.

In dry-run mode the same report is the plan: nothing on disk changed.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PlannedMove(BaseModel):
    source: str                    # old output path
    target: str                    # new output path


class ArtifactFailure(BaseModel):
    path: str
    operation: str                 # write, delete
    error: str


class RunReport(BaseModel):
    """Accumulated outcome of one pass over the output tree."""

    dry_run: bool = False
    writes: list[str] = Field(default_factory=list)
    skips: list[str] = Field(default_factory=list)
    moves: list[PlannedMove] = Field(default_factory=list)
    deletes: list[str] = Field(default_factory=list)
    failures: list[ArtifactFailure] = Field(default_factory=list)

    @property
    def written(self) -> int:
        """Files actually written (0 in dry-run)."""
        return 0 if self.dry_run else len(self.writes)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def record_failure(self, path: str, operation: str, error: Exception | str) -> None:
        self.failures.append(
            ArtifactFailure(path=path, operation=operation, error=str(error))
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump()
        data["written"] = self.written
        data["failed"] = self.failed
        return data
