from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from contracts.errors import PipelineStage, StageError


@dataclass(frozen=True, slots=True)
class ParseRequest:
    """
    Trigger parameters of one document-processing request.

    `source_path` is the store key of the uploaded PDF; `file_name` is the
    user-facing name used for OCR submissions and index metadata.
    """

    file_name: str
    source_path: str
    user_id: str

    def __post_init__(self) -> None:
        if not self.file_name:
            raise ValueError("file_name must be non-empty")
        if not self.source_path:
            raise ValueError("source_path must be non-empty")
        if not self.user_id:
            raise ValueError("user_id must be non-empty")


@dataclass(frozen=True, slots=True)
class ParseDocumentResult:
    """
    Machine-readable outcome of one request.

    `ok` is True only when the artifact was written. `stage` names the stage
    that failed (None on success); chunk counters report partial OCR coverage.
    """

    ok: bool
    source_path: str
    artifact_path: str | None
    stage: PipelineStage | None = None
    errors: list[StageError] = field(default_factory=list)
    chunks_processed: int = 0
    total_chunks: int = 0
    indexing_completed: bool = False
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "source_path": self.source_path,
            "artifact_path": self.artifact_path,
            "stage": None if self.stage is None else self.stage.value,
            "errors": [e.to_dict() for e in self.errors],
            "chunks_processed": self.chunks_processed,
            "total_chunks": self.total_chunks,
            "indexing_completed": self.indexing_completed,
            "meta": self.meta,
        }
