from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class PipelineStage(str, Enum):
    FETCH = "fetch"
    CHUNKING = "chunking"
    OCR = "ocr"
    EXTRACTION = "extraction"
    CLASSIFICATION = "classification"
    ASSEMBLY = "assembly"
    STORAGE = "storage"
    INDEXING = "indexing"


@dataclass(frozen=True, slots=True)
class StageError:
    """
    Machine-readable error record carried in pipeline results.
    """

    code: str
    stage: PipelineStage
    message: str
    detail: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["stage"] = self.stage.value
        return out


class PipelineError(Exception):
    """
    Base class for failures raised inside the pipeline stages.

    Subclasses fix a default `code` and `stage`; callers may pass a more
    specific code and a `detail` dict with page/chunk context.
    """

    code = "PIPELINE_ERROR"
    stage = PipelineStage.FETCH

    def __init__(self, message: str, *, code: str | None = None, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.detail: dict[str, Any] = dict(detail or {})

    def to_stage_error(self) -> StageError:
        return StageError(
            code=self.code,
            stage=self.stage,
            message=self.message,
            detail=dict(self.detail) or None,
        )


class SourceFetchError(PipelineError):
    code = "SOURCE_FETCH_FAILED"
    stage = PipelineStage.FETCH


class ChunkingError(PipelineError):
    code = "CHUNKING_FAILED"
    stage = PipelineStage.CHUNKING


class OcrSubmissionError(PipelineError):
    code = "OCR_SUBMISSION_FAILED"
    stage = PipelineStage.OCR


class OcrResultShapeError(OcrSubmissionError):
    code = "OCR_RESULT_BAD_SHAPE"


class OcrTimeoutError(PipelineError):
    code = "OCR_TIMEOUT"
    stage = PipelineStage.OCR


class ClassifierRequestError(PipelineError):
    code = "CLASSIFIER_REQUEST_FAILED"
    stage = PipelineStage.CLASSIFICATION


class ClassificationParseError(PipelineError):
    code = "CLASSIFICATION_PARSE_FAILED"
    stage = PipelineStage.CLASSIFICATION


class IndexIntegrityError(PipelineError):
    code = "INDEX_INTEGRITY_VIOLATION"
    stage = PipelineStage.ASSEMBLY


class ArtifactWriteError(PipelineError):
    code = "ARTIFACT_WRITE_FAILED"
    stage = PipelineStage.STORAGE


class IndexingError(PipelineError):
    code = "INDEXING_FAILED"
    stage = PipelineStage.INDEXING
