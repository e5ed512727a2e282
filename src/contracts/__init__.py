"""
Canonical pipeline contracts.

These models are the schema boundary between stages (OCR -> extraction ->
classification -> assembly -> storage). Stage code should consume/produce
these objects rather than ad-hoc dicts.
"""

from .document import (
    ContentLine,
    Document,
    DocumentPage,
    LineGroup,
    LineKey,
    RawLine,
    Region,
    Role,
)
from .errors import (
    ArtifactWriteError,
    ChunkingError,
    ClassificationParseError,
    ClassifierRequestError,
    IndexIntegrityError,
    IndexingError,
    OcrResultShapeError,
    OcrSubmissionError,
    OcrTimeoutError,
    PipelineError,
    PipelineStage,
    SourceFetchError,
    StageError,
)

__all__ = [
    "Region",
    "LineKey",
    "Role",
    "RawLine",
    "LineGroup",
    "ContentLine",
    "DocumentPage",
    "Document",
    "PipelineStage",
    "StageError",
    "PipelineError",
    "SourceFetchError",
    "ChunkingError",
    "OcrSubmissionError",
    "OcrResultShapeError",
    "OcrTimeoutError",
    "ClassifierRequestError",
    "ClassificationParseError",
    "IndexIntegrityError",
    "ArtifactWriteError",
    "IndexingError",
]
