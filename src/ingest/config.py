from __future__ import annotations

from dataclasses import dataclass, field

from grouping.config import ClassifierConfig
from ocr.contracts import OcrConfig
from split_pdf.contracts import ChunkingConfig

from .indexing import IndexingConfig


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """
    Everything one request needs, passed in explicitly by the caller.

    `indexing=None` disables search-index ingestion.
    """

    ocr: OcrConfig
    classifier: ClassifierConfig
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    indexing: IndexingConfig | None = None
    artifact_suffix: str = "_parsed"

    def __post_init__(self) -> None:
        if not self.artifact_suffix:
            raise ValueError("artifact_suffix must be non-empty")
