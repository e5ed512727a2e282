from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SplitEngineName(str, Enum):
    """
    PDF page-splitting backend identifiers.
    """

    PYPDFIUM2 = "pypdfium2"


@dataclass(frozen=True, slots=True)
class PageWindow:
    """
    Consecutive run of source pages submitted as one OCR unit.
    """

    chunk_index: int
    page_offset: int  # 0-based index of the first source page in this window
    page_count: int

    def page_indices(self) -> list[int]:
        return list(range(self.page_offset, self.page_offset + self.page_count))

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunk_index": self.chunk_index,
            "page_offset": self.page_offset,
            "page_count": self.page_count,
        }


@dataclass(frozen=True, slots=True)
class PdfChunk:
    window: PageWindow
    data: bytes  # standalone PDF holding exactly the window's pages

    @property
    def chunk_index(self) -> int:
        return self.window.chunk_index

    @property
    def page_offset(self) -> int:
        return self.window.page_offset


@dataclass(frozen=True, slots=True)
class ChunkingConfig:
    """
    `max_pages_per_chunk=None` defers to the OCR provider's own page limit;
    when neither sets one, the document is submitted whole.
    """

    max_pages_per_chunk: int | None = None
    engine: SplitEngineName = SplitEngineName.PYPDFIUM2

    def __post_init__(self) -> None:
        if self.max_pages_per_chunk is not None and self.max_pages_per_chunk < 1:
            raise ValueError("max_pages_per_chunk must be >= 1")
