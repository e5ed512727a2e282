from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class PdfSplitEngine(ABC):
    """
    PDF page-splitting engine abstraction.

    Engines must:
    - Copy pages verbatim into new standalone PDFs, in the requested order
    - Perform NO rendering, OCR, text extraction or filtering
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def backend_version(self) -> str | None:
        return None

    @abstractmethod
    def get_page_count(self, *, pdf_file: Path) -> int:
        raise NotImplementedError

    @abstractmethod
    def extract_pages(self, *, pdf_file: Path, page_indices: list[int]) -> bytes:
        """
        Return a new PDF (bytes) containing `page_indices` (0-based) of `pdf_file`.
        """

        raise NotImplementedError
