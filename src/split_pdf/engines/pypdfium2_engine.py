from __future__ import annotations

import io
from pathlib import Path

from .base import PdfSplitEngine


class Pypdfium2Engine(PdfSplitEngine):
    def backend_id(self) -> str:
        return "pypdfium2"

    def backend_version(self) -> str | None:
        try:
            import pypdfium2 as pdfium  # type: ignore

            return getattr(pdfium, "__version__", None)
        except Exception:
            return None

    def _require_pdfium(self):
        try:
            import pypdfium2 as pdfium  # type: ignore

            return pdfium
        except ImportError as e:
            raise RuntimeError(
                "Missing dependency: pypdfium2 is required for PDF page splitting."
            ) from e

    def get_page_count(self, *, pdf_file: Path) -> int:
        pdfium = self._require_pdfium()
        doc = pdfium.PdfDocument(str(pdf_file))
        try:
            return len(doc)
        finally:
            doc.close()

    def extract_pages(self, *, pdf_file: Path, page_indices: list[int]) -> bytes:
        pdfium = self._require_pdfium()
        src = pdfium.PdfDocument(str(pdf_file))
        dest = pdfium.PdfDocument.new()
        try:
            page_count = len(src)
            for i in page_indices:
                if i < 0 or i >= page_count:
                    raise ValueError(f"Page out of range: {i} (0..{page_count - 1})")

            dest.import_pages(src, pages=list(page_indices))
            buf = io.BytesIO()
            dest.save(buf)
            return buf.getvalue()
        finally:
            dest.close()
            src.close()
