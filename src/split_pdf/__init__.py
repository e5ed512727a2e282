"""
PDF page-window splitting.

The only place that opens PDFs: it copies consecutive page runs into
standalone sub-documents for OCR backends that cap pages per call. It performs
NO rendering, OCR or text extraction.
"""

from .contracts import ChunkingConfig, PageWindow, PdfChunk, SplitEngineName
from .module import get_page_count, plan_page_windows, split_pdf_file

__all__ = [
    "ChunkingConfig",
    "PageWindow",
    "PdfChunk",
    "SplitEngineName",
    "get_page_count",
    "plan_page_windows",
    "split_pdf_file",
]
