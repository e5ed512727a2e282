"""
OCR stage (perception only).

- Input: PDF bytes (whole document or one page window)
- Output: provider result normalized into per-page raw lines with regions
- Constraints: no correction, no merging, no classification

Data access:
- No environment variable reads in this module
- Credentials and endpoints arrive via OcrConfig
"""

from .chunked import ChunkedOcrResult, ChunkOutcome, recombine_chunk_results, run_chunked_ocr
from .contracts import (
    EntityOrientedResult,
    LineOrientedResult,
    OcrConfig,
    OcrJobState,
    OcrJobStatus,
    OcrProviderName,
    OcrResult,
    OcrResultKind,
)
from .extract import ExtractedDocument, ExtractedPage, extract_document_lines, is_classifiable, render_plain_text
from .geometry import (
    NormalizedPolygon,
    PixelRect,
    normalize_region,
    region_from_normalized_vertices,
    region_from_pixel_rect,
)
from .module import get_provider, run_ocr_on_document
from .polling import poll_until_complete

__all__ = [
    "ChunkOutcome",
    "ChunkedOcrResult",
    "EntityOrientedResult",
    "ExtractedDocument",
    "ExtractedPage",
    "LineOrientedResult",
    "NormalizedPolygon",
    "OcrConfig",
    "OcrJobState",
    "OcrJobStatus",
    "OcrProviderName",
    "OcrResult",
    "OcrResultKind",
    "PixelRect",
    "extract_document_lines",
    "get_provider",
    "is_classifiable",
    "normalize_region",
    "poll_until_complete",
    "recombine_chunk_results",
    "region_from_normalized_vertices",
    "region_from_pixel_rect",
    "render_plain_text",
    "run_chunked_ocr",
    "run_ocr_on_document",
]
