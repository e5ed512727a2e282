from __future__ import annotations

from pathlib import Path

import structlog

from contracts.errors import ChunkingError

from .contracts import ChunkingConfig, PageWindow, PdfChunk, SplitEngineName
from .engines import PdfSplitEngine, Pypdfium2Engine

logger = structlog.get_logger(__name__)


def _get_engine(engine: SplitEngineName) -> PdfSplitEngine:
    if engine == SplitEngineName.PYPDFIUM2:
        return Pypdfium2Engine()
    raise ValueError(f"Unsupported split engine: {engine}")


def plan_page_windows(*, page_count: int, max_pages: int) -> list[PageWindow]:
    """
    Cut `page_count` pages into consecutive windows of at most `max_pages`.

    Windows never split a page; only the last window may be shorter.
    """

    if max_pages < 1:
        raise ValueError("max_pages must be >= 1")
    if page_count < 0:
        raise ValueError("page_count must be >= 0")

    windows: list[PageWindow] = []
    for chunk_index, start in enumerate(range(0, page_count, max_pages)):
        windows.append(
            PageWindow(
                chunk_index=chunk_index,
                page_offset=start,
                page_count=min(max_pages, page_count - start),
            )
        )
    return windows


def get_page_count(*, pdf_file: Path, config: ChunkingConfig) -> int:
    engine = _get_engine(config.engine)
    try:
        return engine.get_page_count(pdf_file=pdf_file)
    except Exception as e:
        raise ChunkingError(
            "Failed to read PDF page count",
            detail={"pdf_file": pdf_file.name, "backend": engine.backend_id(), "error": repr(e)},
        ) from e


def split_pdf_file(*, pdf_file: Path, max_pages: int, config: ChunkingConfig) -> list[PdfChunk]:
    """
    Split a PDF on disk into standalone sub-PDFs of at most `max_pages` pages.
    """

    engine = _get_engine(config.engine)
    page_count = get_page_count(pdf_file=pdf_file, config=config)
    if page_count == 0:
        raise ChunkingError("PDF has no pages", detail={"pdf_file": pdf_file.name})

    windows = plan_page_windows(page_count=page_count, max_pages=max_pages)
    chunks: list[PdfChunk] = []
    for window in windows:
        try:
            data = engine.extract_pages(pdf_file=pdf_file, page_indices=window.page_indices())
        except Exception as e:
            raise ChunkingError(
                "Failed to extract PDF pages for chunk",
                detail={**window.to_dict(), "backend": engine.backend_id(), "error": repr(e)},
            ) from e
        chunks.append(PdfChunk(window=window, data=data))

    logger.info(
        "pdf_split",
        pdf_file=pdf_file.name,
        pages=page_count,
        chunks=len(chunks),
        max_pages=max_pages,
        backend=engine.backend_id(),
        backend_version=engine.backend_version(),
    )
    return chunks
