from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

import structlog

from contracts.errors import (
    IndexIntegrityError,
    OcrResultShapeError,
    OcrSubmissionError,
    OcrTimeoutError,
    PipelineStage,
    StageError,
)
from split_pdf.contracts import PageWindow, PdfChunk

from .contracts import EntityOrientedResult, LineOrientedResult, OcrConfig, OcrResult, OcrResultKind
from .engines import OcrProvider
from .module import run_ocr_on_document

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ChunkOutcome:
    """
    OCR outcome of one page window, tagged with the window it came from so
    recombination never depends on completion order.
    """

    window: PageWindow
    result: OcrResult | None
    error: StageError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None and self.error is None


@dataclass(frozen=True, slots=True)
class ChunkedOcrResult:
    result: OcrResult
    chunks_processed: int
    total_chunks: int
    failed_chunks: list[ChunkOutcome]

    def failures_to_dict(self) -> list[dict[str, Any]]:
        return [
            {**o.window.to_dict(), "error": None if o.error is None else o.error.to_dict()}
            for o in self.failed_chunks
        ]


def _chunk_file_name(file_name: str, chunk_index: int) -> str:
    stem = file_name[:-4] if file_name.lower().endswith(".pdf") else file_name
    return f"{stem}_chunk_{chunk_index + 1}.pdf"


def _run_chunk(*, provider: OcrProvider, config: OcrConfig, chunk: PdfChunk, file_name: str) -> ChunkOutcome:
    try:
        result = run_ocr_on_document(
            provider=provider,
            config=config,
            document=chunk.data,
            file_name=_chunk_file_name(file_name, chunk.chunk_index),
        )
    except (OcrSubmissionError, OcrTimeoutError) as e:
        e.detail.update(chunk.window.to_dict())
        logger.warning("ocr_chunk_failed", code=e.code, message=e.message, **chunk.window.to_dict())
        return ChunkOutcome(window=chunk.window, result=None, error=e.to_stage_error())
    except Exception as e:
        logger.exception("ocr_chunk_unexpected_error", **chunk.window.to_dict())
        error = StageError(
            code="OCR_CHUNK_UNEXPECTED_ERROR",
            stage=PipelineStage.OCR,
            message="Unexpected error while running OCR for a chunk",
            detail={**chunk.window.to_dict(), "error": repr(e)},
        )
        return ChunkOutcome(window=chunk.window, result=None, error=error)

    if result.page_count() != chunk.window.page_count:
        logger.warning(
            "ocr_chunk_page_count_mismatch",
            expected=chunk.window.page_count,
            got=result.page_count(),
            **chunk.window.to_dict(),
        )
    return ChunkOutcome(window=chunk.window, result=result)


def _combine(results: list[OcrResult]) -> OcrResult:
    kinds = {r.kind for r in results}
    if len(kinds) != 1:
        raise OcrResultShapeError(
            "Chunk results have mixed OCR result shapes", detail={"kinds": sorted(k.value for k in kinds)}
        )
    if results[0].kind == OcrResultKind.LINE_ORIENTED:
        return LineOrientedResult(pages=[p for r in results for p in r.pages])
    return EntityOrientedResult(
        pages=[p for r in results for p in r.pages],
        entities=[e for r in results for e in r.entities],
    )


def recombine_chunk_results(outcomes: list[ChunkOutcome], *, total_chunks: int) -> ChunkedOcrResult:
    """
    Rebuild one page sequence from per-chunk OCR results.

    Outcomes are ordered by their source page offset and each result's page
    references are rebased by that offset. Failed chunks are skipped and
    reported; if none succeeded the whole document fails.
    """

    ordered = sorted(outcomes, key=lambda o: o.window.page_offset)
    succeeded = [o for o in ordered if o.ok]
    failed = [o for o in ordered if not o.ok]

    if not succeeded:
        raise OcrSubmissionError(
            "OCR failed for every chunk",
            code="OCR_ALL_CHUNKS_FAILED",
            detail={
                "total_chunks": total_chunks,
                "failures": [
                    {**o.window.to_dict(), "code": None if o.error is None else o.error.code} for o in failed
                ],
            },
        )

    rebased = [o.result.rebased(o.window.page_offset) for o in succeeded if o.result is not None]
    combined = _combine(rebased)

    seen: dict[int, int] = {}
    for outcome, result in zip(succeeded, rebased):
        for page in result.pages:
            if page.page_index in seen:
                raise IndexIntegrityError(
                    "Rebased chunk pages overlap",
                    detail={
                        "page_index": page.page_index,
                        "chunk_index": outcome.window.chunk_index,
                        "other_chunk_index": seen[page.page_index],
                    },
                )
            seen[page.page_index] = outcome.window.chunk_index

    return ChunkedOcrResult(
        result=combined,
        chunks_processed=len(succeeded),
        total_chunks=total_chunks,
        failed_chunks=failed,
    )


def run_chunked_ocr(
    *,
    provider: OcrProvider,
    config: OcrConfig,
    chunks: list[PdfChunk],
    file_name: str,
) -> ChunkedOcrResult:
    """
    Fan out every chunk to the provider concurrently and recombine in page order.
    """

    if not chunks:
        raise ValueError("chunks must be non-empty")

    workers = len(chunks) if config.max_workers is None else min(config.max_workers, len(chunks))
    outcomes: list[ChunkOutcome] = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(_run_chunk, provider=provider, config=config, chunk=chunk, file_name=file_name)
            for chunk in chunks
        ]
        for fut in as_completed(futures):
            outcomes.append(fut.result())

    combined = recombine_chunk_results(outcomes, total_chunks=len(chunks))
    logger.info(
        "ocr_chunks_recombined",
        chunks_processed=combined.chunks_processed,
        total_chunks=combined.total_chunks,
        pages=combined.result.page_count(),
    )
    return combined
