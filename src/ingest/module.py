from __future__ import annotations

import re
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from contracts.document import Document
from contracts.errors import (
    ArtifactWriteError,
    IndexingError,
    PipelineError,
    PipelineStage,
    SourceFetchError,
    StageError,
)
from grouping import OpenAiClassifierProvider, assemble_document, classify_document, count_roles
from grouping.classifier import ClassifierProvider
from ocr import (
    ChunkedOcrResult,
    ExtractedDocument,
    extract_document_lines,
    get_provider,
    render_plain_text,
    run_chunked_ocr,
    run_ocr_on_document,
)
from ocr.engines import OcrProvider
from split_pdf import PdfChunk, split_pdf_file
from storage import ArtifactNotFoundError, ArtifactStore, StorageError, derive_artifact_path, derive_text_path

from .artifacts import ARTIFACT_CONTENT_TYPE, serialize_document
from .config import PipelineConfig
from .contracts import ParseDocumentResult, ParseRequest
from .indexing import SearchIndexClient

logger = structlog.get_logger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _local_name(file_name: str) -> str:
    name = _UNSAFE_NAME_RE.sub("_", Path(file_name).name).strip("._")
    return name or "source.pdf"


def _fetch_source(store: ArtifactStore, source_path: str) -> bytes:
    try:
        data = store.download(source_path)
    except ArtifactNotFoundError as e:
        raise SourceFetchError(
            "Source document not found", code="SOURCE_NOT_FOUND", detail={"source_path": source_path}
        ) from e
    except StorageError as e:
        raise SourceFetchError(
            "Source document could not be read", detail={"source_path": source_path, "error": str(e)}
        ) from e
    if not data:
        raise SourceFetchError("Source document is empty", detail={"source_path": source_path})
    return data


def _plan_chunks(*, source_file: Path, provider: OcrProvider, config: PipelineConfig) -> list[PdfChunk] | None:
    limit = config.chunking.max_pages_per_chunk or provider.max_pages_per_request()
    if limit is None:
        return None
    return split_pdf_file(pdf_file=source_file, max_pages=limit, config=config.chunking)


def _run_ocr(
    *,
    source_file: Path,
    chunks: list[PdfChunk] | None,
    file_name: str,
    provider: OcrProvider,
    config: PipelineConfig,
) -> ChunkedOcrResult:
    if chunks is None:
        result = run_ocr_on_document(
            provider=provider,
            config=config.ocr,
            document=source_file.read_bytes(),
            file_name=file_name,
        )
        return ChunkedOcrResult(result=result, chunks_processed=1, total_chunks=1, failed_chunks=[])
    return run_chunked_ocr(provider=provider, config=config.ocr, chunks=chunks, file_name=file_name)


def _write_artifact(store: ArtifactStore, artifact_path: str, document: Document) -> None:
    payload = serialize_document(document).encode("utf-8")
    try:
        store.upload(artifact_path, payload, ARTIFACT_CONTENT_TYPE)
    except StorageError as e:
        raise ArtifactWriteError(
            "Document artifact could not be written",
            detail={"artifact_path": artifact_path, "error": str(e)},
        ) from e
    logger.info("artifact_written", artifact_path=artifact_path, bytes=len(payload))


def _index_text(
    *,
    client: SearchIndexClient,
    request: ParseRequest,
    extracted: ExtractedDocument,
) -> None:
    client.index_document(
        text=render_plain_text(extracted),
        file_name=request.file_name,
        text_file_name=Path(derive_text_path(request.source_path)).name,
        metadata={
            "fileName": request.file_name,
            "userId": request.user_id,
            "sourcePath": request.source_path,
            "processingDate": datetime.now(timezone.utc).isoformat(),
            "totalPages": len(extracted.pages),
        },
    )


def run_parse_document(
    request: ParseRequest,
    *,
    config: PipelineConfig,
    store: ArtifactStore,
    ocr_provider: OcrProvider | None = None,
    classifier: ClassifierProvider | None = None,
    index_client: SearchIndexClient | None = None,
) -> ParseDocumentResult:
    """
    Run one document through fetch -> OCR -> extraction -> classification ->
    assembly -> artifact write (-> optional indexing).

    Pipeline errors never escape: they come back as a failed result naming the
    stage. The artifact is written only after every earlier stage succeeded,
    so a failed request never leaves a partial artifact behind. The temporary
    working directory is removed on every exit path.
    """

    started = time.monotonic()
    artifact_path = derive_artifact_path(request.source_path, suffix=config.artifact_suffix)
    ocr_provider = ocr_provider or get_provider(config.ocr)
    if classifier is None:
        classifier = OpenAiClassifierProvider(config=config.classifier)
    if index_client is None and config.indexing is not None:
        index_client = SearchIndexClient(config=config.indexing)

    meta: dict[str, Any] = {"provider": ocr_provider.name.value}
    stage = PipelineStage.FETCH
    chunks_processed = 0
    total_chunks = 0

    def _failure(errors: list[StageError]) -> ParseDocumentResult:
        meta["elapsed_ms"] = int((time.monotonic() - started) * 1000)
        return ParseDocumentResult(
            ok=False,
            source_path=request.source_path,
            artifact_path=None,
            stage=stage,
            errors=errors,
            chunks_processed=chunks_processed,
            total_chunks=total_chunks,
            meta=meta,
        )

    structlog.contextvars.bind_contextvars(source_path=request.source_path, user_id=request.user_id)
    try:
        with tempfile.TemporaryDirectory(prefix="doc-reconcile-") as tmp:
            data = _fetch_source(store, request.source_path)
            source_file = Path(tmp) / _local_name(request.file_name)
            source_file.write_bytes(data)
            logger.info("source_fetched", bytes=len(data))

            stage = PipelineStage.CHUNKING
            chunks = _plan_chunks(source_file=source_file, provider=ocr_provider, config=config)
            total_chunks = 1 if chunks is None else len(chunks)

            stage = PipelineStage.OCR
            ocr_run = _run_ocr(
                source_file=source_file,
                chunks=chunks,
                file_name=request.file_name,
                provider=ocr_provider,
                config=config,
            )
            chunks_processed = ocr_run.chunks_processed
            total_chunks = ocr_run.total_chunks
            if ocr_run.failed_chunks:
                meta["chunk_failures"] = ocr_run.failures_to_dict()

            stage = PipelineStage.EXTRACTION
            extracted = extract_document_lines(ocr_run.result)

            stage = PipelineStage.CLASSIFICATION
            groups = classify_document(extracted, provider=classifier)

            stage = PipelineStage.ASSEMBLY
            document = assemble_document(extracted, groups)

            stage = PipelineStage.STORAGE
            _write_artifact(store, artifact_path, document)

            indexing_completed = False
            if index_client is not None:
                stage = PipelineStage.INDEXING
                try:
                    _index_text(client=index_client, request=request, extracted=extracted)
                    indexing_completed = True
                except IndexingError as e:
                    logger.warning("indexing_failed", code=e.code, message=e.message, detail=e.detail)
                    meta["indexing_error"] = e.to_stage_error().to_dict()

        meta.update(
            pages=len(document.pages),
            content_lines=sum(len(p.lines) for p in document.pages),
            roles=count_roles(document),
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        logger.info(
            "parse_document_completed",
            artifact_path=artifact_path,
            chunks_processed=chunks_processed,
            total_chunks=total_chunks,
            indexing_completed=indexing_completed,
            elapsed_ms=meta["elapsed_ms"],
        )
        return ParseDocumentResult(
            ok=True,
            source_path=request.source_path,
            artifact_path=artifact_path,
            chunks_processed=chunks_processed,
            total_chunks=total_chunks,
            indexing_completed=indexing_completed,
            meta=meta,
        )
    except PipelineError as e:
        stage = e.stage
        logger.error("parse_document_failed", stage=stage.value, code=e.code, message=e.message, detail=e.detail)
        return _failure([e.to_stage_error()])
    except Exception as e:
        logger.exception("parse_document_unexpected_error", stage=stage.value)
        return _failure(
            [
                StageError(
                    code="UNEXPECTED_ERROR",
                    stage=stage,
                    message="Unexpected error",
                    detail={"error": repr(e)},
                )
            ]
        )
    finally:
        structlog.contextvars.unbind_contextvars("source_path", "user_id")
