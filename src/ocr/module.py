from __future__ import annotations

import time

import structlog

from contracts.errors import OcrResultShapeError, OcrSubmissionError, OcrTimeoutError

from .contracts import OcrConfig, OcrJobState, OcrJobStatus, OcrProviderName, OcrResult
from .engines import DocumentAiOcrProvider, MathpixOcrProvider, OcrProvider
from .polling import poll_until_complete

logger = structlog.get_logger(__name__)


def get_provider(config: OcrConfig) -> OcrProvider:
    if config.provider == OcrProviderName.MATHPIX:
        return MathpixOcrProvider(config=config)
    if config.provider == OcrProviderName.DOCUMENT_AI:
        return DocumentAiOcrProvider(config=config)
    raise ValueError(f"Unsupported OCR provider: {config.provider}")


def run_ocr_on_document(
    *,
    provider: OcrProvider,
    config: OcrConfig,
    document: bytes,
    file_name: str,
) -> OcrResult:
    """
    Submit one PDF to the provider and poll until the job reaches a terminal state.

    Raises OcrSubmissionError on rejection or a failed job, and OcrTimeoutError
    when the poll timeout (`config.poll_timeout_s`) runs out.
    """

    started = time.monotonic()
    job_id = provider.submit(document=document, file_name=file_name)
    log = logger.bind(provider=provider.name.value, job_id=job_id, file_name=file_name)
    log.info("ocr_job_submitted")

    def _timeout() -> Exception:
        return OcrTimeoutError(
            "OCR job did not complete within the poll timeout",
            detail={"job_id": job_id, "timeout_s": config.poll_timeout_s},
        )

    state: OcrJobState = poll_until_complete(
        lambda: provider.poll(job_id=job_id),
        is_pending=lambda s: s.status == OcrJobStatus.PENDING,
        timeout_s=config.poll_timeout_s,
        interval_s=config.poll_interval_s,
        max_interval_s=config.max_poll_interval_s,
        on_timeout=_timeout,
    )

    if state.status == OcrJobStatus.ERROR:
        raise OcrSubmissionError(
            "OCR job failed",
            code="OCR_JOB_FAILED",
            detail={"job_id": job_id, "message": state.message},
        )
    if state.result is None:
        raise OcrResultShapeError("OCR job completed without a result", detail={"job_id": job_id})

    log.info(
        "ocr_job_completed",
        pages=state.result.page_count(),
        elapsed_ms=int((time.monotonic() - started) * 1000),
    )
    return state.result
