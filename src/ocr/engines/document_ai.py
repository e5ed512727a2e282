from __future__ import annotations

import base64
import threading
import uuid

import requests

from contracts.errors import OcrResultShapeError, OcrSubmissionError

from ..contracts import (
    EntityOrientedResult,
    OcrConfig,
    OcrJobState,
    OcrJobStatus,
    OcrProviderName,
    OcrResult,
    OcrResultKind,
)
from .base import OcrProvider

# Online (synchronous) processing accepts at most this many pages per request.
DEFAULT_PAGE_LIMIT = 15


class DocumentAiOcrProvider(OcrProvider):
    """
    Entity-oriented OCR via a synchronous `:process` endpoint.

    The backend answers inline, so `submit` performs the request and keeps the
    parsed result under a local job id; `poll` hands it back exactly once.
    """

    name = OcrProviderName.DOCUMENT_AI
    result_kind = OcrResultKind.ENTITY_ORIENTED

    def __init__(self, *, config: OcrConfig, session: requests.Session | None = None) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._results: dict[str, OcrResult] = {}
        self._lock = threading.Lock()

    def max_pages_per_request(self) -> int | None:
        return self._config.max_pages_per_request or DEFAULT_PAGE_LIMIT

    def submit(self, *, document: bytes, file_name: str) -> str:
        url = f"{self._config.base_url.rstrip('/')}/v1/{self._config.processor_name}:process"
        body = {
            "rawDocument": {
                "mimeType": "application/pdf",
                "content": base64.b64encode(document).decode("ascii"),
            }
        }
        try:
            resp = self._session.post(
                url,
                headers={"Authorization": f"Bearer {self._config.api_key}"},
                json=body,
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            raise OcrSubmissionError(
                "OCR process request failed", detail={"file_name": file_name, "error": repr(e)}
            ) from e

        if not resp.ok:
            raise OcrSubmissionError(
                "OCR backend rejected the document",
                detail={"file_name": file_name, "status_code": resp.status_code, "body": resp.text[-4000:]},
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise OcrResultShapeError("OCR process response is not JSON", detail={"file_name": file_name}) from e

        result = EntityOrientedResult.from_dict(payload)
        job_id = uuid.uuid4().hex
        with self._lock:
            self._results[job_id] = result
        return job_id

    def poll(self, *, job_id: str) -> OcrJobState:
        with self._lock:
            result = self._results.pop(job_id, None)
        if result is None:
            return OcrJobState(status=OcrJobStatus.ERROR, message=f"unknown job id {job_id!r}")
        return OcrJobState(status=OcrJobStatus.COMPLETED, result=result)
