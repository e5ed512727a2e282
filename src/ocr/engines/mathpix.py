from __future__ import annotations

import json
from typing import Any

import requests

from contracts.errors import OcrResultShapeError, OcrSubmissionError

from ..contracts import (
    LineOrientedResult,
    OcrConfig,
    OcrJobState,
    OcrJobStatus,
    OcrProviderName,
    OcrResultKind,
)
from .base import OcrProvider

_CONVERSION_OPTIONS: dict[str, Any] = {
    "conversion_formats": {"md": True},
    "math_inline_delimiters": ["$", "$"],
    "rm_spaces": True,
}


def _truncate(text: str, limit: int = 4000) -> str:
    return text[-limit:]


class MathpixOcrProvider(OcrProvider):
    """
    Line-oriented PDF OCR over HTTP.

    Submission returns a `pdf_id`; the per-line JSON is polled until its
    `status` is terminal. A payload without `status` is the finished lines
    document itself.
    """

    name = OcrProviderName.MATHPIX
    result_kind = OcrResultKind.LINE_ORIENTED

    def __init__(self, *, config: OcrConfig, session: requests.Session | None = None) -> None:
        self._config = config
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {"app_id": self._config.app_id or "", "app_key": self._config.api_key}

    def max_pages_per_request(self) -> int | None:
        return self._config.max_pages_per_request

    def submit(self, *, document: bytes, file_name: str) -> str:
        url = f"{self._config.base_url.rstrip('/')}/v3/pdf"
        try:
            resp = self._session.post(
                url,
                headers=self._headers(),
                files={"file": (file_name, document, "application/pdf")},
                data={"options_json": json.dumps(_CONVERSION_OPTIONS)},
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            raise OcrSubmissionError(
                "OCR submission request failed", detail={"url": url, "error": repr(e)}
            ) from e

        if not resp.ok:
            raise OcrSubmissionError(
                "OCR backend rejected the submission",
                detail={"status_code": resp.status_code, "body": _truncate(resp.text)},
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise OcrResultShapeError("OCR submission response is not JSON") from e

        pdf_id = payload.get("pdf_id") if isinstance(payload, dict) else None
        if not isinstance(pdf_id, str) or pdf_id == "":
            raise OcrSubmissionError(
                "OCR submission response has no pdf_id",
                detail={"error": payload.get("error") if isinstance(payload, dict) else None},
            )
        return pdf_id

    def poll(self, *, job_id: str) -> OcrJobState:
        url = f"{self._config.base_url.rstrip('/')}/v3/pdf/{job_id}.lines.json"
        try:
            resp = self._session.get(url, headers=self._headers(), timeout=self._config.request_timeout_s)
        except requests.RequestException as e:
            raise OcrSubmissionError(
                "OCR status request failed",
                code="OCR_POLL_FAILED",
                detail={"job_id": job_id, "error": repr(e)},
            ) from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise OcrResultShapeError(
                "OCR status response is not JSON",
                detail={"job_id": job_id, "status_code": resp.status_code},
            ) from e
        if not isinstance(payload, dict):
            raise OcrResultShapeError("OCR status response must be an object", detail={"job_id": job_id})

        status = payload.get("status")
        if status == "error":
            return OcrJobState(status=OcrJobStatus.ERROR, message=str(payload.get("error") or "error"))
        # No status means the job finished; a payload without pages then fails shape checks.
        if status == "completed" or status is None:
            return OcrJobState(status=OcrJobStatus.COMPLETED, result=LineOrientedResult.from_dict(payload))
        return OcrJobState(status=OcrJobStatus.PENDING, message=str(status))
