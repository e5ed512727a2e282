from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import requests
import structlog

from contracts.errors import IndexingError
from ocr.polling import poll_until_complete

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class IndexingConfig:
    """
    Search-index pipeline parameters. Passed in explicitly; no environment reads.
    """

    api_key: str
    pipeline_id: str
    project_id: str | None = None
    base_url: str = "https://api.cloud.llamaindex.ai"
    request_timeout_s: float = 60.0
    poll_timeout_s: float = 120.0
    poll_interval_s: float = 3.0
    document_type: str = "worksheet-ocr"

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key must be non-empty")
        if not self.pipeline_id:
            raise ValueError("pipeline_id must be non-empty")
        if self.poll_timeout_s < 0:
            raise ValueError("poll_timeout_s must be >= 0")
        if self.poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be > 0")


class IndexState(str, Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


def index_state_from_status(payload: dict[str, Any]) -> IndexState:
    status = str(payload.get("status") or "")
    if status in ("SUCCESS", "completed"):
        return IndexState.DONE
    if status.lower() in ("failed", "error"):
        return IndexState.FAILED
    # Some deployments never flip the status; an empty queue with indexed docs is done.
    pending = payload.get("pending_documents")
    indexed = payload.get("indexed_documents") or 0
    if pending == 0 and indexed > 0:
        return IndexState.DONE
    return IndexState.PENDING


class SearchIndexClient:
    """
    Uploads extracted text as a file to an external index pipeline and waits
    for the pipeline to finish ingesting it.
    """

    def __init__(
        self,
        *,
        config: IndexingConfig,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._sleep = sleep

    def _url(self, path: str) -> str:
        return f"{self._config.base_url.rstrip('/')}{path}"

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "Authorization": f"Bearer {self._config.api_key}"}

    def upload_text(self, *, text: str, text_file_name: str, external_file_id: str) -> str:
        data = {"external_file_id": external_file_id}
        if self._config.project_id:
            data["project_id"] = self._config.project_id
        try:
            resp = self._session.post(
                self._url("/api/v1/files"),
                headers=self._headers(),
                files={"upload_file": (text_file_name, text.encode("utf-8"), "text/plain")},
                data=data,
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            raise IndexingError("Index file upload request failed", detail={"error": repr(e)}) from e
        if not resp.ok:
            raise IndexingError(
                "Index file upload rejected",
                detail={"status_code": resp.status_code, "body": resp.text[-2000:]},
            )
        try:
            file_id = resp.json().get("id")
        except (ValueError, AttributeError) as e:
            raise IndexingError("Index file upload response is not a JSON object") from e
        if not file_id:
            raise IndexingError("Index file upload response has no id")
        return str(file_id)

    def add_to_pipeline(self, *, file_id: str, metadata: dict[str, Any]) -> None:
        try:
            resp = self._session.put(
                self._url(f"/api/v1/pipelines/{self._config.pipeline_id}/files"),
                headers={**self._headers(), "Content-Type": "application/json"},
                json=[{"file_id": file_id, "custom_metadata": metadata}],
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            raise IndexingError(
                "Adding file to index pipeline failed", detail={"file_id": file_id, "error": repr(e)}
            ) from e
        if not resp.ok:
            raise IndexingError(
                "Index pipeline rejected the file",
                detail={"file_id": file_id, "status_code": resp.status_code, "body": resp.text[-2000:]},
            )

    def _fetch_state(self) -> IndexState:
        try:
            resp = self._session.get(
                self._url(f"/api/v1/pipelines/{self._config.pipeline_id}/status"),
                headers=self._headers(),
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            logger.warning("index_status_request_failed", error=repr(e))
            return IndexState.PENDING
        if not resp.ok:
            logger.warning("index_status_not_ok", status_code=resp.status_code)
            return IndexState.PENDING
        try:
            payload = resp.json()
        except ValueError:
            return IndexState.PENDING
        return index_state_from_status(payload) if isinstance(payload, dict) else IndexState.PENDING

    def wait_until_indexed(self) -> None:
        state = poll_until_complete(
            self._fetch_state,
            is_pending=lambda s: s == IndexState.PENDING,
            timeout_s=self._config.poll_timeout_s,
            interval_s=self._config.poll_interval_s,
            on_timeout=lambda: IndexingError(
                "Index pipeline did not finish in time",
                code="INDEXING_TIMEOUT",
                detail={"timeout_s": self._config.poll_timeout_s},
            ),
            sleep=self._sleep,
        )
        if state == IndexState.FAILED:
            raise IndexingError("Index pipeline reported failure", detail={"pipeline_id": self._config.pipeline_id})

    def index_document(
        self,
        *,
        text: str,
        file_name: str,
        text_file_name: str,
        metadata: dict[str, Any],
    ) -> str:
        """
        Upload, attach to the pipeline and wait. Returns the index file id.
        """

        started = time.monotonic()
        external_file_id = f"{file_name}_ocr_{int(time.time() * 1000)}"
        file_id = self.upload_text(text=text, text_file_name=text_file_name, external_file_id=external_file_id)
        self.add_to_pipeline(file_id=file_id, metadata={"documentType": self._config.document_type, **metadata})
        self.wait_until_indexed()
        logger.info(
            "index_document_completed",
            file_id=file_id,
            chars=len(text),
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return file_id
