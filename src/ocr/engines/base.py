from __future__ import annotations

from abc import ABC, abstractmethod

from ..contracts import OcrJobState, OcrProviderName, OcrResultKind


class OcrProvider(ABC):
    """
    Interface for OCR backends.

    IMPORTANT:
    - Providers return literal text hypotheses and geometry, nothing more.
    - Providers must NOT merge lines, classify content or correct text.
    """

    name: OcrProviderName
    result_kind: OcrResultKind

    def max_pages_per_request(self) -> int | None:
        """
        Per-call page limit of the backend; None means unlimited.
        """

        return None

    @abstractmethod
    def submit(self, *, document: bytes, file_name: str) -> str:
        """
        Submit a PDF and return the backend job id.
        """

        raise NotImplementedError

    @abstractmethod
    def poll(self, *, job_id: str) -> OcrJobState:
        raise NotImplementedError
