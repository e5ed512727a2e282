from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import patch

from contracts.errors import IndexingError, OcrTimeoutError, PipelineStage
from grouping.classifier import ClassifierProvider
from grouping.config import ClassifierConfig
from ingest import ParseRequest, PipelineConfig, load_document, run_parse_document
from ocr.contracts import (
    LineOrientedResult,
    OcrConfig,
    OcrJobState,
    OcrJobStatus,
    OcrProviderName,
    OcrResultKind,
)
from ocr.engines import OcrProvider
from split_pdf.contracts import PageWindow, PdfChunk
from storage import ArtifactNotFoundError, ArtifactStore, StorageError


class _MemoryStore(ArtifactStore):
    def __init__(self, objects: dict[str, bytes] | None = None, *, fail_uploads: bool = False) -> None:
        self.objects = dict(objects or {})
        self.uploads: list[tuple[str, str]] = []
        self.fail_uploads = fail_uploads

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_uploads:
            raise StorageError("bucket unavailable")
        self.uploads.append((path, content_type))
        self.objects[path] = data

    def download(self, path: str) -> bytes:
        if path not in self.objects:
            raise ArtifactNotFoundError(path)
        return self.objects[path]


def _lines_payload(*pages: list[str]) -> dict[str, Any]:
    return {
        "pages": [
            {
                "page_width": 1000,
                "page_height": 1400,
                "lines": [
                    {
                        "text": t,
                        "type": "text",
                        "line": i + 1,
                        "column": 0,
                        "region": {"top_left_x": 10, "top_left_y": 20 * (i + 1), "width": 100, "height": 15},
                    }
                    for i, t in enumerate(texts)
                ],
            }
            for texts in pages
        ]
    }


class _FakeOcrProvider(OcrProvider):
    name = OcrProviderName.MATHPIX
    result_kind = OcrResultKind.LINE_ORIENTED

    def __init__(self, by_document: dict[bytes, Any], *, page_limit: int | None = None) -> None:
        self._by_document = by_document
        self._page_limit = page_limit
        self.submitted: list[str] = []

    def max_pages_per_request(self) -> int | None:
        return self._page_limit

    def submit(self, *, document: bytes, file_name: str) -> str:
        self.submitted.append(file_name)
        return document.decode("ascii")

    def poll(self, *, job_id: str) -> OcrJobState:
        payload = self._by_document[job_id.encode("ascii")]
        if isinstance(payload, Exception):
            raise payload
        if payload is None:
            return OcrJobState(status=OcrJobStatus.PENDING)
        return OcrJobState(status=OcrJobStatus.COMPLETED, result=LineOrientedResult.from_dict(payload))


class _StubClassifier(ClassifierProvider):
    name = "stub"

    def __init__(self, response: str) -> None:
        self.response = response
        self.calls = 0

    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        self.calls += 1
        return self.response


class _FailingIndexClient:
    def index_document(self, **kwargs: Any) -> str:
        raise IndexingError("index down")


class _RecordingIndexClient:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def index_document(self, **kwargs: Any) -> str:
        self.calls.append(kwargs)
        return "file-1"


def _config() -> PipelineConfig:
    return PipelineConfig(
        ocr=OcrConfig(
            provider=OcrProviderName.MATHPIX,
            base_url="https://ocr.test",
            api_key="k",
            poll_timeout_s=0,
            poll_interval_s=0.01,
            max_poll_interval_s=0.01,
        ),
        classifier=ClassifierConfig(api_key="sk-test"),
    )


_REQUEST = ParseRequest(file_name="Homework 1.pdf", source_path="u1/hw1.pdf", user_id="u1")
_SOURCE = b"SOURCE"
_GROUPS = json.dumps(
    {
        "pages": [
            {"page": 0, "groups": [[0, 1, "Q"], [2, "R"]]},
            {"page": 1, "groups": [[0, "I"]]},
        ]
    }
)


class TestRunParseDocument(unittest.TestCase):
    def _run(self, store: _MemoryStore, *, provider: OcrProvider | None = None, classifier=None, **kw):
        provider = provider or _FakeOcrProvider(
            {_SOURCE: _lines_payload(["1. What is 2+2?", "A) 3  B) 4", "Show your work."], ["Name: ____"])}
        )
        return run_parse_document(
            _REQUEST,
            config=_config(),
            store=store,
            ocr_provider=provider,
            classifier=classifier or _StubClassifier(_GROUPS),
            **kw,
        )

    def test_success_writes_document_artifact(self) -> None:
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})
        result = self._run(store)

        self.assertTrue(result.ok, result.errors)
        self.assertIsNone(result.stage)
        self.assertEqual(result.artifact_path, "u1/hw1_parsed.json")
        self.assertEqual((result.chunks_processed, result.total_chunks), (1, 1))
        self.assertEqual(store.uploads, [("u1/hw1_parsed.json", "application/json")])
        self.assertEqual(result.meta["roles"], {"I": 1, "Q": 1, "R": 1})
        self.assertEqual(result.meta["provider"], "mathpix")

        doc = load_document(store.objects["u1/hw1_parsed.json"])
        self.assertEqual(len(doc.pages), 2)
        q = doc.pages[0].lines[0]
        self.assertEqual(q.text, "1. What is 2+2? A) 3  B) 4")
        self.assertEqual(q.text_type.value, "Q")
        self.assertEqual(q.region.to_dict(), {"top_left_x": 10, "top_left_y": 20, "width": 100, "height": 35})
        self.assertEqual((q.line, q.column), (1, 0))
        self.assertEqual(doc.pages[1].lines[0].text_type.value, "I")
        self.assertEqual(doc.pages[0].page_width, 1000)

        raw = json.loads(store.objects["u1/hw1_parsed.json"])
        self.assertEqual(sorted(raw), ["page"])
        self.assertEqual(sorted(raw["page"][0]["lines"][0]), ["column", "line", "region", "text", "textType", "type"])

    def test_malformed_classifier_output_writes_nothing(self) -> None:
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})
        result = self._run(store, classifier=_StubClassifier("I think item 0 is a question."))

        self.assertFalse(result.ok)
        self.assertEqual(result.stage, PipelineStage.CLASSIFICATION)
        self.assertEqual([e.code for e in result.errors], ["CLASSIFICATION_PARSE_FAILED"])
        self.assertIsNone(result.artifact_path)
        self.assertEqual(store.uploads, [])
        self.assertEqual(sorted(store.objects), ["u1/hw1.pdf"])

    def test_reprocessing_overwrites_same_artifact(self) -> None:
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})
        first = self._run(store)
        second = self._run(store)

        self.assertTrue(first.ok and second.ok)
        self.assertEqual([p for p, _ in store.uploads], ["u1/hw1_parsed.json", "u1/hw1_parsed.json"])
        self.assertEqual(sorted(store.objects), ["u1/hw1.pdf", "u1/hw1_parsed.json"])

    def test_missing_source_fails_before_ocr(self) -> None:
        provider = _FakeOcrProvider({})
        result = self._run(_MemoryStore(), provider=provider)

        self.assertFalse(result.ok)
        self.assertEqual(result.stage, PipelineStage.FETCH)
        self.assertEqual(result.errors[0].code, "SOURCE_NOT_FOUND")
        self.assertEqual(provider.submitted, [])

    def test_ocr_timeout_is_fatal_without_chunking(self) -> None:
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})
        result = self._run(store, provider=_FakeOcrProvider({_SOURCE: None}))

        self.assertFalse(result.ok)
        self.assertEqual(result.stage, PipelineStage.OCR)
        self.assertEqual(result.errors[0].code, OcrTimeoutError.code)
        self.assertEqual(store.uploads, [])

    def test_artifact_write_failure_is_not_success(self) -> None:
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE}, fail_uploads=True)
        result = self._run(store)

        self.assertFalse(result.ok)
        self.assertEqual(result.stage, PipelineStage.STORAGE)
        self.assertEqual(result.errors[0].code, "ARTIFACT_WRITE_FAILED")

    def test_partial_chunk_failure_keeps_surviving_pages(self) -> None:
        chunks = [
            PdfChunk(window=PageWindow(chunk_index=i, page_offset=2 * i, page_count=2), data=f"C{i}".encode("ascii"))
            for i in range(3)
        ]
        provider = _FakeOcrProvider(
            {
                b"C0": _lines_payload(["p0"], ["p1"]),
                b"C1": None,
                b"C2": _lines_payload(["p4"], ["p5"]),
            },
            page_limit=2,
        )
        classifier = _StubClassifier(
            json.dumps({"pages": [{"page": p, "groups": [[0, "Q"]]} for p in (0, 1, 4, 5)]})
        )
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})

        with patch("ingest.module.split_pdf_file", return_value=chunks) as split:
            result = self._run(store, provider=provider, classifier=classifier)

        self.assertEqual(split.call_args.kwargs["max_pages"], 2)
        self.assertTrue(result.ok, result.errors)
        self.assertEqual((result.chunks_processed, result.total_chunks), (2, 3))
        self.assertEqual(result.meta["chunk_failures"][0]["chunk_index"], 1)

        doc = load_document(store.objects["u1/hw1_parsed.json"])
        self.assertEqual([p.page_index for p in doc.pages], [0, 1, 4, 5])
        self.assertEqual([p.lines[0].text for p in doc.pages], ["p0", "p1", "p4", "p5"])

    def _three_chunks(self) -> list[PdfChunk]:
        return [
            PdfChunk(window=PageWindow(chunk_index=i, page_offset=2 * i, page_count=2), data=f"C{i}".encode("ascii"))
            for i in range(3)
        ]

    def test_every_chunk_failing_reports_planned_chunk_count(self) -> None:
        provider = _FakeOcrProvider({b"C0": None, b"C1": None, b"C2": None}, page_limit=2)
        classifier = _StubClassifier(_GROUPS)
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})

        with patch("ingest.module.split_pdf_file", return_value=self._three_chunks()):
            result = self._run(store, provider=provider, classifier=classifier)

        self.assertFalse(result.ok)
        self.assertEqual(result.stage, PipelineStage.OCR)
        self.assertEqual([e.code for e in result.errors], ["OCR_ALL_CHUNKS_FAILED"])
        self.assertEqual((result.chunks_processed, result.total_chunks), (0, 3))
        self.assertEqual(classifier.calls, 0)
        self.assertEqual(sorted(store.objects), ["u1/hw1.pdf"])

    def test_unexpected_error_in_one_chunk_keeps_the_rest(self) -> None:
        provider = _FakeOcrProvider(
            {
                b"C0": _lines_payload(["p0"], ["p1"]),
                b"C1": RuntimeError("provider bug"),
                b"C2": _lines_payload(["p4"], ["p5"]),
            },
            page_limit=2,
        )
        classifier = _StubClassifier(
            json.dumps({"pages": [{"page": p, "groups": [[0, "Q"]]} for p in (0, 1, 4, 5)]})
        )
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})

        with patch("ingest.module.split_pdf_file", return_value=self._three_chunks()):
            result = self._run(store, provider=provider, classifier=classifier)

        self.assertTrue(result.ok, result.errors)
        self.assertEqual((result.chunks_processed, result.total_chunks), (2, 3))
        self.assertEqual(result.meta["chunk_failures"][0]["error"]["code"], "OCR_CHUNK_UNEXPECTED_ERROR")

    def test_indexing_failure_is_not_fatal(self) -> None:
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})
        result = self._run(store, index_client=_FailingIndexClient())

        self.assertTrue(result.ok)
        self.assertFalse(result.indexing_completed)
        self.assertEqual(result.meta["indexing_error"]["code"], "INDEXING_FAILED")
        self.assertIn("u1/hw1_parsed.json", store.objects)

    def test_indexing_receives_plain_text(self) -> None:
        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})
        index = _RecordingIndexClient()
        result = self._run(store, index_client=index)

        self.assertTrue(result.indexing_completed)
        call = index.calls[0]
        self.assertEqual(call["text"], "1. What is 2+2?\nA) 3  B) 4\nShow your work.\nName: ____")
        self.assertEqual(call["text_file_name"], "hw1_text.txt")
        self.assertEqual(call["metadata"]["totalPages"], 2)

    def test_temporary_directory_released_on_failure(self) -> None:
        created: list[Path] = []
        real = tempfile.TemporaryDirectory

        def recording(*args: Any, **kwargs: Any):
            td = real(*args, **kwargs)
            created.append(Path(td.name))
            return td

        store = _MemoryStore({"u1/hw1.pdf": _SOURCE})
        with patch("ingest.module.tempfile.TemporaryDirectory", side_effect=recording):
            result = self._run(store, classifier=_StubClassifier("not json"))

        self.assertFalse(result.ok)
        self.assertEqual(len(created), 1)
        self.assertFalse(created[0].exists())


if __name__ == "__main__":
    unittest.main()
