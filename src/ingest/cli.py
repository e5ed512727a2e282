from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from grouping.config import ClassifierConfig
from ocr.contracts import OcrConfig, OcrProviderName
from split_pdf.contracts import ChunkingConfig
from storage import LocalArtifactStore

from .config import PipelineConfig
from .contracts import ParseRequest
from .indexing import IndexingConfig
from .logging_config import configure_logging
from .module import run_parse_document

_DEFAULT_BASE_URLS = {
    OcrProviderName.MATHPIX: "https://api.mathpix.com",
    OcrProviderName.DOCUMENT_AI: "https://us-documentai.googleapis.com",
}


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="doc-reconcile",
        description=(
            "OCR a stored PDF, group and classify its lines (question / relevant / irrelevant) "
            "and write the structured document artifact next to the source."
        ),
    )
    p.add_argument("--file-name", required=True, help="User-facing file name of the document.")
    p.add_argument(
        "--source-path",
        required=True,
        help="Store key of the source PDF, relative to --data-root (e.g. user123/homework.pdf).",
    )
    p.add_argument("--user-id", required=True, help="Owner of the document.")
    p.add_argument("--data-root", required=True, type=Path, help="Root directory of the artifact store.")
    p.add_argument(
        "--provider",
        choices=[x.value for x in OcrProviderName],
        default=OcrProviderName.MATHPIX.value,
        help="OCR backend.",
    )
    p.add_argument(
        "--chunk-pages",
        type=int,
        default=None,
        help="Max pages per OCR request; default is the provider's own limit (none for mathpix).",
    )
    p.add_argument("--no-index", action="store_true", help="Skip search-index ingestion.")
    p.add_argument("--log-level", default="INFO", help="Log level (DEBUG, INFO, WARNING, ...).")
    p.add_argument("--json-logs", action="store_true", help="Emit JSON log lines instead of console output.")
    return p


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    return value if value else default


def _ocr_config(provider: OcrProviderName) -> OcrConfig:
    if provider == OcrProviderName.MATHPIX:
        return OcrConfig(
            provider=provider,
            base_url=_env("MATHPIX_BASE_URL", _DEFAULT_BASE_URLS[provider]) or "",
            api_key=_env("MATHPIX_APP_KEY", "") or "",
            app_id=_env("MATHPIX_APP_ID"),
            poll_timeout_s=float(_env("MATHPIX_POLL_TIMEOUT_S", "60") or 60),
        )
    return OcrConfig(
        provider=provider,
        base_url=_env("DOCUMENT_AI_BASE_URL", _DEFAULT_BASE_URLS[provider]) or "",
        api_key=_env("DOCUMENT_AI_ACCESS_TOKEN", "") or "",
        processor_name=_env("DOCUMENT_AI_PROCESSOR_NAME"),
    )


def _indexing_config() -> IndexingConfig | None:
    api_key = _env("LLAMA_CLOUD_API_KEY")
    pipeline_id = _env("INDEX_PIPELINE_ID")
    if not api_key or not pipeline_id:
        return None
    return IndexingConfig(
        api_key=api_key,
        pipeline_id=pipeline_id,
        project_id=_env("INDEX_PROJECT_ID"),
        base_url=_env("INDEX_BASE_URL", "https://api.cloud.llamaindex.ai") or "",
    )


def build_pipeline_config(args: argparse.Namespace) -> PipelineConfig:
    provider = OcrProviderName(args.provider)
    return PipelineConfig(
        ocr=_ocr_config(provider),
        classifier=ClassifierConfig(
            api_key=_env("OPENAI_API_KEY", "") or "",
            model=_env("OPENAI_MODEL", "gpt-4o-mini") or "gpt-4o-mini",
            base_url=_env("OPENAI_BASE_URL"),
        ),
        chunking=ChunkingConfig(max_pages_per_chunk=args.chunk_pages),
        indexing=None if args.no_index else _indexing_config(),
    )


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    load_dotenv()
    configure_logging(args.log_level, json_logs=args.json_logs)

    try:
        config = build_pipeline_config(args)
        config.classifier.validate()
        request = ParseRequest(file_name=args.file_name, source_path=args.source_path, user_id=args.user_id)
    except ValueError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 2

    result = run_parse_document(
        request,
        config=config,
        store=LocalArtifactStore(data_root=args.data_root),
    )
    print(
        json.dumps(
            {
                "ok": result.ok,
                "artifact_path": result.artifact_path,
                "stage": None if result.stage is None else result.stage.value,
                "errors": [e.code for e in result.errors],
                "chunks_processed": result.chunks_processed,
                "total_chunks": result.total_chunks,
                "indexing_completed": result.indexing_completed,
            },
            sort_keys=True,
        )
    )
    return 0 if result.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
