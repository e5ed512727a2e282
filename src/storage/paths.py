from __future__ import annotations

import re

_SOURCE_EXT_RE = re.compile(r"\.(pdf|docx?)$", re.IGNORECASE)


def derive_artifact_path(source_path: str, *, suffix: str = "_parsed", ext: str = ".json") -> str:
    """
    Deterministic artifact key for a source document.

    `folder/doc.pdf` -> `folder/doc_parsed.json`. Sources without a known
    document extension get the suffix appended. The same source always maps
    to the same key, so reprocessing overwrites the earlier artifact.
    """

    if not source_path:
        raise ValueError("source_path must be non-empty")
    stem = _SOURCE_EXT_RE.sub("", source_path)
    return f"{stem}{suffix}{ext}"


def derive_text_path(source_path: str) -> str:
    return derive_artifact_path(source_path, suffix="_text", ext=".txt")
