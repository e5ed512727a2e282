from __future__ import annotations

import json
from typing import Any

from contracts.document import Document

ARTIFACT_CONTENT_TYPE = "application/json"


def serialize_document(document: Document) -> str:
    """
    Stable JSON serialization of the final Document artifact.
    """

    payload: dict[str, Any] = document.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def load_document(data: bytes | str) -> Document:
    raw = json.loads(data)
    if not isinstance(raw, dict):
        raise ValueError("Document artifact must be a JSON object")
    return Document.from_dict(raw)
