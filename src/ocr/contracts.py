from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union

from contracts.errors import OcrResultShapeError

from .geometry import NormalizedPolygon, PixelRect


class OcrProviderName(str, Enum):
    """
    OCR backends supported by this module.
    """

    MATHPIX = "mathpix"
    DOCUMENT_AI = "document_ai"


class OcrResultKind(str, Enum):
    LINE_ORIENTED = "line_oriented"
    ENTITY_ORIENTED = "entity_oriented"


class OcrJobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"


def _require_list(value: Any, *, field: str) -> list[Any]:
    if not isinstance(value, list):
        raise OcrResultShapeError(
            f"OCR result field {field!r} must be a list",
            detail={"field": field, "got": type(value).__name__},
        )
    return value


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class OcrLine:
    """
    Single line hypothesis from a line-oriented backend.

    `text` is exactly as recognized (no correction).
    """

    text: str
    type: str
    region: PixelRect | None
    line: str | int
    column: str | int
    confidence: float | None


@dataclass(frozen=True, slots=True)
class OcrPage:
    page_index: int  # 0-based, source-document page index after rebasing
    lines: list[OcrLine]
    width_px: float | None
    height_px: float | None


@dataclass(frozen=True, slots=True)
class LineOrientedResult:
    """
    `{pages: [{lines: [...]}]}` backend shape; regions are pixel rectangles.
    """

    pages: list[OcrPage]
    kind: OcrResultKind = OcrResultKind.LINE_ORIENTED

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "LineOrientedResult":
        if not isinstance(d, dict):
            raise OcrResultShapeError("OCR result must be a JSON object")

        pages: list[OcrPage] = []
        for page_index, page_raw in enumerate(_require_list(d.get("pages"), field="pages")):
            if not isinstance(page_raw, dict):
                raise OcrResultShapeError(
                    "OCR page entry must be an object", detail={"page_index": page_index}
                )
            lines_raw = page_raw.get("lines")
            # A page without a lines array carries no content; keep it so page order holds.
            if lines_raw is None:
                lines_raw = []
            lines: list[OcrLine] = []
            for line_raw in _require_list(lines_raw, field=f"pages[{page_index}].lines"):
                if not isinstance(line_raw, dict):
                    raise OcrResultShapeError(
                        "OCR line entry must be an object", detail={"page_index": page_index}
                    )
                lines.append(
                    OcrLine(
                        text="" if line_raw.get("text") is None else str(line_raw.get("text")),
                        type=str(line_raw.get("type") or "text"),
                        region=PixelRect.from_dict(line_raw.get("region")),
                        line=line_raw.get("line", ""),
                        column=line_raw.get("column", ""),
                        confidence=_optional_float(line_raw.get("confidence")),
                    )
                )
            pages.append(
                OcrPage(
                    page_index=page_index,
                    lines=lines,
                    width_px=_optional_float(page_raw.get("page_width")),
                    height_px=_optional_float(page_raw.get("page_height")),
                )
            )
        return LineOrientedResult(pages=pages)

    def page_count(self) -> int:
        return len(self.pages)

    def rebased(self, offset: int) -> "LineOrientedResult":
        return LineOrientedResult(
            pages=[replace(p, page_index=p.page_index + offset) for p in self.pages]
        )


@dataclass(frozen=True, slots=True)
class EntityPage:
    page_index: int
    width_px: float | None
    height_px: float | None


@dataclass(frozen=True, slots=True)
class OcrEntity:
    """
    Single extracted entity anchored to a page by reference, with normalized
    polygon geometry.
    """

    text: str
    type: str
    page_index: int
    polygon: NormalizedPolygon | None


def _entity_targets(entity: dict[str, Any]) -> list[dict[str, Any]]:
    # Parent entities with properties contribute their properties, not themselves.
    props = entity.get("properties")
    if isinstance(props, list) and props:
        return [p for p in props if isinstance(p, dict)]
    return [entity]


def _entity_page_ref(target: dict[str, Any]) -> tuple[int, NormalizedPolygon | None]:
    anchor = target.get("pageAnchor") or {}
    refs = anchor.get("pageRefs") if isinstance(anchor, dict) else None
    first = refs[0] if isinstance(refs, list) and refs and isinstance(refs[0], dict) else {}
    try:
        # int64 fields arrive as strings in protobuf JSON; absent means page 0.
        page_index = int(first.get("page", 0))
    except (TypeError, ValueError) as e:
        raise OcrResultShapeError(
            "Entity page reference is not an integer", detail={"page": first.get("page")}
        ) from e
    poly = first.get("boundingPoly") or {}
    polygon = NormalizedPolygon.from_list(poly.get("normalizedVertices")) if isinstance(poly, dict) else None
    return page_index, polygon


@dataclass(frozen=True, slots=True)
class EntityOrientedResult:
    """
    `{document: {pages: [...], entities: [...]}}` backend shape; entities
    reference their page by index and carry normalized vertices.
    """

    pages: list[EntityPage]
    entities: list[OcrEntity]
    kind: OcrResultKind = OcrResultKind.ENTITY_ORIENTED

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "EntityOrientedResult":
        if not isinstance(d, dict):
            raise OcrResultShapeError("OCR result must be a JSON object")
        doc = d.get("document", d)
        if not isinstance(doc, dict):
            raise OcrResultShapeError("OCR result 'document' must be an object")

        pages: list[EntityPage] = []
        for page_index, page_raw in enumerate(_require_list(doc.get("pages"), field="document.pages")):
            dim = page_raw.get("dimension") if isinstance(page_raw, dict) else None
            dim = dim if isinstance(dim, dict) else {}
            pages.append(
                EntityPage(
                    page_index=page_index,
                    width_px=_optional_float(dim.get("width")),
                    height_px=_optional_float(dim.get("height")),
                )
            )

        entities: list[OcrEntity] = []
        for entity in _require_list(doc.get("entities") or [], field="document.entities"):
            if not isinstance(entity, dict):
                raise OcrResultShapeError("OCR entity entry must be an object")
            for target in _entity_targets(entity):
                page_index, polygon = _entity_page_ref(target)
                entities.append(
                    OcrEntity(
                        text=str(target.get("mentionText") or ""),
                        type="text",
                        page_index=page_index,
                        polygon=polygon,
                    )
                )

        return EntityOrientedResult(pages=pages, entities=entities)

    def page_count(self) -> int:
        return len(self.pages)

    def rebased(self, offset: int) -> "EntityOrientedResult":
        return EntityOrientedResult(
            pages=[replace(p, page_index=p.page_index + offset) for p in self.pages],
            entities=[replace(e, page_index=e.page_index + offset) for e in self.entities],
        )


OcrResult = Union[LineOrientedResult, EntityOrientedResult]


@dataclass(frozen=True, slots=True)
class OcrJobState:
    status: OcrJobStatus
    result: OcrResult | None = None
    message: str | None = None


@dataclass(frozen=True, slots=True)
class OcrConfig:
    """
    OCR module configuration.

    Credentials and endpoints are passed in explicitly; this module does not
    read environment variables.
    """

    provider: OcrProviderName
    base_url: str
    api_key: str
    app_id: str | None = None  # line-oriented backend account id
    processor_name: str | None = None  # entity-oriented backend processor resource name
    poll_timeout_s: float = 60.0
    poll_interval_s: float = 0.5
    max_poll_interval_s: float = 5.0
    request_timeout_s: float = 120.0
    max_pages_per_request: int | None = None  # overrides the provider's own page limit
    max_workers: int | None = None  # None runs every chunk concurrently

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must be non-empty")
        if self.poll_timeout_s < 0:
            raise ValueError("poll_timeout_s must be >= 0")
        if self.poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be > 0")
        if self.max_poll_interval_s < self.poll_interval_s:
            raise ValueError("max_poll_interval_s must be >= poll_interval_s")
        if self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be > 0")
        if self.max_pages_per_request is not None and self.max_pages_per_request < 1:
            raise ValueError("max_pages_per_request must be >= 1")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.provider == OcrProviderName.DOCUMENT_AI and not self.processor_name:
            raise ValueError("processor_name is required for the document_ai provider")
