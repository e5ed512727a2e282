from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

import structlog

from contracts.document import LineKey, RawLine
from contracts.errors import IndexIntegrityError

from .contracts import EntityOrientedResult, LineOrientedResult, OcrEntity, OcrResult, OcrResultKind
from .geometry import normalize_region

logger = structlog.get_logger(__name__)

# Line types never handed to the classifier (their indices remain as gaps).
EXCLUDED_LINE_TYPES = frozenset({"table"})


@dataclass(frozen=True, slots=True)
class ExtractedPage:
    page_index: int
    lines: list[RawLine]  # original order; lines[i].line_index == i
    page_width: float | None = None
    page_height: float | None = None

    def line_at(self, key: LineKey) -> RawLine:
        if key.page_index != self.page_index or key.line_index < 0 or key.line_index >= len(self.lines):
            raise IndexIntegrityError(
                "Line key does not address a line on this page",
                detail={
                    "page_index": self.page_index,
                    "key_page_index": key.page_index,
                    "line_index": key.line_index,
                    "line_count": len(self.lines),
                },
            )
        line = self.lines[key.line_index]
        if line.key != key:
            raise IndexIntegrityError(
                "Stored line does not carry the requested key",
                detail={"requested": [key.page_index, key.line_index], "stored": [line.page_index, line.line_index]},
            )
        return line


@dataclass(frozen=True, slots=True)
class ExtractedDocument:
    """
    Page-segmented view of every RawLine, pages in source order.
    """

    pages: list[ExtractedPage]

    def flat_lines(self) -> list[RawLine]:
        return [ln for p in self.pages for ln in p.lines]

    def page(self, page_index: int) -> ExtractedPage:
        for p in self.pages:
            if p.page_index == page_index:
                return p
        raise IndexIntegrityError(
            "Page index not present in extracted document",
            detail={"page_index": page_index, "pages": [p.page_index for p in self.pages]},
        )


def is_classifiable(line: RawLine) -> bool:
    return line.text.strip() != "" and line.type not in EXCLUDED_LINE_TYPES


def _extract_line_oriented(result: LineOrientedResult) -> ExtractedDocument:
    pages: list[ExtractedPage] = []
    for page in result.pages:
        lines = [
            RawLine(
                text=ln.text,
                type=ln.type,
                region=normalize_region(ln.region),
                page_index=page.page_index,
                line_index=i,
                line=ln.line,
                column=ln.column,
            )
            for i, ln in enumerate(page.lines)
        ]
        pages.append(
            ExtractedPage(
                page_index=page.page_index,
                lines=lines,
                page_width=page.width_px,
                page_height=page.height_px,
            )
        )
    return ExtractedDocument(pages=pages)


def _extract_entity_oriented(result: EntityOrientedResult) -> ExtractedDocument:
    known_pages = {p.page_index: p for p in result.pages}

    by_page: dict[int, list[OcrEntity]] = defaultdict(list)
    for entity_index, entity in enumerate(result.entities):
        if entity.page_index not in known_pages:
            raise IndexIntegrityError(
                "Entity references a page outside the OCR result",
                detail={
                    "entity_index": entity_index,
                    "page_index": entity.page_index,
                    "pages": sorted(known_pages),
                },
            )
        by_page[entity.page_index].append(entity)

    pages: list[ExtractedPage] = []
    for page in result.pages:
        lines = [
            RawLine(
                text=e.text,
                type=e.type,
                region=normalize_region(
                    e.polygon, page_width_px=page.width_px, page_height_px=page.height_px
                ),
                page_index=page.page_index,
                line_index=i,
                line=i,
                column="",
            )
            for i, e in enumerate(by_page.get(page.page_index, []))
        ]
        pages.append(
            ExtractedPage(
                page_index=page.page_index,
                lines=lines,
                page_width=page.width_px,
                page_height=page.height_px,
            )
        )
    return ExtractedDocument(pages=pages)


def extract_document_lines(result: OcrResult) -> ExtractedDocument:
    """
    Convert either backend shape into RawLines grouped by page.

    Source order is preserved within each page; no line is dropped here
    (classifier eligibility is decided later, see `is_classifiable`).
    """

    if result.kind == OcrResultKind.LINE_ORIENTED:
        doc = _extract_line_oriented(result)
    elif result.kind == OcrResultKind.ENTITY_ORIENTED:
        doc = _extract_entity_oriented(result)
    else:  # pragma: no cover
        raise ValueError(f"Unsupported OCR result kind: {result.kind}")

    logger.debug(
        "ocr_lines_extracted",
        kind=result.kind.value,
        pages=len(doc.pages),
        lines=sum(len(p.lines) for p in doc.pages),
        regions=sum(1 for ln in doc.flat_lines() if ln.region is not None),
    )
    return doc


def render_plain_text(document: ExtractedDocument) -> str:
    """
    Plain-text rendition of the classifier-eligible lines, one per line, pages in order.
    """

    return "\n".join(ln.text for ln in document.flat_lines() if is_classifiable(ln))
