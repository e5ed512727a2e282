from __future__ import annotations

from collections import Counter

import structlog

from contracts.document import ContentLine, Document, DocumentPage, LineGroup
from contracts.errors import IndexIntegrityError
from ocr.extract import ExtractedDocument, ExtractedPage

from .merge import merge_regions

logger = structlog.get_logger(__name__)


def build_content_line(page: ExtractedPage, group: LineGroup) -> ContentLine:
    if group.page_index != page.page_index:
        raise IndexIntegrityError(
            "Group belongs to a different page",
            detail={"page_index": page.page_index, "group_page_index": group.page_index},
        )

    members = [page.line_at(key) for key in group.member_keys()]
    first = members[0]
    return ContentLine(
        text=" ".join(m.text for m in members).strip(),
        type=first.type,
        text_type=group.role,
        region=merge_regions(m.region for m in members),
        line=first.line,
        column=first.column,
    )


def assemble_page(page: ExtractedPage, groups: list[LineGroup]) -> DocumentPage:
    """
    One ContentLine per group, in the order the groups were produced.
    """

    return DocumentPage(
        page_index=page.page_index,
        lines=[build_content_line(page, g) for g in groups],
        page_width=page.page_width,
        page_height=page.page_height,
    )


def assemble_document(
    document: ExtractedDocument,
    groups_by_page: dict[int, list[LineGroup]],
) -> Document:
    """
    Build the final Document; pages follow the extracted (source) page order.

    A page with no groups yields an empty page. Groups keyed to a page that
    does not exist are an integrity error.
    """

    known = {p.page_index for p in document.pages}
    stray = sorted(set(groups_by_page) - known)
    if stray:
        raise IndexIntegrityError(
            "Groups reference pages outside the document",
            detail={"page_indices": stray, "pages": sorted(known)},
        )

    pages = [assemble_page(p, groups_by_page.get(p.page_index, [])) for p in document.pages]
    out = Document(pages=pages)

    logger.info(
        "document_assembled",
        pages=len(pages),
        content_lines=sum(len(p.lines) for p in pages),
        roles=count_roles(out),
    )
    return out


def count_roles(document: Document) -> dict[str, int]:
    roles = Counter(ln.text_type.value for p in document.pages for ln in p.lines)
    return dict(sorted(roles.items()))
