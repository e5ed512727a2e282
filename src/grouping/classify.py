from __future__ import annotations

import structlog

from contracts.document import LineGroup
from ocr.extract import ExtractedDocument

from .classifier import ClassifierProvider
from .parse import parse_classifier_response
from .prompt import SYSTEM_PROMPT, build_user_prompt
from .reindex import DensePage, build_dense_page

logger = structlog.get_logger(__name__)


def classify_document(
    document: ExtractedDocument,
    *,
    provider: ClassifierProvider,
) -> dict[int, list[LineGroup]]:
    """
    Group and classify every page of an extracted document.

    Returns page_index -> groups whose members are ORIGINAL RawLine indices.
    Pages without classifier-eligible lines map to an empty list; when no page
    has any, the classifier is not called.
    """

    dense_pages: list[DensePage] = [build_dense_page(p) for p in document.pages]
    sent = [dp for dp in dense_pages if len(dp) > 0]

    out: dict[int, list[LineGroup]] = {dp.page_index: [] for dp in dense_pages}
    if not sent:
        logger.info("classification_skipped", reason="no_classifiable_lines", pages=len(dense_pages))
        return out

    response = provider.complete(system_prompt=SYSTEM_PROMPT, user_prompt=build_user_prompt(sent))
    parsed = parse_classifier_response(response, pages=sent)

    for dp in sent:
        out[dp.page_index] = [
            LineGroup(
                page_index=dp.page_index,
                member_line_indices=tuple(sorted(dp.to_original(i) for i in g.members)),
                role=g.role,
            )
            for g in parsed[dp.page_index]
        ]

    logger.info(
        "classification_completed",
        provider=provider.name,
        pages_sent=len(sent),
        items=sum(len(dp) for dp in sent),
        groups=sum(len(gs) for gs in out.values()),
    )
    return out
