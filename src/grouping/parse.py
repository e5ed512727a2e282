from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from contracts.document import Role
from contracts.errors import ClassificationParseError, IndexIntegrityError

from .reindex import DensePage

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)
_INT_RE = re.compile(r"-?[0-9]+")


@dataclass(frozen=True, slots=True)
class DenseGroup:
    members: tuple[int, ...]  # dense indices, ascending
    role: Role


def _strip_fence(text: str) -> str:
    m = _FENCE_RE.match(text)
    return m.group(1) if m else text


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value.strip())
    return None


def _as_index(value: Any, *, page_index: int) -> int:
    index = _as_int(value)
    if index is None:
        raise ClassificationParseError(
            "Group member is not an item number", detail={"page_index": page_index, "member": value}
        )
    return index


def _as_role(value: Any, *, page_index: int) -> Role:
    if not isinstance(value, str):
        raise ClassificationParseError(
            "Group role must be a string", detail={"page_index": page_index, "role": value}
        )
    try:
        return Role.from_label(value)
    except ValueError as e:
        raise ClassificationParseError(
            "Unknown group role", detail={"page_index": page_index, "role": value}
        ) from e


def _parse_group(raw: Any, *, page_index: int) -> tuple[list[int], Role]:
    if isinstance(raw, dict):
        members_raw = raw.get("items", raw.get("members"))
        if not isinstance(members_raw, list):
            raise ClassificationParseError(
                "Group object has no item list", detail={"page_index": page_index, "group": raw}
            )
        role = _as_role(raw.get("role", raw.get("category")), page_index=page_index)
    elif isinstance(raw, list):
        if not raw:
            raise ClassificationParseError("Empty group", detail={"page_index": page_index})
        members_raw, role = raw[:-1], _as_role(raw[-1], page_index=page_index)
    else:
        raise ClassificationParseError(
            "Group must be a list or an object", detail={"page_index": page_index, "group": raw}
        )

    if not members_raw:
        raise ClassificationParseError("Group has no members", detail={"page_index": page_index})
    return [_as_index(v, page_index=page_index) for v in members_raw], role


def _page_entries(payload: Any, pages: list[DensePage]) -> dict[int, Any]:
    """
    Map page index -> raw group list.

    Accepts `{"pages": [{"page": p, "groups": [...]}]}` or a bare list with one
    group list per requested page, in request order.
    """

    if isinstance(payload, dict):
        entries = payload.get("pages")
        if not isinstance(entries, list):
            raise ClassificationParseError("Classifier response has no 'pages' list")
        out: dict[int, Any] = {}
        requested = {p.page_index for p in pages}
        for entry in entries:
            if not isinstance(entry, dict):
                raise ClassificationParseError("Page entry must be an object", detail={"entry": entry})
            page_index = _as_int(entry.get("page"))
            if page_index is None:
                raise ClassificationParseError(
                    "Page entry has no page number",
                    detail={"entry_keys": sorted(entry), "page": entry.get("page")},
                )
            if page_index not in requested:
                raise ClassificationParseError(
                    "Classifier answered for a page that was not sent",
                    detail={"page_index": page_index, "requested": sorted(requested)},
                )
            if page_index in out:
                raise ClassificationParseError(
                    "Classifier answered twice for a page", detail={"page_index": page_index}
                )
            out[page_index] = entry.get("groups")
        return out

    if isinstance(payload, list):
        if len(payload) != len(pages):
            raise ClassificationParseError(
                "Classifier returned the wrong number of pages",
                detail={"expected": len(pages), "got": len(payload)},
            )
        return {p.page_index: groups for p, groups in zip(pages, payload)}

    raise ClassificationParseError(
        "Classifier response must be a JSON object or array", detail={"got": type(payload).__name__}
    )


def _parse_page(raw_groups: Any, page: DensePage) -> list[DenseGroup]:
    if not isinstance(raw_groups, list):
        raise ClassificationParseError(
            "Page groups must be a list", detail={"page_index": page.page_index}
        )

    seen: set[int] = set()
    groups: list[DenseGroup] = []
    for raw in raw_groups:
        members, role = _parse_group(raw, page_index=page.page_index)
        for m in members:
            if m < 0 or m >= len(page):
                raise IndexIntegrityError(
                    "Classifier referenced an item number outside the page",
                    detail={"page_index": page.page_index, "dense_index": m, "item_count": len(page)},
                )
            if m in seen:
                raise ClassificationParseError(
                    "Item assigned to more than one group",
                    detail={"page_index": page.page_index, "dense_index": m},
                )
            seen.add(m)
        groups.append(DenseGroup(members=tuple(sorted(members)), role=role))

    missing = sorted(set(range(len(page))) - seen)
    if missing:
        raise ClassificationParseError(
            "Items missing from classifier groups",
            detail={"page_index": page.page_index, "missing": missing},
        )
    return groups


def parse_classifier_response(text: str, *, pages: list[DensePage]) -> dict[int, list[DenseGroup]]:
    """
    Parse and validate a classifier response for the given dense pages.

    Every page must be answered and its groups must partition the page's
    dense item indices. Members are sorted ascending; group order is kept as
    the classifier listed it. Any malformed shape raises
    ClassificationParseError; nothing is silently defaulted.
    """

    try:
        payload = json.loads(_strip_fence(text))
    except (TypeError, ValueError) as e:
        raise ClassificationParseError(
            "Classifier response is not valid JSON", detail={"head": str(text)[:200]}
        ) from e

    entries = _page_entries(payload, pages)
    out: dict[int, list[DenseGroup]] = {}
    for page in pages:
        if page.page_index not in entries:
            raise ClassificationParseError(
                "Classifier response is missing a page", detail={"page_index": page.page_index}
            )
        out[page.page_index] = _parse_page(entries[page.page_index], page)
    return out
