from __future__ import annotations

from dataclasses import dataclass

from contracts.errors import IndexIntegrityError
from ocr.extract import ExtractedPage, is_classifiable


@dataclass(frozen=True, slots=True)
class DenseItem:
    index: int  # dense index, 0..n-1 within the page
    text: str


@dataclass(frozen=True, slots=True)
class DensePage:
    """
    Classifier-facing view of one page.

    Excluded lines (empty text, tables) are left out and the remaining lines
    are numbered densely; `dense_to_original[i]` is the RawLine index of item i.
    """

    page_index: int
    items: tuple[DenseItem, ...]
    dense_to_original: tuple[int, ...]
    original_to_dense: dict[int, int]

    def __len__(self) -> int:
        return len(self.items)

    def to_original(self, dense_index: int) -> int:
        if dense_index < 0 or dense_index >= len(self.dense_to_original):
            raise IndexIntegrityError(
                "Dense item index out of range for page",
                detail={
                    "page_index": self.page_index,
                    "dense_index": dense_index,
                    "item_count": len(self.dense_to_original),
                },
            )
        return self.dense_to_original[dense_index]


def build_dense_page(page: ExtractedPage) -> DensePage:
    """
    Pure per-page re-indexing; computed fresh for every page, no shared counter.
    """

    items: list[DenseItem] = []
    dense_to_original: list[int] = []
    for line in page.lines:
        if not is_classifiable(line):
            continue
        items.append(DenseItem(index=len(items), text=line.text))
        dense_to_original.append(line.line_index)

    return DensePage(
        page_index=page.page_index,
        items=tuple(items),
        dense_to_original=tuple(dense_to_original),
        original_to_dense={orig: dense for dense, orig in enumerate(dense_to_original)},
    )
