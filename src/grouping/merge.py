from __future__ import annotations

from typing import Iterable, Optional

from contracts.document import Region


def merge_regions(regions: Iterable[Optional[Region]]) -> Region | None:
    """
    Smallest Region enclosing every non-null input; None if there is none.

    Missing member geometry is skipped, never treated as a zero-area box.
    """

    merged: Region | None = None
    for r in regions:
        if r is None:
            continue
        merged = r if merged is None else merged.union(r)
    return merged
