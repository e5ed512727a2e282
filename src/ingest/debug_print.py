from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .artifacts import load_document


def _region_str(r: Any) -> str:
    if r is None:
        return "(no region)"
    return f"({r.top_left_x},{r.top_left_y}) {r.width}x{r.height}"


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="doc-reconcile-print")
    ap.add_argument("--input", required=True, type=Path, help="Document artifact JSON (*_parsed.json).")
    ap.add_argument("--role", choices=["Q", "R", "I"], default=None, help="Only print lines with this role.")
    ap.add_argument("--max-lines", type=int, default=0, help="If >0, truncate each page after N lines.")
    args = ap.parse_args(argv)

    document = load_document(args.input.read_bytes())

    for page in document.pages:
        size = ""
        if page.page_width is not None and page.page_height is not None:
            size = f" size={page.page_width}x{page.page_height}"
        print(f"\n=== PAGE {page.page_index:03d} ===")
        print(f"lines={len(page.lines)}{size}")

        shown = 0
        for ln in page.lines:
            if args.role and ln.text_type.value != args.role:
                continue
            if args.max_lines and shown >= args.max_lines:
                print(f"... (truncated at {args.max_lines})")
                break
            print(f"[{ln.text_type.value}] {_region_str(ln.region)} type={ln.type} :: {ln.text}")
            shown += 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
