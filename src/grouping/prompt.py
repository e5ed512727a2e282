from __future__ import annotations

from .reindex import DensePage

SYSTEM_PROMPT = """\
You analyze a list of items extracted by OCR from a school worksheet or homework document.
Items are numbered per page and listed in reading order.

1. Joining: decide which items belong to the same logical statement (for example a
   sentence split across several lines) and put them in one group. Answer choices
   (A, B, C, D, ...) are never a group of their own; always put them in the same
   group as the question they belong to.
2. Categorize every group:
   - Q: the group requires input or action from the reader, most commonly a question.
   - R: the group is information needed to solve a question but does not itself require action.
   - I: the group is irrelevant and does not help solve any question.

Every item number of a page must appear in exactly one group. Do not invent item numbers.

Respond with a JSON object only, in this shape:
{"pages": [{"page": <page number>, "groups": [[0, 1, "Q"], [2, "R"], [3, "I"]]}]}
Each group lists its item numbers followed by its category letter.
"""


def render_items(pages: list[DensePage]) -> str:
    lines: list[str] = []
    for page in pages:
        for item in page.items:
            lines.append(f"Page {page.page_index}, Item #{item.index}: {item.text}")
    return "\n".join(lines)


def build_user_prompt(pages: list[DensePage]) -> str:
    return (
        "Here is the list of items:\n"
        f"{render_items(pages)}\n\n"
        "Please analyze the items and provide your response."
    )
