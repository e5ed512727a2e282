from __future__ import annotations

import json
import unittest

from contracts.document import RawLine, Role
from contracts.errors import ClassificationParseError, IndexIntegrityError
from grouping.parse import parse_classifier_response
from grouping.reindex import build_dense_page
from ocr.extract import ExtractedPage


def _page(page_index: int, texts: list[tuple[str, str]]) -> ExtractedPage:
    return ExtractedPage(
        page_index=page_index,
        lines=[
            RawLine(text=t, type=ty, region=None, page_index=page_index, line_index=i, line=i, column=0)
            for i, (t, ty) in enumerate(texts)
        ],
    )


class TestBuildDensePage(unittest.TestCase):
    def test_excluded_lines_leave_gaps_in_mapping(self) -> None:
        page = _page(2, [("a", "text"), ("", "text"), ("cells", "table"), ("b", "text"), ("   ", "text")])
        dense = build_dense_page(page)

        self.assertEqual([(i.index, i.text) for i in dense.items], [(0, "a"), (1, "b")])
        self.assertEqual(dense.dense_to_original, (0, 3))
        self.assertEqual(dense.original_to_dense, {0: 0, 3: 1})
        self.assertEqual(dense.to_original(1), 3)
        with self.assertRaises(IndexIntegrityError):
            dense.to_original(2)

    def test_reindexing_is_per_page(self) -> None:
        a = build_dense_page(_page(0, [("x", "text"), ("y", "text")]))
        b = build_dense_page(_page(1, [("z", "text")]))
        self.assertEqual([i.index for i in a.items], [0, 1])
        self.assertEqual([i.index for i in b.items], [0])

    def test_empty_page(self) -> None:
        self.assertEqual(len(build_dense_page(_page(0, []))), 0)


class TestParseClassifierResponse(unittest.TestCase):
    def setUp(self) -> None:
        self.p0 = build_dense_page(_page(0, [("q1", "text"), ("A) 1", "text"), ("info", "text")]))
        self.p1 = build_dense_page(_page(1, [("q2", "text")]))
        self.pages = [self.p0, self.p1]

    def _parse(self, payload) -> dict:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return parse_classifier_response(text, pages=self.pages)

    def test_object_shape(self) -> None:
        out = self._parse(
            {"pages": [{"page": 0, "groups": [[1, 0, "Q"], [2, "R"]]}, {"page": 1, "groups": [[0, "I"]]}]}
        )
        self.assertEqual([(g.members, g.role) for g in out[0]], [((0, 1), Role.QUESTION), ((2,), Role.RELEVANT)])
        self.assertEqual([(g.members, g.role) for g in out[1]], [((0,), Role.IRRELEVANT)])

    def test_group_order_is_kept(self) -> None:
        out = self._parse({"pages": [{"page": 0, "groups": [[2, "R"], [0, 1, "Q"]]}, {"page": 1, "groups": [[0, "Q"]]}]})
        self.assertEqual([g.members for g in out[0]], [(2,), (0, 1)])

    def test_positional_list_shape_with_string_items(self) -> None:
        out = self._parse([[["0", "1", "q"], ["2", "relevant"]], [["0", "Q"]]])
        self.assertEqual([(g.members, g.role) for g in out[0]], [((0, 1), Role.QUESTION), ((2,), Role.RELEVANT)])

    def test_fenced_json_and_object_groups(self) -> None:
        body = json.dumps(
            {
                "pages": [
                    {"page": 0, "groups": [{"items": [0, 1, 2], "role": "Q"}]},
                    {"page": "1", "groups": [{"items": [0], "role": "R"}]},
                ]
            }
        )
        out = self._parse(f"```json\n{body}\n```")
        self.assertEqual(out[0][0].members, (0, 1, 2))
        self.assertEqual(out[1][0].role, Role.RELEVANT)

    def test_not_json(self) -> None:
        with self.assertRaises(ClassificationParseError):
            self._parse("Sure! Here are the groups: 0,1 -> Q")

    def test_empty_object_is_not_silently_accepted(self) -> None:
        with self.assertRaises(ClassificationParseError):
            self._parse({})

    def test_missing_item(self) -> None:
        with self.assertRaises(ClassificationParseError) as ctx:
            self._parse({"pages": [{"page": 0, "groups": [[0, 1, "Q"]]}, {"page": 1, "groups": [[0, "Q"]]}]})
        self.assertEqual(ctx.exception.detail, {"page_index": 0, "missing": [2]})

    def test_item_in_two_groups(self) -> None:
        with self.assertRaises(ClassificationParseError):
            self._parse(
                {"pages": [{"page": 0, "groups": [[0, 1, "Q"], [1, 2, "R"]]}, {"page": 1, "groups": [[0, "Q"]]}]}
            )

    def test_unknown_role(self) -> None:
        with self.assertRaises(ClassificationParseError):
            self._parse({"pages": [{"page": 0, "groups": [[0, 1, 2, "X"]]}, {"page": 1, "groups": [[0, "Q"]]}]})

    def test_group_without_members(self) -> None:
        with self.assertRaises(ClassificationParseError):
            self._parse({"pages": [{"page": 0, "groups": [["Q"], [0, 1, 2, "Q"]]}, {"page": 1, "groups": [[0, "Q"]]}]})

    def test_missing_page(self) -> None:
        with self.assertRaises(ClassificationParseError):
            self._parse({"pages": [{"page": 0, "groups": [[0, 1, 2, "Q"]]}]})

    def test_page_not_requested(self) -> None:
        with self.assertRaises(ClassificationParseError):
            self._parse(
                {
                    "pages": [
                        {"page": 0, "groups": [[0, 1, 2, "Q"]]},
                        {"page": 1, "groups": [[0, "Q"]]},
                        {"page": 7, "groups": []},
                    ]
                }
            )

    def test_wrong_page_count_in_list_shape(self) -> None:
        with self.assertRaises(ClassificationParseError):
            self._parse([[[0, 1, 2, "Q"]]])

    def test_item_outside_page_is_integrity_error(self) -> None:
        with self.assertRaises(IndexIntegrityError) as ctx:
            self._parse({"pages": [{"page": 0, "groups": [[0, 1, 2, 5, "Q"]]}, {"page": 1, "groups": [[0, "Q"]]}]})
        self.assertEqual(ctx.exception.detail["dense_index"], 5)

    def test_digit_like_member_strings_are_parse_errors(self) -> None:
        for member in ("²", "--1", "1.0", ""):
            with self.subTest(member=member):
                with self.assertRaises(ClassificationParseError) as ctx:
                    self._parse(
                        {"pages": [{"page": 0, "groups": [[member, 1, 2, "Q"]]}, {"page": 1, "groups": [[0, "Q"]]}]}
                    )
                self.assertEqual(ctx.exception.detail["member"], member)

    def test_non_integer_page_number_is_parse_error(self) -> None:
        for page in (0.5, True, "0x1", None):
            with self.subTest(page=page):
                with self.assertRaises(ClassificationParseError):
                    self._parse(
                        {"pages": [{"page": page, "groups": [[0, 1, 2, "Q"]]}, {"page": 1, "groups": [[0, "Q"]]}]}
                    )


if __name__ == "__main__":
    unittest.main()
