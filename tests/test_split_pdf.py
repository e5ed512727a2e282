from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import pypdfium2 as pdfium

from contracts.errors import ChunkingError
from split_pdf import ChunkingConfig, get_page_count, plan_page_windows, split_pdf_file


def _write_pdf(path: Path, *, pages: int) -> None:
    doc = pdfium.PdfDocument.new()
    try:
        for i in range(pages):
            # Distinct widths let each chunk's pages be traced back to the source.
            doc.new_page(600 + i, 800)
        doc.save(str(path))
    finally:
        doc.close()


def _page_widths(data: bytes) -> list[int]:
    doc = pdfium.PdfDocument(data)
    try:
        return [round(doc[i].get_width()) for i in range(len(doc))]
    finally:
        doc.close()


class TestPlanPageWindows(unittest.TestCase):
    def test_windows_are_consecutive_and_last_is_short(self) -> None:
        windows = plan_page_windows(page_count=7, max_pages=3)
        self.assertEqual(
            [(w.chunk_index, w.page_offset, w.page_count) for w in windows],
            [(0, 0, 3), (1, 3, 3), (2, 6, 1)],
        )
        self.assertEqual(windows[2].page_indices(), [6])

    def test_exact_multiple_and_small_document(self) -> None:
        self.assertEqual(len(plan_page_windows(page_count=30, max_pages=15)), 2)
        self.assertEqual(
            [(w.page_offset, w.page_count) for w in plan_page_windows(page_count=2, max_pages=15)],
            [(0, 2)],
        )
        self.assertEqual(plan_page_windows(page_count=0, max_pages=15), [])

    def test_invalid_window_size(self) -> None:
        with self.assertRaises(ValueError):
            plan_page_windows(page_count=3, max_pages=0)
        with self.assertRaises(ValueError):
            ChunkingConfig(max_pages_per_chunk=0)


class TestSplitPdfFile(unittest.TestCase):
    def test_split_preserves_pages_per_window(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "doc.pdf"
            _write_pdf(src, pages=5)
            config = ChunkingConfig()

            self.assertEqual(get_page_count(pdf_file=src, config=config), 5)
            chunks = split_pdf_file(pdf_file=src, max_pages=2, config=config)

        self.assertEqual([c.page_offset for c in chunks], [0, 2, 4])
        self.assertEqual(_page_widths(chunks[0].data), [600, 601])
        self.assertEqual(_page_widths(chunks[1].data), [602, 603])
        self.assertEqual(_page_widths(chunks[2].data), [604])

    def test_unreadable_pdf_is_chunking_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "broken.pdf"
            src.write_bytes(b"not a pdf")
            with self.assertRaises(ChunkingError):
                split_pdf_file(pdf_file=src, max_pages=2, config=ChunkingConfig())


if __name__ == "__main__":
    unittest.main()
