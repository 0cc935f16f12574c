"""
Tests for PDF text layer extraction.
"""

import fitz  # PyMuPDF
import pytest

from roofing.errors import UnreadableDocumentError
from roofing.text_layout import (
    PAGE_SEPARATOR,
    extract_layout,
    extract_text_runs,
    runs_to_text,
)


class TestExtractTextRuns:
    """Runs come back in order with page numbers and boxes."""

    def test_runs_in_content_order(self, make_pdf):
        data = make_pdf([["Total Area", "2950 sqft", "Ridge 50'"]])
        runs = extract_text_runs(data)
        assert [r.text for r in runs] == ["Total Area", "2950 sqft", "Ridge 50'"]
        assert all(r.page == 1 for r in runs)

    def test_bounding_boxes_follow_position(self, make_pdf):
        data = make_pdf([[(72, 100, "Ridge"), (72, 200, "50'")]])
        first, second = extract_text_runs(data)
        assert first.bbox.y0 < second.bbox.y0
        assert first.bbox.x1 > first.bbox.x0
        assert first.bbox.height > 0

    def test_pages_are_one_based(self, make_pdf):
        data = make_pdf([["Page one"], ["Page two"]])
        runs = extract_text_runs(data)
        assert [r.page for r in runs] == [1, 2]

    def test_pure_function_of_bytes(self, make_pdf):
        data = make_pdf([["Ridge 50'"]])
        assert extract_text_runs(data) == extract_text_runs(data)


class TestUnreadableDocuments:
    """Corrupt, encrypted and image-only PDFs raise UnreadableDocumentError."""

    def test_empty_bytes(self):
        with pytest.raises(UnreadableDocumentError):
            extract_text_runs(b"")

    def test_garbage_bytes(self):
        with pytest.raises(UnreadableDocumentError):
            extract_text_runs(b"this is not a pdf at all")

    def test_no_text_layer(self):
        doc = fitz.open()
        doc.new_page()
        data = doc.tobytes()
        doc.close()
        with pytest.raises(UnreadableDocumentError) as exc_info:
            extract_text_runs(data)
        assert "no extractable text" in str(exc_info.value)

    def test_encrypted(self):
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Secret roof")
        data = doc.tobytes(
            encryption=fitz.PDF_ENCRYPT_AES_256,
            owner_pw="owner",
            user_pw="user",
        )
        doc.close()
        with pytest.raises(UnreadableDocumentError):
            extract_text_runs(data)

    def test_user_message(self):
        err = UnreadableDocumentError("empty file")
        assert str(err).startswith("Could not read PDF")
        assert "re-exporting" in str(err)
        assert err.reason == "empty file"


class TestLayout:

    def test_full_text_joins_pages(self, make_pdf):
        layout = extract_layout(make_pdf([["Ridge 50'"], ["Eave 120'"]]))
        assert layout.page_count == 2
        assert layout.full_text == "Ridge 50'" + PAGE_SEPARATOR + "Eave 120'"
        assert layout.page_text(2) == "Eave 120'"

    def test_runs_to_text_single_page(self, make_layout):
        layout = make_layout([("A", 0, 0, 10, 10), ("B", 0, 20, 10, 30)])
        assert runs_to_text(layout.runs) == "A\nB"
