#!/usr/bin/env python3
"""
Text Layout Extractor for Roof Measurement Reports
Pulls positioned text runs out of a PDF's text layer using PyMuPDF.

No format knowledge lives here: runs are returned in the order the content
stream emits them, one run per text span.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import fitz  # PyMuPDF

from .errors import UnreadableDocumentError
from .models import RawTextRun, Rect

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n--- Page Break ---\n\n"

# PyMuPDF block type for text (1 is image)
_TEXT_BLOCK = 0


@dataclass(frozen=True)
class TextLayout:
    """All text runs of a document plus the joined text used for matching."""
    runs: List[RawTextRun]
    full_text: str
    page_count: int

    def page_text(self, page: int) -> str:
        return "\n".join(r.text for r in self.runs if r.page == page)


def _open_document(data: bytes) -> "fitz.Document":
    if not data:
        raise UnreadableDocumentError("empty file")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise UnreadableDocumentError(f"not a valid PDF: {e}") from e
    if doc.needs_pass:
        doc.close()
        raise UnreadableDocumentError("document is password protected")
    return doc


def extract_text_runs(data: bytes) -> List[RawTextRun]:
    """
    Extract every text-layer span on every page.

    Args:
        data: Raw PDF bytes

    Returns:
        RawTextRun list in content-stream order

    Raises:
        UnreadableDocumentError: corrupt bytes, encrypted document, or no
            extractable text (image-only scan)
    """
    runs, _ = _read_runs(data)
    return runs


def _read_runs(data: bytes) -> Tuple[List[RawTextRun], int]:
    doc = _open_document(data)
    page_count = doc.page_count
    runs: List[RawTextRun] = []
    try:
        for index, page in enumerate(doc):
            page_dict = page.get_text("dict")
            for block in page_dict.get("blocks", []):
                if block.get("type") != _TEXT_BLOCK:
                    continue
                for line in block.get("lines", []):
                    for span in line.get("spans", []):
                        text = span.get("text", "").strip()
                        if not text:
                            continue
                        x0, y0, x1, y1 = span["bbox"]
                        runs.append(RawTextRun(
                            text=text,
                            page=index + 1,
                            bbox=Rect(float(x0), float(y0), float(x1), float(y1)),
                        ))
    except Exception as e:
        raise UnreadableDocumentError(f"text layer could not be read: {e}") from e
    finally:
        doc.close()

    if not runs:
        raise UnreadableDocumentError("no extractable text layer, document may be a scanned image")

    logger.debug(f"Extracted {len(runs)} text runs from {page_count} pages")
    return runs, page_count


def runs_to_text(runs: List[RawTextRun]) -> str:
    """Join runs into page-ordered text, one run per line, with page break markers."""
    pages: List[List[str]] = []
    current_page = None
    for run in runs:
        if run.page != current_page:
            pages.append([])
            current_page = run.page
        pages[-1].append(run.text)
    return PAGE_SEPARATOR.join("\n".join(lines) for lines in pages)


def extract_layout(data: bytes) -> TextLayout:
    """Extract runs and the joined full text in one call."""
    runs, page_count = _read_runs(data)
    full_text = runs_to_text(runs)
    logger.info(f"Extracted {len(full_text)} chars from {page_count} pages ({len(runs)} runs)")
    return TextLayout(runs=runs, full_text=full_text, page_count=page_count)
