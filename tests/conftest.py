"""
Shared fixtures: in-memory PDFs and hand-built text layouts.
"""

import sys
from pathlib import Path

import fitz  # PyMuPDF
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from roofing.models import RawTextRun, Rect
from roofing.text_layout import TextLayout, runs_to_text

LINE_HEIGHT = 16


def build_pdf(pages, fontsize=11):
    """
    Build PDF bytes. Each page is a list of lines, or of (x, y, text) tuples
    for explicit placement.
    """
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        for i, line in enumerate(lines):
            if isinstance(line, tuple):
                x, y, text = line
            else:
                x, y, text = 72, 72 + i * LINE_HEIGHT, line
            page.insert_text((x, y), text, fontsize=fontsize)
    data = doc.tobytes()
    doc.close()
    return data


def build_layout(runs):
    """Build a TextLayout from (text, x0, y0, x1, y1[, page]) tuples."""
    raw = []
    for entry in runs:
        text, x0, y0, x1, y1 = entry[:5]
        page = entry[5] if len(entry) > 5 else 1
        raw.append(RawTextRun(text=text, page=page, bbox=Rect(x0, y0, x1, y1)))
    return TextLayout(runs=raw, full_text=runs_to_text(raw), page_count=max(r.page for r in raw))


def lines_layout(lines):
    """One run per line, stacked down the page."""
    return build_layout([
        (line, 72, 72 + i * LINE_HEIGHT, 72 + 7 * len(line), 84 + i * LINE_HEIGHT)
        for i, line in enumerate(lines)
    ])


IROOF_LINES = [
    "iRoof",
    "Roof Report",
    "Total Area",
    "2950 sqft",
    "Total Squares",
    "29.5 SQ",
    "Length Summary",
    "Ridge",
    "50'",
    "Hip",
    "30'6\"",
    "Valley",
    "20'",
    "Eave",
    "120'",
    "Rake",
    "60'",
    "Pitch: 6/12",
]

EAGLEVIEW_LINES = [
    "EagleView Premium Report",
    "Report Summary",
    "Total Roof Area = 2,950 sq ft",
    "Total Roof Facets = 12",
    "Predominant Pitch = 6/12",
    "Number of Stories <= 1",
    "Ridges = 50 ft (4 Ridges)",
    "Hips = 30 ft (2 Hips)",
    "Valleys = 20 ft (2 Valleys)",
    "Rakes* = 60 ft (6 Rakes)",
    "Eaves/Starter** = 120 ft (8 Eaves)",
]

HOVER_LINES = [
    "HOVER",
    "Roof Summary",
    "Total Roof Area 2,950 sq ft",
    "Squares 29.5",
    "Ridges 50'",
    "Hips 30'",
    "Valleys 20'",
    "Rakes 60'",
    "Eaves 120'",
    "Facets 12",
    "Pitch 6/12",
]

GENERIC_AREA_ONLY_LINES = [
    "Roof Measurement Report",
    "Total Roof Area: 2,950 sq ft",
    "Ridge: 50 ft",
    "Eave: 120 ft",
]

UNKNOWN_LINES = [
    "Customer estimate",
    "Size: 30 SQ",
]


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def make_layout():
    return build_layout


@pytest.fixture
def make_lines_layout():
    return lines_layout


@pytest.fixture
def report_lines():
    """Sample report text, one entry per line, keyed by vendor."""
    return {
        "iroof": IROOF_LINES,
        "eagleview": EAGLEVIEW_LINES,
        "hover": HOVER_LINES,
        "generic_area_only": GENERIC_AREA_ONLY_LINES,
        "unknown": UNKNOWN_LINES,
    }
