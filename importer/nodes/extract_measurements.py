"""
Node 1: Measurement Extraction
Reads the current PDF and runs the roof measurement pipeline on its bytes.
"""

import logging
from pathlib import Path
from typing import Dict, Any

from roofing.config import ParsingConfig, config_from_dict
from roofing.errors import UnreadableDocumentError
from roofing.extractor import extract_measurements

from ..state import ImportState

logger = logging.getLogger(__name__)


def _parsing_config(state: ImportState) -> ParsingConfig:
    overrides = state.get("parsing")
    if not overrides:
        return ParsingConfig()
    return config_from_dict({"parsing": overrides}).parsing


def extract_measurements_node(state: ImportState) -> Dict[str, Any]:
    """
    Extract measurements from the current PDF file.

    Args:
        state: Current workflow state

    Returns:
        State updates with extraction and page_count, or last_error
    """
    current_file = state.get("current_file")

    if not current_file:
        return {"last_error": "No file specified for extraction", "extraction": None}

    pdf_path = Path(current_file)

    if not pdf_path.exists():
        logger.error(f"File not found: {pdf_path}")
        return {"last_error": f"File not found: {pdf_path}", "extraction": None}

    if pdf_path.suffix.lower() != '.pdf':
        logger.error(f"Not a PDF file: {pdf_path}")
        return {"last_error": f"Not a PDF file: {pdf_path}", "extraction": None}

    logger.info(f"Extracting measurements from: {pdf_path.name}")

    try:
        # File I/O first, then the pure pipeline
        data = pdf_path.read_bytes()
        result = extract_measurements(data, _parsing_config(state))
    except UnreadableDocumentError as e:
        logger.error(f"{pdf_path.name}: {e}")
        return {"last_error": str(e), "extraction": None}
    except OSError as e:
        logger.error(f"Could not read {pdf_path}: {e}")
        return {"last_error": f"Could not read file: {e}", "extraction": None}

    for warning in result.warnings:
        logger.debug(f"{pdf_path.name}: {warning}")

    return {
        "extraction": result.to_dict(),
        "page_count": result.page_count,
        "last_error": None,
    }
