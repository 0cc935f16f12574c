"""
Error Handling Edges
Conditional routing and file bookkeeping between workflow nodes.
"""

import logging
from typing import Literal
from pathlib import Path

from ..state import ImportState, cleared_file_state, get_state_summary

logger = logging.getLogger(__name__)


def route_after_scan(state: ImportState) -> Literal["extract", "summary"]:
    """Start on the first file, or go straight to the summary when nothing was found."""
    if state.get("current_file"):
        return "extract"
    logger.error(f"Nothing to import: {state.get('last_error')}")
    return "summary"


def route_after_extraction(state: ImportState) -> Literal["build_order", "skip"]:
    """
    Route after measurement extraction.

    Unreadable documents are not retried: the same bytes give the same result.
    """
    if state.get("extraction") and not state.get("last_error"):
        return "build_order"
    logger.error(f"Skipping file: {state.get('last_error')}")
    return "skip"


def route_after_order(state: ImportState) -> Literal["report", "skip"]:
    if state.get("order") and not state.get("last_error"):
        return "report"
    return "skip"


def route_after_report(state: ImportState) -> Literal["next_file", "summary", "skip"]:
    """
    Route after report generation to next file or batch summary.

    Args:
        state: Current workflow state

    Returns:
        Next node: "next_file", "summary", or "skip" when writing failed
    """
    if state.get("last_error"):
        return "skip"

    files_pending = state.get("files_pending", [])
    if len(files_pending) > 1:
        # Current file is still in the list
        logger.info(f"{len(files_pending) - 1} files remaining")
        return "next_file"

    logger.info("All files processed, generating summary")
    return "summary"


def route_after_failure(state: ImportState) -> Literal["next_file", "summary"]:
    return "next_file" if state.get("current_file") else "summary"


def mark_file_failed(state: ImportState) -> dict:
    """
    Record the current file as failed and move on to the next one.

    Args:
        state: Current workflow state

    Returns:
        State updates with file added to failed list
    """
    current_file = state.get("current_file", "")
    last_error = state.get("last_error") or "Unknown error"
    files_pending = state.get("files_pending", [])

    failed_result = {
        "filename": Path(current_file).name if current_file else "Unknown",
        "filepath": current_file,
        "success": False,
        "page_count": state.get("page_count", 0),
        "detected_format": "",
        "confidence": 0.0,
        "needs_verification": True,
        "total_squares": 0.0,
        "report_path": None,
        "csv_path": None,
        "errors": [last_error],
    }

    new_pending = [f for f in files_pending if f != current_file]
    logger.warning(f"File marked as failed: {current_file}")

    updates = cleared_file_state()
    updates.update({
        "files_failed": state.get("files_failed", []) + [failed_result],
        "files_pending": new_pending,
        "current_file": new_pending[0] if new_pending else None,
    })
    return updates


def advance_to_next_file(state: ImportState) -> dict:
    """
    Move to the next file in the pending list.

    files_completed and totals were already updated by generate_report_node.
    """
    current_file = state.get("current_file", "")
    new_pending = [f for f in state.get("files_pending", []) if f != current_file]

    logger.info(f"File completed: {current_file}")
    logger.debug(f"State before advancing: {get_state_summary(state)}")

    updates = cleared_file_state()
    updates.update({
        "files_pending": new_pending,
        "current_file": new_pending[0] if new_pending else None,
    })
    return updates
