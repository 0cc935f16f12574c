"""
Workflow State Schema for the Roof Report Importer
Defines the state that flows through the LangGraph workflow.
"""

from typing import TypedDict, List, Optional, Dict, Any
from datetime import datetime


class FileResult(TypedDict):
    """Result from importing a single PDF report."""
    filename: str
    filepath: str
    success: bool
    page_count: int
    detected_format: str
    confidence: float
    needs_verification: bool
    total_squares: float
    report_path: Optional[str]
    csv_path: Optional[str]
    errors: List[str]


class ImportState(TypedDict):
    """
    State schema for the batch import workflow.

    Each node reads what it needs and returns a dict of updates.
    """

    # ========================
    # Input Configuration
    # ========================
    input_path: str                    # PDF file or folder path
    output_path: str                   # Output directory for reports
    preset: Dict[str, Any]             # Preset document applied to every file
    confidence_threshold: float        # Below this an order needs verification
    parsing: Optional[Dict[str, Any]]  # Raw parsing config overrides

    # ========================
    # Progress Tracking
    # ========================
    current_file: Optional[str]        # Current PDF being processed
    files_pending: List[str]           # PDFs not yet processed
    files_completed: List[FileResult]  # Successfully processed files
    files_failed: List[FileResult]     # Failed files with error info

    # ========================
    # Per-File Intermediate Data
    # ========================
    # These are cleared between files
    extraction: Optional[Dict]         # MeasurementExtractionResult.to_dict()
    order: Optional[Dict]              # MaterialOrder.to_dict()
    page_count: int
    report_path: Optional[str]
    csv_path: Optional[str]

    # ========================
    # Error Handling
    # ========================
    last_error: Optional[str]          # Most recent error message

    # ========================
    # Batch Summary
    # ========================
    total_squares: float               # Sum of squares across imported files
    total_pages: int
    verification_count: int            # Files below the confidence threshold
    format_counts: Dict[str, int]      # Detected format tag -> file count
    master_summary: Optional[Dict]

    # ========================
    # Timing
    # ========================
    start_time: Optional[str]
    end_time: Optional[str]

    # ========================
    # Internal (node-to-node transfer)
    # ========================
    _file_result: Optional[Dict]       # Result from generate_report for advance_file

    project_name: Optional[str]        # Derived from first PDF filename for output organization


def create_initial_state(
    input_path: str,
    output_path: str,
    preset: Dict[str, Any],
    confidence_threshold: float = 80.0,
    parsing: Optional[Dict[str, Any]] = None,
) -> ImportState:
    """
    Create initial state for a new workflow run.

    Args:
        input_path: PDF file or folder to process
        output_path: Directory for output reports
        preset: Preset document (Preset.to_dict()) used for every order
        confidence_threshold: Verification threshold (50-100)
        parsing: Optional parsing config overrides (same keys as the YAML "parsing" block)

    Returns:
        Initialized ImportState
    """
    return ImportState(
        input_path=input_path,
        output_path=output_path,
        preset=preset,
        confidence_threshold=confidence_threshold,
        parsing=parsing,

        current_file=None,
        files_pending=[],
        files_completed=[],
        files_failed=[],

        extraction=None,
        order=None,
        page_count=0,
        report_path=None,
        csv_path=None,

        last_error=None,

        total_squares=0.0,
        total_pages=0,
        verification_count=0,
        format_counts={},
        master_summary=None,

        start_time=datetime.now().isoformat(),
        end_time=None,

        _file_result=None,
        project_name=None,
    )


def cleared_file_state() -> Dict[str, Any]:
    """State updates that reset per-file data before the next file."""
    return {
        "extraction": None,
        "order": None,
        "page_count": 0,
        "report_path": None,
        "csv_path": None,
        "last_error": None,
        "_file_result": None,
    }


def get_state_summary(state: ImportState) -> Dict[str, Any]:
    """
    Get a summary of current state for logging/debugging.
    """
    return {
        "current_file": state.get("current_file"),
        "files_pending": len(state.get("files_pending", [])),
        "files_completed": len(state.get("files_completed", [])),
        "files_failed": len(state.get("files_failed", [])),
        "total_squares": state.get("total_squares", 0),
        "last_error": state.get("last_error"),
    }
