"""
Node 4: Batch Summary Generation
Aggregates results across all imported files and writes batch_summary.json.
Also holds the scan_pdfs entry node.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

from ..state import ImportState

logger = logging.getLogger(__name__)


def extract_project_name(filename: str) -> str:
    """
    Extract project name from PDF filename.

    Examples:
        123-Main-St_eagleview.pdf → 123-Main-St
        Smith_Roof_part001.pdf → Smith_Roof
        single_file.pdf → single_file
    """
    stem = Path(filename).stem
    match = re.match(r'^(.+?)(?:_part|_page|_iroof|_eagleview|_hover|_roofsnap|_\d+$)', stem, re.IGNORECASE)
    return match.group(1) if match else stem


def batch_summary_node(state: ImportState) -> Dict[str, Any]:
    """
    Generate master summary for the batch.

    Args:
        state: Current workflow state

    Returns:
        State updates with master_summary, end_time
    """
    output_path = state.get("output_path", "")
    files_completed = state.get("files_completed", [])
    files_failed = state.get("files_failed", [])
    start_time = state.get("start_time")

    logger.info(f"Generating batch summary: {len(files_completed)} successful, {len(files_failed)} failed")

    end_time = datetime.now()
    start_dt = datetime.fromisoformat(start_time) if start_time else end_time
    processing_time = (end_time - start_dt).total_seconds()

    summary_data = {
        "run_datetime": start_time or end_time.isoformat(),
        "input_path": state.get("input_path", ""),
        "output_folder": output_path,
        "preset": (state.get("preset") or {}).get("name", ""),
        "confidence_threshold": state.get("confidence_threshold", 80.0),
        "statistics": {
            "total_files": len(files_completed) + len(files_failed),
            "successful_files": len(files_completed),
            "failed_files": len(files_failed),
            "needs_verification": state.get("verification_count", 0),
            "total_pages_analyzed": state.get("total_pages", 0),
            "total_squares": round(state.get("total_squares", 0.0), 2),
            "formats": dict(state.get("format_counts") or {}),
            "processing_time_seconds": round(processing_time, 2),
        },
        "files_completed": files_completed,
        "files_failed": files_failed,
    }
    if state.get("last_error") and not files_completed and not files_failed:
        summary_data["error"] = state["last_error"]

    if not output_path:
        return {"master_summary": summary_data, "end_time": end_time.isoformat()}

    try:
        output_dir = Path(output_path)
        output_dir.mkdir(parents=True, exist_ok=True)
        json_path = output_dir / "batch_summary.json"
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump(summary_data, f, indent=2)
        logger.info(f"Batch summary saved: {json_path}")
    except OSError as e:
        logger.error(f"Batch summary failed: {e}")
        return {
            "master_summary": summary_data,
            "end_time": end_time.isoformat(),
            "last_error": f"Batch summary generation failed: {e}",
        }

    return {"master_summary": summary_data, "end_time": end_time.isoformat()}


def scan_pdfs_node(state: ImportState) -> Dict[str, Any]:
    """
    Scan input path and identify all PDFs to import.

    This is the START node that initializes the file list.

    Args:
        state: Current workflow state

    Returns:
        State updates with files_pending, or last_error
    """
    input_path = state.get("input_path", "")

    if not input_path:
        return {"last_error": "No input path specified", "files_pending": []}

    path = Path(input_path)

    if path.is_file():
        if path.suffix.lower() != '.pdf':
            return {"last_error": f"Not a PDF file: {path}", "files_pending": []}
        logger.info(f"Single file mode: {path.name}")
        file_paths = [str(path)]
    elif path.is_dir():
        pdf_files = sorted(
            (p for p in path.iterdir() if p.is_file() and p.suffix.lower() == '.pdf'),
            key=lambda p: p.name.lower(),
        )
        if not pdf_files:
            return {"last_error": f"No PDF files found in: {path}", "files_pending": []}
        file_paths = [str(p) for p in pdf_files]
        logger.info(f"Found {len(file_paths)} PDF files in {path}")
    else:
        return {"last_error": f"Path does not exist: {input_path}", "files_pending": []}

    # Project name from the first file; outputs go in a subdirectory named after it
    project_name = extract_project_name(Path(file_paths[0]).name)
    new_output_path = str(Path(state.get("output_path", "")) / project_name)
    Path(new_output_path).mkdir(parents=True, exist_ok=True)
    logger.info(f"Project name: {project_name}, output: {new_output_path}")

    return {
        "files_pending": file_paths,
        "current_file": file_paths[0],
        "project_name": project_name,
        "output_path": new_output_path,
        "last_error": None,
    }
