"""
Node 3: Report Generation
Writes the JSON order report and the CSV bill of materials for one file.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, Any

from roofing.orders import MaterialOrder

from ..state import ImportState

logger = logging.getLogger(__name__)


def _generate_csv_report(order: MaterialOrder, output_path: Path, filename_stem: str) -> str:
    """
    Generate CSV bill of materials.

    Args:
        order: Order with calculated line items
        output_path: Output directory path
        filename_stem: Base filename (without extension)

    Returns:
        Path to generated CSV file
    """
    csv_path = output_path / f"{filename_stem}_materials.csv"

    fieldnames = ['Item', 'Quantity', 'Unit', 'Category', 'Notes', 'Adjusted']
    effective = order.effective_quantities()

    with open(csv_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        for item in order.line_items:
            writer.writerow({
                'Item': item.name,
                'Quantity': effective.get(item.name, item.quantity),
                'Unit': item.unit,
                'Category': item.category,
                'Notes': item.notes,
                'Adjusted': 'Yes' if order.is_manually_adjusted(item.name) else 'No',
            })

    return str(csv_path)


def generate_report_node(state: ImportState) -> Dict[str, Any]:
    """
    Generate JSON and CSV reports for the current file.

    Steps:
    1. Rebuild the order from state
    2. Save the JSON report and CSV bill of materials
    3. Update batch totals

    Args:
        state: Current workflow state

    Returns:
        State updates with report_path, csv_path, updated totals, or last_error
    """
    current_file = state.get("current_file", "")
    output_path = state.get("output_path", "")
    order_data = state.get("order")
    extraction = state.get("extraction") or {}
    threshold = state.get("confidence_threshold", 80.0)

    if not output_path:
        logger.error("No output path specified")
        return {"last_error": "No output path specified"}

    if not current_file or not order_data:
        logger.error("No order in state")
        return {"last_error": "No order to report"}

    output_dir = Path(output_path)
    output_dir.mkdir(parents=True, exist_ok=True)

    order = MaterialOrder.from_dict(order_data)
    needs_verification = order.needs_verification(threshold)
    filename_stem = Path(current_file).stem

    report_data = {
        "source": Path(current_file).name,
        "extraction": extraction,
        "order": order_data,
        "needs_verification": needs_verification,
        "confidence_threshold": threshold,
        "supplier_email": {
            "subject": order.supplier_email_subject(),
            "body": order.supplier_email_body(),
        },
    }

    try:
        report_path = output_dir / f"{filename_stem}_order.json"
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(report_data, f, indent=2)
        logger.info(f"JSON report saved: {report_path}")

        csv_path = _generate_csv_report(order, output_dir, filename_stem)
        logger.info(f"CSV report saved: {csv_path}")
    except OSError as e:
        logger.error(f"Report generation failed: {e}")
        return {"last_error": f"Report generation failed: {e}"}

    file_result = {
        "filename": Path(current_file).name,
        "filepath": current_file,
        "success": True,
        "page_count": state.get("page_count", 0),
        "detected_format": order.detected_format.value,
        "confidence": order.parse_confidence,
        "needs_verification": needs_verification,
        "total_squares": order.measurements.total_squares,
        "report_path": str(report_path),
        "csv_path": csv_path,
        "errors": [],
    }

    format_counts = dict(state.get("format_counts") or {})
    format_counts[order.detected_format.value] = format_counts.get(order.detected_format.value, 0) + 1

    return {
        "report_path": str(report_path),
        "csv_path": csv_path,
        "last_error": None,
        # Running totals are updated here so the single-file path needs no advance_file
        "total_squares": state.get("total_squares", 0.0) + order.measurements.total_squares,
        "total_pages": state.get("total_pages", 0) + state.get("page_count", 0),
        "verification_count": state.get("verification_count", 0) + (1 if needs_verification else 0),
        "format_counts": format_counts,
        "files_completed": state.get("files_completed", []) + [file_result],
        "_file_result": file_result,
    }
