# Workflow nodes
from .extract_measurements import extract_measurements_node
from .build_order import build_order_node
from .generate_report import generate_report_node
from .batch_summary import batch_summary_node, scan_pdfs_node

__all__ = [
    "extract_measurements_node",
    "build_order_node",
    "generate_report_node",
    "batch_summary_node",
    "scan_pdfs_node",
]
