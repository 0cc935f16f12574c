"""
LangGraph Workflow Definition
Wires together nodes and edges for the batch roof report importer.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, Iterator, Tuple

from langgraph.graph import StateGraph, END
from langgraph.checkpoint.memory import MemorySaver

from roofing.presets import Preset

from .state import ImportState, create_initial_state
from .nodes import (
    scan_pdfs_node,
    extract_measurements_node,
    build_order_node,
    generate_report_node,
    batch_summary_node,
)
from .edges import (
    route_after_scan,
    route_after_extraction,
    route_after_order,
    route_after_report,
    route_after_failure,
    mark_file_failed,
    advance_to_next_file,
)

logger = logging.getLogger(__name__)

# Each file visits at most five nodes
STEPS_PER_FILE = 5
DEFAULT_RECURSION_LIMIT = 250


def create_import_graph(checkpointer: Optional[MemorySaver] = None):
    """
    Create the LangGraph workflow for batch report import.

    Graph structure:
    ```
    scan_pdfs
        │
        ▼
    extract_measurements ◄─────────┐
        │ ok          │ unreadable │
        ▼             ▼            │
    build_order ──► mark_failed ───┤
        │                          │
        ▼                          │
    generate_report                │
        │ next_file                │
        ▼                          │
    advance_file ──────────────────┘
        │ summary
        ▼
    batch_summary ──► END
    ```

    Args:
        checkpointer: Optional checkpointer for state persistence

    Returns:
        Compiled StateGraph
    """
    workflow = StateGraph(ImportState)

    workflow.add_node("scan_pdfs", scan_pdfs_node)
    workflow.add_node("extract_measurements", extract_measurements_node)
    workflow.add_node("build_order", build_order_node)
    workflow.add_node("generate_report", generate_report_node)
    workflow.add_node("mark_failed", mark_file_failed)
    workflow.add_node("advance_file", advance_to_next_file)
    workflow.add_node("batch_summary", batch_summary_node)

    workflow.set_entry_point("scan_pdfs")

    workflow.add_conditional_edges(
        "scan_pdfs",
        route_after_scan,
        {
            "extract": "extract_measurements",
            "summary": "batch_summary",
        }
    )

    workflow.add_conditional_edges(
        "extract_measurements",
        route_after_extraction,
        {
            "build_order": "build_order",
            "skip": "mark_failed",
        }
    )

    workflow.add_conditional_edges(
        "build_order",
        route_after_order,
        {
            "report": "generate_report",
            "skip": "mark_failed",
        }
    )

    workflow.add_conditional_edges(
        "generate_report",
        route_after_report,
        {
            "next_file": "advance_file",
            "summary": "batch_summary",
            "skip": "mark_failed",
        }
    )

    workflow.add_conditional_edges(
        "mark_failed",
        route_after_failure,
        {
            "next_file": "extract_measurements",
            "summary": "batch_summary",
        }
    )

    workflow.add_edge("advance_file", "extract_measurements")
    workflow.add_edge("batch_summary", END)

    if checkpointer:
        return workflow.compile(checkpointer=checkpointer)
    return workflow.compile()


def _recursion_limit_for(input_path: str, recursion_limit: int) -> int:
    """Raise the step limit so a folder of any size can finish."""
    path = Path(input_path)
    if path.is_dir():
        file_count = sum(1 for p in path.iterdir() if p.is_file() and p.suffix.lower() == '.pdf')
    else:
        file_count = 1
    return max(recursion_limit, STEPS_PER_FILE * file_count + 10)


def _run_config(thread_id: str, enable_checkpoints: bool, recursion_limit: int) -> Dict[str, Any]:
    if enable_checkpoints:
        return {"configurable": {"thread_id": thread_id}, "recursion_limit": recursion_limit}
    return {"recursion_limit": recursion_limit}


def run_import_workflow(
    input_path: str,
    output_path: str,
    preset: Preset,
    confidence_threshold: float = 80.0,
    parsing: Optional[Dict[str, Any]] = None,
    enable_checkpoints: bool = True,
    recursion_limit: int = DEFAULT_RECURSION_LIMIT,
) -> Dict[str, Any]:
    """
    Run the complete import workflow.

    Args:
        input_path: PDF file or folder path
        output_path: Directory for output reports
        preset: Preset applied to every order
        confidence_threshold: Verification threshold (50-100)
        parsing: Optional parsing config overrides
        enable_checkpoints: Enable state persistence
        recursion_limit: Minimum LangGraph step limit; raised to fit the file count

    Returns:
        Final workflow state with results
    """
    checkpointer = MemorySaver() if enable_checkpoints else None
    recursion_limit = _recursion_limit_for(input_path, recursion_limit)
    graph = create_import_graph(checkpointer)

    initial_state = create_initial_state(
        input_path=input_path,
        output_path=output_path,
        preset=preset.to_dict(),
        confidence_threshold=confidence_threshold,
        parsing=parsing,
    )

    logger.info(f"Starting import workflow: {input_path} -> {output_path} (preset '{preset.name}')")

    try:
        final_state = graph.invoke(
            initial_state,
            _run_config("roof-import-1", enable_checkpoints, recursion_limit),
        )
    except Exception as e:
        logger.error(f"Workflow failed: {e}")
        raise

    logger.info("Workflow completed successfully")
    return final_state


def stream_import_workflow(
    input_path: str,
    output_path: str,
    preset: Preset,
    confidence_threshold: float = 80.0,
    parsing: Optional[Dict[str, Any]] = None,
    enable_checkpoints: bool = True,
    recursion_limit: int = DEFAULT_RECURSION_LIMIT,
) -> Iterator[Tuple[str, Dict[str, Any]]]:
    """
    Stream the import workflow, yielding (node_name, state_update) after each node.

    Same arguments as run_import_workflow.
    """
    checkpointer = MemorySaver() if enable_checkpoints else None
    recursion_limit = _recursion_limit_for(input_path, recursion_limit)
    graph = create_import_graph(checkpointer)

    initial_state = create_initial_state(
        input_path=input_path,
        output_path=output_path,
        preset=preset.to_dict(),
        confidence_threshold=confidence_threshold,
        parsing=parsing,
    )

    logger.info(f"Starting import workflow (streaming): {input_path} -> {output_path}")

    try:
        for update in graph.stream(
            initial_state,
            _run_config("roof-import-stream-1", enable_checkpoints, recursion_limit),
            stream_mode="updates",
        ):
            if update:
                node_name = list(update.keys())[0]
                yield (node_name, update[node_name])
    except Exception as e:
        logger.error(f"Workflow streaming failed: {e}")
        raise

    logger.info("Workflow streaming completed successfully")


def get_workflow_visualization() -> str:
    """
    Get ASCII visualization of the workflow graph.
    """
    return """
    Roof Report Import Workflow
    ===========================

                 ┌─────────────┐
                 │  scan_pdfs  │
                 │   (START)   │
                 └──────┬──────┘
                        │
          ┌─────────────▼─────────────┐
          │   extract_measurements    │◄──────────────┐
          │ (detect, extract, score)  │               │
          └─────────────┬─────────────┘               │
                        │                             │
               ok ──────┴────── unreadable            │
               │                     │                │
               ▼                     ▼                │
        ┌─────────────┐       ┌─────────────┐         │
        │ build_order │──────►│ mark_failed │─────────┤
        │  (preset)   │       └─────────────┘         │
        └──────┬──────┘                               │
               │                                      │
               ▼                                      │
        ┌─────────────────┐                           │
        │ generate_report │                           │
        │  (JSON + CSV)   │                           │
        └────────┬────────┘                           │
                 │                                    │
         ┌───────┴───────┐                            │
     next_file        summary                         │
         │               │                            │
         ▼               │                            │
   ┌──────────────┐      │                            │
   │ advance_file │──────┼────────────────────────────┘
   └──────────────┘      │
                         ▼
                ┌────────────────┐
                │ batch_summary  │
                └───────┬────────┘
                        │
                        ▼
                     ┌─────┐
                     │ END │
                     └─────┘
    """
