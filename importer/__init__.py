# Batch roof report importer
from .graph import (
    create_import_graph,
    run_import_workflow,
    stream_import_workflow,
    get_workflow_visualization,
)
from .state import ImportState, create_initial_state

__all__ = [
    "create_import_graph",
    "run_import_workflow",
    "stream_import_workflow",
    "get_workflow_visualization",
    "ImportState",
    "create_initial_state",
]
