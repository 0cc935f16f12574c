"""
Node 2: Order Creation
Turns the extraction result into a draft MaterialOrder using the run's preset.
"""

import logging
from pathlib import Path
from typing import Dict, Any

from roofing.errors import InvalidPresetImportError
from roofing.models import MeasurementExtractionResult
from roofing.orders import create_order
from roofing.presets import Preset

from ..state import ImportState

logger = logging.getLogger(__name__)


def build_order_node(state: ImportState) -> Dict[str, Any]:
    """
    Create a material order for the current file.

    Args:
        state: Current workflow state

    Returns:
        State updates with order, or last_error
    """
    current_file = state.get("current_file", "")
    extraction = state.get("extraction")

    if not extraction:
        return {"last_error": "No extraction result to build an order from"}

    try:
        preset = Preset.from_dict(state["preset"])
    except (KeyError, InvalidPresetImportError) as e:
        logger.error(f"Invalid preset in workflow state: {e}")
        return {"last_error": f"Invalid preset: {e}"}

    result = MeasurementExtractionResult.from_dict(extraction)
    order = create_order(
        result,
        preset,
        source_filename=Path(current_file).name,
        project_name=state.get("project_name") or "",
    )

    if order.needs_verification(state.get("confidence_threshold", 80.0)):
        logger.warning(
            f"{Path(current_file).name}: confidence {order.parse_confidence:.0f} "
            f"below threshold - needs verification"
        )

    return {"order": order.to_dict(), "last_error": None}
