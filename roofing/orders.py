"""
Material Orders

A MaterialOrder ties one extraction result to a calculated bill of materials.
Calculated quantities are replaced wholesale on recalculation; user overrides
live in manual_quantities and are laid on top by effective_quantities().
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .calculator import MaterialLineItem, calculate_line_items
from .config import DEFAULT_CONFIDENCE_THRESHOLD, clamp_threshold
from .models import DetectedFormat, MeasurementExtractionResult, RoofMeasurements
from .presets import Preset, PresetFactors

logger = logging.getLogger(__name__)

# Supplier order text lists categories in this order
CATEGORY_ORDER = (
    "Shingles", "Underlayment", "Starter", "Ridge Cap", "Ventilation",
    "Flashing", "Ice & Water", "Nails", "Accessories",
)

_RULE = "─" * 24


class OrderStatus(Enum):
    DRAFT = "Draft"
    ORDERED = "Ordered"
    COMPLETED = "Completed"


@dataclass
class MaterialOrder:
    """An editable order built from one measurement report."""
    measurements: RoofMeasurements
    materials: Dict[str, int] = field(default_factory=dict)
    parse_confidence: float = 0.0
    detected_format: DetectedFormat = DetectedFormat.UNKNOWN
    parse_warnings: Tuple[str, ...] = ()
    status: OrderStatus = OrderStatus.DRAFT
    source_filename: str = ""
    project_name: str = ""
    address: str = ""
    notes: str = ""
    preset_name: str = ""
    factors: PresetFactors = field(default_factory=PresetFactors)
    line_items: List[MaterialLineItem] = field(default_factory=list)
    manual_quantities: Dict[str, float] = field(default_factory=dict)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    # ========================================
    # Calculation
    # ========================================

    def recalculate(self, preset: Optional[Preset] = None) -> Dict[str, int]:
        """
        Recompute materials from the current measurements.

        The materials map and line items are replaced as a whole. Manual
        overrides are kept only for items that still exist.
        """
        if preset is not None:
            self.preset_name = preset.name
            self.factors = preset.factors
        items = calculate_line_items(self.measurements, self.factors)
        materials = {item.name: item.quantity for item in items}
        self.line_items = items
        self.materials = materials
        self.manual_quantities = {k: v for k, v in self.manual_quantities.items() if k in materials}
        logger.debug(f"Recalculated {len(materials)} items with preset '{self.preset_name}'")
        return materials

    def update_measurements(self, **changes) -> Dict[str, int]:
        """Edit measurement fields by name, then recalculate."""
        self.measurements = self.measurements.copy(**changes)
        return self.recalculate()

    def set_manual_quantity(self, item_name: str, quantity: Optional[float]):
        """Override one item's quantity; None clears the override."""
        if quantity is None:
            self.manual_quantities.pop(item_name, None)
            return
        if item_name not in self.materials:
            raise KeyError(f"No material named '{item_name}'")
        self.manual_quantities[item_name] = max(0.0, float(quantity))

    def is_manually_adjusted(self, item_name: str) -> bool:
        return item_name in self.manual_quantities

    def effective_quantities(self) -> Dict[str, float]:
        """Calculated materials with manual overrides applied."""
        merged: Dict[str, float] = dict(self.materials)
        merged.update(self.manual_quantities)
        return merged

    # ========================================
    # Verification
    # ========================================

    def needs_verification(self, threshold: float = DEFAULT_CONFIDENCE_THRESHOLD) -> bool:
        """True when the parse confidence is below the user's threshold."""
        return self.parse_confidence < clamp_threshold(threshold)

    # ========================================
    # Supplier text
    # ========================================

    @property
    def squares_with_waste(self) -> float:
        return self.measurements.total_squares * (1 + self.factors.shingle_waste_factor)

    def supplier_email_subject(self) -> str:
        where = self.address or self.project_name or self.source_filename or "Roof Order"
        return f"Roof Order - {where} - {self.squares_with_waste:.1f} SQ"

    def supplier_email_body(self, include_notes: bool = True) -> str:
        waste_pct = self.factors.shingle_waste_factor * 100
        lines = [self.project_name or "Roof Order"]
        if self.address:
            lines.append(self.address)
        lines += [
            "",
            f"{self.squares_with_waste:.2f} SQ (w/ {waste_pct:.0f}% waste)",
            "",
            _RULE,
            "MATERIALS",
            _RULE,
            "",
        ]

        effective = self.effective_quantities()
        by_category: Dict[str, List[MaterialLineItem]] = {}
        for item in self.line_items:
            by_category.setdefault(item.category, []).append(item)

        for category in CATEGORY_ORDER:
            for item in by_category.get(category, []):
                qty = effective.get(item.name, item.quantity)
                if qty <= 0:
                    continue
                marker = " *" if self.is_manually_adjusted(item.name) else ""
                lines.append(f"{qty:g} {item.unit}  -  {item.name}{marker}")
                lines.append("")

        if include_notes and self.notes:
            lines += [_RULE, "NOTES", _RULE, "", self.notes, ""]

        if self.manual_quantities:
            lines += ["", "* = adjusted qty"]

        return "\n".join(lines)

    # ========================================
    # Serialization
    # ========================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "measurements": self.measurements.to_dict(),
            "materials": dict(self.materials),
            "parse_confidence": self.parse_confidence,
            "detected_format": self.detected_format.value,
            "parse_warnings": list(self.parse_warnings),
            "status": self.status.value,
            "source_filename": self.source_filename,
            "project_name": self.project_name,
            "address": self.address,
            "notes": self.notes,
            "preset_name": self.preset_name,
            "factors": self.factors.to_json_dict(),
            "line_items": [item.to_dict() for item in self.line_items],
            "manual_quantities": dict(self.manual_quantities),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MaterialOrder":
        factors = PresetFactors.from_json_dict(data["factors"]) if data.get("factors") else PresetFactors()
        return cls(
            measurements=RoofMeasurements.from_dict(data.get("measurements", {})),
            materials=dict(data.get("materials", {})),
            parse_confidence=float(data.get("parse_confidence", 0.0)),
            detected_format=DetectedFormat.from_tag(data.get("detected_format")),
            parse_warnings=tuple(data.get("parse_warnings", ())),
            status=OrderStatus(data.get("status", OrderStatus.DRAFT.value)),
            source_filename=data.get("source_filename", ""),
            project_name=data.get("project_name", ""),
            address=data.get("address", ""),
            notes=data.get("notes", ""),
            preset_name=data.get("preset_name", ""),
            factors=factors,
            line_items=[MaterialLineItem(**item) for item in data.get("line_items", [])],
            manual_quantities=dict(data.get("manual_quantities", {})),
            created_at=data.get("created_at") or datetime.now().isoformat(timespec="seconds"),
        )


def create_order(
    result: MeasurementExtractionResult,
    preset: Preset,
    source_filename: str = "",
    project_name: str = "",
    address: str = "",
    notes: str = "",
) -> MaterialOrder:
    """
    Build a draft order from an extraction result and compute its materials.

    The order keeps its own copy of the measurements so later edits never
    touch the (immutable) extraction result.
    """
    order = MaterialOrder(
        measurements=result.measurements.copy(),
        parse_confidence=result.confidence,
        detected_format=result.detected_format,
        parse_warnings=tuple(result.warnings),
        source_filename=source_filename,
        project_name=project_name,
        address=address,
        notes=notes,
    )
    order.recalculate(preset)
    logger.info(
        f"Created order for {source_filename or 'report'}: {len(order.materials)} items, "
        f"confidence {order.parse_confidence:.0f}"
    )
    return order
