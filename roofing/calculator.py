"""
Material Calculator

Converts RoofMeasurements into a bill of materials using PresetFactors.
Pure and deterministic: no I/O, no shared state, never raises for odd
inputs. Every quantity is rounded up once, at output.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List

from .models import RoofMeasurements
from .presets import PresetFactors

logger = logging.getLogger(__name__)

# Item names, in output order
SHINGLES = "Shingles"
UNDERLAYMENT = "Underlayment"
STARTER_STRIP = "Starter Strip"
RIDGE_CAP = "Ridge Cap"
DRIP_EDGE = "Drip Edge"
VALLEY_FLASHING = "Valley Flashing"
ICE_AND_WATER = "Ice & Water Shield"
COIL_NAILS = "Coil Nails"
CAP_NAILS = "Cap Nails"

ITEM_ORDER = (
    SHINGLES, UNDERLAYMENT, STARTER_STRIP, RIDGE_CAP, DRIP_EDGE,
    VALLEY_FLASHING, ICE_AND_WATER, COIL_NAILS, CAP_NAILS,
)

# Float noise below this is ignored before rounding up (30 * 3 * 1.10 = 99.00000000000001)
_SNAP_DIGITS = 6


@dataclass(frozen=True)
class MaterialLineItem:
    """One row of the bill of materials."""
    name: str
    quantity: int
    unit: str
    category: str
    notes: str = ""

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "notes": self.notes,
        }


def ceil_units(raw: float) -> int:
    """Round a raw requirement up to whole purchasing units."""
    if raw <= 0 or math.isnan(raw) or math.isinf(raw):
        return 0
    return int(math.ceil(round(raw, _SNAP_DIGITS)))


def _per_unit(amount: float, unit_size: float) -> float:
    # A zero or negative yield cannot be ordered against
    if unit_size <= 0:
        return 0.0
    return amount / unit_size


def _clean(value: float) -> float:
    return max(0.0, float(value or 0.0))


def calculate_line_items(measurements: RoofMeasurements, factors: PresetFactors) -> List[MaterialLineItem]:
    """
    Compute every line item for a roof.

    Args:
        measurements: Canonical roof measurements
        factors: Yield and waste constants

    Returns:
        MaterialLineItem list in fixed item order
    """
    squares = _clean(measurements.total_squares)
    area = _clean(measurements.total_roof_area)
    ridge = _clean(measurements.ridge_length)
    eave = _clean(measurements.eave_length)
    rake = _clean(measurements.rake_length)
    valley = _clean(measurements.valley_length)

    items: List[MaterialLineItem] = []

    # Shingles
    squares_with_waste = squares * (1 + factors.shingle_waste_factor)
    items.append(MaterialLineItem(
        SHINGLES,
        ceil_units(squares_with_waste * factors.bundles_per_square),
        "bundles",
        "Shingles",
        f"{squares:.1f} SQ + {factors.shingle_waste_factor * 100:.0f}% waste "
        f"x {factors.bundles_per_square:g} bundles/SQ",
    ))

    # Underlayment (squares are authoritative when present)
    coverage = squares * 100 if squares > 0 else area
    underlayment_kind = "synthetic" if factors.uses_synthetic_underlayment else "felt"
    items.append(MaterialLineItem(
        UNDERLAYMENT,
        ceil_units(_per_unit(coverage * (1 + factors.underlayment_waste_factor), factors.underlayment_sqft_per_roll)),
        "rolls",
        "Underlayment",
        f"{coverage:,.0f} sq ft {underlayment_kind}, {factors.underlayment_sqft_per_roll:,.0f} sq ft/roll",
    ))

    items.append(MaterialLineItem(
        STARTER_STRIP,
        ceil_units(_per_unit(eave, factors.starter_strip_lf_per_bundle)),
        "bundles",
        "Starter",
        f"{eave:.0f} LF eaves",
    ))

    if factors.includes_ridge_cap:
        items.append(MaterialLineItem(
            RIDGE_CAP,
            ceil_units(_per_unit(ridge, factors.ridge_cap_lf_per_bundle)),
            "bundles",
            "Ridge Cap",
            f"{ridge:.0f} LF ridge",
        ))

    if factors.includes_drip_edge:
        items.append(MaterialLineItem(
            DRIP_EDGE,
            ceil_units(_per_unit(eave + rake, factors.drip_edge_lf_per_piece)),
            "pieces",
            "Flashing",
            f"{eave + rake:.0f} LF eaves + rakes",
        ))

    if valley > 0:
        items.append(MaterialLineItem(
            VALLEY_FLASHING,
            ceil_units(_per_unit(valley, factors.valley_flashing_lf_per_piece)),
            "pieces",
            "Flashing",
            f"{valley:.0f} LF valleys",
        ))

    ice_water_sqft = 0.0
    ice_water_notes = []
    if factors.requires_ice_water_for_valleys:
        ice_water_sqft += valley
        ice_water_notes.append(f"{valley:.0f} LF valleys")
    if factors.requires_ice_water_for_eaves:
        ice_water_sqft += eave * factors.eave_ice_water_width_feet
        ice_water_notes.append(f"{eave:.0f} LF eaves x {factors.eave_ice_water_width_feet:g} ft")
    if ice_water_notes:
        items.append(MaterialLineItem(
            ICE_AND_WATER,
            ceil_units(_per_unit(ice_water_sqft, factors.ice_water_sqft_per_roll)),
            "rolls",
            "Ice & Water",
            ", ".join(ice_water_notes),
        ))

    items.append(MaterialLineItem(
        COIL_NAILS,
        ceil_units(squares * factors.coil_nails_lbs_per_square),
        "lbs",
        "Nails",
        f"{factors.coil_nails_lbs_per_square:g} lbs/SQ",
    ))
    items.append(MaterialLineItem(
        CAP_NAILS,
        ceil_units(ridge * factors.cap_nails_per_ridge_lf),
        "count",
        "Nails",
        f"{factors.cap_nails_per_ridge_lf:g} per ridge LF",
    ))

    logger.debug(f"Calculated {len(items)} line items")
    return items


def calculate_materials(measurements: RoofMeasurements, factors: PresetFactors) -> Dict[str, int]:
    """Item name -> quantity for a roof. Same inputs always give the same map."""
    return {item.name: item.quantity for item in calculate_line_items(measurements, factors)}
