"""
Measurement Normalizer

Fills derivable gaps (squares <-> area, facet count) and cross-checks
redundant measurements. Runs in a fixed order and never overwrites a value
the extractor found.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional

from .config import ParsingConfig
from .errors import InconsistentMeasurementWarning
from .models import FIELD_LABELS, MEASUREMENT_FIELDS, FieldSource, RoofMeasurements

logger = logging.getLogger(__name__)

SQFT_PER_SQUARE = 100.0


class IssueKind(Enum):
    """What a normalization note records."""
    DERIVED = "derived"             # value filled in from another field
    INCONSISTENT = "inconsistent"   # redundant fields disagree beyond tolerance
    MISSING = "missing"             # still at its default after normalization


@dataclass
class NormalizationIssue:
    """A single normalization note."""
    kind: IssueKind
    field: str
    message: str

    def as_warning(self) -> InconsistentMeasurementWarning:
        return InconsistentMeasurementWarning(self.message)

    def to_dict(self) -> Dict:
        return {"kind": self.kind.value, "field": self.field, "message": self.message}


@dataclass
class NormalizedMeasurements:
    """Normalizer output: measurements, provenance per field, and notes."""
    measurements: RoofMeasurements
    sources: Dict[str, FieldSource] = field(default_factory=dict)
    issues: List[NormalizationIssue] = field(default_factory=list)

    @property
    def inconsistencies(self) -> List[NormalizationIssue]:
        return [i for i in self.issues if i.kind == IssueKind.INCONSISTENT]

    @property
    def derived(self) -> List[NormalizationIssue]:
        return [i for i in self.issues if i.kind == IssueKind.DERIVED]

    @property
    def missing_fields(self) -> List[str]:
        return [name for name, src in self.sources.items() if src == FieldSource.DEFAULTED]

    def to_dict(self) -> Dict:
        return {
            "measurements": self.measurements.to_dict(),
            "sources": {k: v.value for k, v in self.sources.items()},
            "issues": [i.to_dict() for i in self.issues],
        }


def relative_deviation(a: float, b: float) -> float:
    """|a - b| relative to the larger of the two; 0 when both are zero."""
    scale = max(abs(a), abs(b))
    if scale == 0:
        return 0.0
    return abs(a - b) / scale


def _inconsistent(message: str, field_name: str) -> NormalizationIssue:
    logger.warning(message)
    return NormalizationIssue(IssueKind.INCONSISTENT, field_name, message)


def normalize(
    measurements: RoofMeasurements,
    found: Mapping[str, bool],
    config: Optional[ParsingConfig] = None,
) -> NormalizedMeasurements:
    """
    Derive missing values and cross-check redundant ones.

    Order:
        1. area found, squares not  -> squares = area / 100
        2. squares found, area not  -> area = squares * 100
        3. both found               -> deviation check against tolerance
        4. facet areas vs total area cross-check
        5. facet count from listed facet areas

    Args:
        measurements: Raw extractor output
        found: Which fields the extractor matched
        config: Tolerance settings

    Returns:
        NormalizedMeasurements (the input object is not modified)
    """
    config = config or ParsingConfig()
    tolerance = config.mismatch_tolerance

    sources: Dict[str, FieldSource] = {
        name: FieldSource.EXTRACTED if found.get(name) else FieldSource.DEFAULTED
        for name in MEASUREMENT_FIELDS
    }
    issues: List[NormalizationIssue] = []
    changes = {}

    has_area = sources["total_roof_area"] == FieldSource.EXTRACTED and measurements.total_roof_area > 0
    has_squares = sources["total_squares"] == FieldSource.EXTRACTED and measurements.total_squares > 0

    if has_area and not has_squares:
        changes["total_squares"] = round(measurements.total_roof_area / SQFT_PER_SQUARE, 4)
        sources["total_squares"] = FieldSource.DERIVED
        issues.append(NormalizationIssue(IssueKind.DERIVED, "total_squares", "Total squares derived from area"))
    elif has_squares and not has_area:
        changes["total_roof_area"] = round(measurements.total_squares * SQFT_PER_SQUARE, 4)
        sources["total_roof_area"] = FieldSource.DERIVED
        issues.append(NormalizationIssue(IssueKind.DERIVED, "total_roof_area", "Total roof area derived from squares"))
    elif has_area and has_squares:
        deviation = relative_deviation(measurements.total_squares * SQFT_PER_SQUARE, measurements.total_roof_area)
        if deviation > tolerance:
            issues.append(_inconsistent(
                f"Total area mismatch: reported squares vs roof area differ by {deviation * 100:.0f}%",
                "total_squares",
            ))

    total_area = changes.get("total_roof_area", measurements.total_roof_area)
    if measurements.facet_areas and total_area > 0:
        facet_sum = sum(measurements.facet_areas)
        deviation = relative_deviation(facet_sum, total_area)
        if deviation > tolerance:
            issues.append(_inconsistent(
                f"Facet area mismatch: facets sum to {facet_sum:,.0f} sq ft vs total {total_area:,.0f} sq ft "
                f"({deviation * 100:.0f}%)",
                "facet_areas",
            ))

    if sources["facet_count"] == FieldSource.DEFAULTED and measurements.facet_areas:
        changes["facet_count"] = len(measurements.facet_areas)
        sources["facet_count"] = FieldSource.DERIVED
        issues.append(NormalizationIssue(IssueKind.DERIVED, "facet_count", "Facet count derived from facet areas"))

    for name, source in sources.items():
        if source == FieldSource.DEFAULTED:
            issues.append(NormalizationIssue(IssueKind.MISSING, name, f"{FIELD_LABELS[name]} not found"))

    normalized = measurements.copy(**changes) if changes else measurements.copy()
    logger.debug(f"Normalized: {len(changes)} derived, {len(issues)} notes")
    return NormalizedMeasurements(measurements=normalized, sources=sources, issues=issues)
