"""
Data model for roof measurement extraction.

RawTextRun/Rect come out of the text layer, RoofMeasurements is the canonical
format-agnostic measurement set, and MeasurementExtractionResult is the
immutable product of one PDF import.
"""

import math
import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Rect:
    """Bounding box in PDF points (origin top-left, as PyMuPDF reports it)."""
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def center_y(self) -> float:
        return (self.y0 + self.y1) / 2.0

    @property
    def height(self) -> float:
        return self.y1 - self.y0


@dataclass(frozen=True)
class RawTextRun:
    """A single positioned string from the PDF text layer."""
    text: str
    page: int       # 1-based
    bbox: Rect


class DetectedFormat(Enum):
    """Vendor formats the detector can report. Declaration order is the tie-break order."""
    IROOF = "iRoof"
    EAGLEVIEW = "EagleView"
    HOVER = "Hover"
    ROOFSNAP = "RoofSnap"
    GENERIC = "Generic"
    UNKNOWN = "Unknown"

    @property
    def is_vendor(self) -> bool:
        return self not in (DetectedFormat.GENERIC, DetectedFormat.UNKNOWN)

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "DetectedFormat":
        """Parse a stored tag, case-insensitively. Unrecognized tags map to UNKNOWN."""
        if not tag:
            return cls.UNKNOWN
        for member in cls:
            if member.value.lower() == str(tag).lower() or member.name == str(tag).upper():
                return member
        return cls.UNKNOWN


class FieldSource(Enum):
    """Where a measurement value came from."""
    EXTRACTED = "extracted"
    DERIVED = "derived"
    DEFAULTED = "defaulted"


# Fields that take part in extraction, in extraction order.
MEASUREMENT_FIELDS: Tuple[str, ...] = (
    "total_roof_area",
    "total_squares",
    "ridge_length",
    "hip_length",
    "valley_length",
    "eave_length",
    "rake_length",
    "facet_count",
    "pitch",
    "num_stories",
    "facet_areas",
)

LENGTH_FIELDS: Tuple[str, ...] = (
    "ridge_length",
    "hip_length",
    "valley_length",
    "eave_length",
    "rake_length",
)

# Human-readable labels used in warnings
FIELD_LABELS: Dict[str, str] = {
    "total_squares": "Total squares",
    "total_roof_area": "Total roof area",
    "ridge_length": "Ridge length",
    "hip_length": "Hip length",
    "valley_length": "Valley length",
    "eave_length": "Eave length",
    "rake_length": "Rake length",
    "facet_count": "Facet count",
    "pitch": "Pitch",
    "num_stories": "Number of stories",
    "facet_areas": "Facet areas",
}

_PITCH_RE = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*[/:]\s*12\s*$')


@dataclass
class RoofMeasurements:
    """Canonical roof measurements. Areas in sq ft, lengths in linear feet."""
    total_squares: float = 0.0
    total_roof_area: float = 0.0
    ridge_length: float = 0.0
    hip_length: float = 0.0
    valley_length: float = 0.0
    eave_length: float = 0.0
    rake_length: float = 0.0
    facet_count: int = 0
    pitch: Optional[str] = None
    num_stories: Optional[int] = None
    facet_areas: Tuple[float, ...] = field(default_factory=tuple)

    @property
    def pitch_rise(self) -> Optional[float]:
        """Rise per 12 of run, or None when pitch is unknown or unparseable."""
        if not self.pitch:
            return None
        match = _PITCH_RE.match(self.pitch)
        return float(match.group(1)) if match else None

    @property
    def pitch_multiplier(self) -> float:
        """Slope factor sqrt(rise^2 + 12^2) / 12; 1.0 when pitch is unknown."""
        rise = self.pitch_rise
        if rise is None:
            return 1.0
        return math.sqrt(rise ** 2 + 144.0) / 12.0

    @property
    def has_data(self) -> bool:
        return any(
            getattr(self, name) for name in ("total_squares", "total_roof_area") + LENGTH_FIELDS
        )

    def is_default(self, name: str) -> bool:
        """True when a field still holds its zero/unknown default."""
        value = getattr(self, name)
        return value in (None, 0, 0.0, ())

    def copy(self, **changes) -> "RoofMeasurements":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["facet_areas"] = list(self.facet_areas)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoofMeasurements":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if "facet_areas" in kwargs:
            kwargs["facet_areas"] = tuple(float(a) for a in kwargs["facet_areas"] or ())
        if kwargs.get("facet_count") is not None:
            kwargs["facet_count"] = int(kwargs["facet_count"])
        return cls(**kwargs)


@dataclass(frozen=True)
class MeasurementExtractionResult:
    """Outcome of one PDF import. Immutable once created."""
    measurements: RoofMeasurements
    confidence: float
    detected_format: DetectedFormat
    warnings: Tuple[str, ...] = ()
    field_sources: Mapping[str, str] = field(default_factory=dict)
    detector_confidence: float = 0.0
    page_count: int = 0

    @property
    def is_successful(self) -> bool:
        return self.confidence > 0 and self.measurements.has_data

    def to_dict(self) -> Dict[str, Any]:
        return {
            "measurements": self.measurements.to_dict(),
            "confidence": self.confidence,
            "detected_format": self.detected_format.value,
            "warnings": list(self.warnings),
            "field_sources": dict(self.field_sources),
            "detector_confidence": self.detector_confidence,
            "page_count": self.page_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MeasurementExtractionResult":
        return cls(
            measurements=RoofMeasurements.from_dict(data.get("measurements", {})),
            confidence=float(data.get("confidence", 0.0)),
            detected_format=DetectedFormat.from_tag(data.get("detected_format")),
            warnings=tuple(data.get("warnings", ())),
            field_sources=dict(data.get("field_sources", {})),
            detector_confidence=float(data.get("detector_confidence", 0.0)),
            page_count=int(data.get("page_count", 0)),
        )
