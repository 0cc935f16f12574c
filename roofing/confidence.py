"""
Confidence Aggregator

Turns per-field provenance, detection quality and cross-check results into a
single 0-100 score plus the warnings that explain it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .config import ConfidenceWeights
from .models import FIELD_LABELS, DetectedFormat, FieldSource
from .normalizer import NormalizedMeasurements

logger = logging.getLogger(__name__)

GENERIC_PARSER_WARNING = "Using generic parser - results may be less accurate"
UNKNOWN_FORMAT_WARNING = "Unrecognized report format - using generic parser"


@dataclass
class Penalty:
    reason: str
    points: float

    def to_dict(self) -> Dict:
        return {"reason": self.reason, "points": round(self.points, 2)}


@dataclass
class ConfidenceReport:
    """Score breakdown for one extraction."""
    score: float
    base_score: float
    penalties: List[Penalty] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def total_penalty(self) -> float:
        return sum(p.points for p in self.penalties)

    def to_dict(self) -> Dict:
        return {
            "score": round(self.score, 2),
            "base_score": round(self.base_score, 2),
            "penalties": [p.to_dict() for p in self.penalties],
            "warnings": list(self.warnings),
        }


def _credit(source: FieldSource, weights: ConfidenceWeights) -> float:
    if source == FieldSource.EXTRACTED:
        return 1.0
    if source == FieldSource.DERIVED:
        return weights.derived_credit
    return 0.0


def _share(names, sources: Mapping[str, FieldSource], weights: ConfidenceWeights) -> float:
    if not names:
        return 0.0
    total = sum(_credit(sources.get(n, FieldSource.DEFAULTED), weights) for n in names)
    return total / len(names)


def _default_note(name: str) -> str:
    fallback = "unknown" if name == "pitch" else "0"
    return f"{FIELD_LABELS.get(name, name)} not found — using {fallback}"


def score_extraction(
    normalized: NormalizedMeasurements,
    detected_format: DetectedFormat,
    detector_confidence: float,
    weights: Optional[ConfidenceWeights] = None,
) -> ConfidenceReport:
    """
    Compute the extraction confidence.

    Score = required_share * (credit over required fields)
          + optional_share * (credit over optional fields)
          - format, detection and consistency penalties,
    clamped to [0, 100].
    """
    weights = weights or ConfidenceWeights()
    sources = normalized.sources

    base = (
        weights.required_share * _share(weights.required_fields, sources, weights)
        + weights.optional_share * _share(weights.optional_fields, sources, weights)
    )

    penalties: List[Penalty] = []
    warnings: List[str] = []

    if detected_format == DetectedFormat.GENERIC:
        penalties.append(Penalty("generic format", weights.generic_format_penalty))
        warnings.append(GENERIC_PARSER_WARNING)
    elif detected_format == DetectedFormat.UNKNOWN:
        penalties.append(Penalty("unknown format", weights.unknown_format_penalty))
        warnings.append(UNKNOWN_FORMAT_WARNING)
    elif detector_confidence < 1.0:
        points = weights.weak_detection_penalty * (1.0 - max(0.0, detector_confidence))
        penalties.append(Penalty("weak format detection", points))
        warnings.append(
            f"{detected_format.value} format detected from limited evidence - verify measurements"
        )

    for issue in normalized.derived:
        warnings.append(issue.message)

    for issue in normalized.inconsistencies:
        penalties.append(Penalty(f"inconsistent {issue.field}", weights.consistency_penalty))
        warnings.append(issue.message)

    for name in tuple(weights.required_fields) + tuple(weights.optional_fields):
        if sources.get(name, FieldSource.DEFAULTED) == FieldSource.DEFAULTED:
            warnings.append(_default_note(name))

    score = max(0.0, min(100.0, base - sum(p.points for p in penalties)))
    logger.info(f"Confidence {score:.1f} (base {base:.1f}, {len(penalties)} penalties)")
    return ConfidenceReport(score=score, base_score=base, penalties=penalties, warnings=warnings)
