#!/usr/bin/env python3
"""
Format Detector for Roof Measurement Reports

Classifies a report into one of the known vendor formats using lexical
fingerprints found in its text. Vendor names and domains decide; section
headings only add weight once a brand is present. Each fingerprint counts
once no matter how often it appears.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Tuple

from .config import DetectionConfig
from .models import DetectedFormat

logger = logging.getLogger(__name__)


def _fp(pattern: str, case_sensitive: bool = False) -> Pattern:
    return re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)


# Brand fingerprints (names, domains), in registration order. A vendor needs at
# least one of these to be considered. Ties go to the earlier entry.
VENDOR_FINGERPRINTS: Tuple[Tuple[DetectedFormat, Tuple[Pattern, ...]], ...] = (
    (DetectedFormat.IROOF, (
        _fp(r'\biRoof\b'),
        _fp(r'iroof\.com'),
    )),
    (DetectedFormat.EAGLEVIEW, (
        _fp(r'\bEagle\s?View\b'),
        _fp(r'eagleview\.com'),
        _fp(r'\bPictometry\b'),
    )),
    (DetectedFormat.HOVER, (
        _fp(r'\bHOVER\b', case_sensitive=True),
        _fp(r'hover\.to'),
        _fp(r'\bHover\s+(?:Inc|Technologies|Measurements?)\b'),
    )),
    (DetectedFormat.ROOFSNAP, (
        _fp(r'\bRoofSnap\b'),
        _fp(r'roofsnap\.com'),
    )),
)

# Section headings typical of a vendor's layout. Common in contractors' own
# reports too, so they only add to a score that already has a brand hit.
VENDOR_HEADINGS: Dict[DetectedFormat, Tuple[Pattern, ...]] = {
    DetectedFormat.IROOF: (
        _fp(r'\bRoof\s+Report\b'),
        _fp(r'\bLength\s+Summary\b'),
    ),
    DetectedFormat.EAGLEVIEW: (
        _fp(r'\bPremium\s+Report\b'),
        _fp(r'\bPredominant\s+Pitch\b'),
        _fp(r'\bReport\s+Summary\b'),
    ),
    DetectedFormat.HOVER: (
        _fp(r'\bRoof\s+Summary\b'),
    ),
}

# Common measurement vocabulary; only consulted when no vendor wins
GENERIC_FINGERPRINTS: Tuple[Pattern, ...] = (
    _fp(r'\b(?:roof|measurement)\s+report\b'),
    _fp(r'\btotal\s+(?:roof\s+)?area\b'),
    _fp(r'\bsquares?\b'),
    _fp(r'\bridges?\b'),
    _fp(r'\beaves?\b'),
    _fp(r'\bvalleys?\b'),
    _fp(r'\brakes?\b'),
    _fp(r'\bpitch\b'),
)


@dataclass
class FormatDetection:
    """Detection result: the winning format, its confidence and all scores."""
    format: DetectedFormat
    confidence: float
    hits: int = 0
    scores: Dict[str, int] = field(default_factory=dict)
    matched: List[str] = field(default_factory=list)

    @property
    def any_fingerprint(self) -> bool:
        return any(self.scores.values())


def _count_hits(text: str, fingerprints: Tuple[Pattern, ...]) -> Tuple[int, List[str]]:
    matched = [fp.pattern for fp in fingerprints if fp.search(text)]
    return len(matched), matched


def _confidence(hits: int, config: DetectionConfig) -> float:
    if hits <= 0:
        return 0.0
    return min(1.0, hits / float(max(1, config.saturation_hits)))


def detect_format(text: str, config: Optional[DetectionConfig] = None) -> FormatDetection:
    """
    Classify report text into a DetectedFormat.

    Args:
        text: Full extracted text (or a concatenation of runs)
        config: Detection thresholds

    Returns:
        FormatDetection with GENERIC when only generic vocabulary is present,
        UNKNOWN when nothing matches at all
    """
    config = config or DetectionConfig()
    text = text or ""

    scores: Dict[str, int] = {}
    best_format: Optional[DetectedFormat] = None
    best_hits = 0
    best_matched: List[str] = []

    for fmt, fingerprints in VENDOR_FINGERPRINTS:
        hits, matched = _count_hits(text, fingerprints)
        if hits:
            heading_hits, heading_matched = _count_hits(text, VENDOR_HEADINGS.get(fmt, ()))
            hits += heading_hits
            matched += heading_matched
        scores[fmt.value] = hits
        # Strictly greater: earlier registration wins ties
        if hits > best_hits:
            best_format, best_hits, best_matched = fmt, hits, matched

    if best_format is not None and best_hits >= config.min_fingerprint_hits:
        logger.info(f"Detected format: {best_format.value} ({best_hits} fingerprint hits)")
        return FormatDetection(
            format=best_format,
            confidence=_confidence(best_hits, config),
            hits=best_hits,
            scores=scores,
            matched=best_matched,
        )

    generic_hits, generic_matched = _count_hits(text, GENERIC_FINGERPRINTS)
    scores[DetectedFormat.GENERIC.value] = generic_hits
    if generic_hits > 0:
        logger.info(f"No vendor format detected, using generic rules ({generic_hits} generic hits)")
        return FormatDetection(
            format=DetectedFormat.GENERIC,
            confidence=min(1.0, generic_hits / float(len(GENERIC_FINGERPRINTS))),
            hits=generic_hits,
            scores=scores,
            matched=generic_matched,
        )

    logger.warning("No format fingerprints found")
    return FormatDetection(format=DetectedFormat.UNKNOWN, confidence=0.0, scores=scores)
