#!/usr/bin/env python3
"""
Measurement Extraction Pipeline

PDF bytes -> text layout -> format detection -> field extraction ->
normalization -> confidence -> MeasurementExtractionResult.

Each call is independent. The only exception that escapes is
UnreadableDocumentError; everything else degrades into warnings and a lower
confidence.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .confidence import score_extraction
from .config import ParsingConfig
from .field_extractor import extract_fields
from .format_detector import detect_format
from .models import DetectedFormat, MeasurementExtractionResult
from .normalizer import normalize
from .text_layout import TextLayout, extract_layout

logger = logging.getLogger(__name__)


def extract_from_layout(
    layout: TextLayout,
    config: Optional[ParsingConfig] = None,
) -> MeasurementExtractionResult:
    """Run detection, extraction, normalization and scoring on an extracted layout."""
    config = config or ParsingConfig()

    detection = detect_format(layout.full_text, config.detection)
    fields = extract_fields(layout, detection.format, config)

    detected_format = detection.format
    if detected_format == DetectedFormat.GENERIC and not any(fields.found.values()):
        # Measurement vocabulary but nothing usable: treat as unrecognized
        logger.info("Generic rules found no measurements, reporting format as Unknown")
        detected_format = DetectedFormat.UNKNOWN

    normalized = normalize(fields.measurements, fields.found, config)
    report = score_extraction(normalized, detected_format, detection.confidence, config.weights)

    return MeasurementExtractionResult(
        measurements=normalized.measurements,
        confidence=round(report.score, 1),
        detected_format=detected_format,
        warnings=tuple(report.warnings + fields.rejected),
        field_sources={name: src.value for name, src in normalized.sources.items()},
        detector_confidence=detection.confidence,
        page_count=layout.page_count,
    )


def extract_measurements(
    data: bytes,
    config: Optional[ParsingConfig] = None,
) -> MeasurementExtractionResult:
    """
    Extract roof measurements from PDF bytes.

    Args:
        data: Raw PDF bytes
        config: Parsing thresholds and confidence weights

    Returns:
        MeasurementExtractionResult (possibly with confidence 0)

    Raises:
        UnreadableDocumentError: corrupt, encrypted or image-only PDF
    """
    layout = extract_layout(data)
    result = extract_from_layout(layout, config)
    logger.info(
        f"Extraction complete: {result.detected_format.value}, "
        f"confidence {result.confidence:.1f}, {len(result.warnings)} warnings"
    )
    return result


def extract_measurements_from_file(
    path: Union[str, Path],
    config: Optional[ParsingConfig] = None,
) -> MeasurementExtractionResult:
    """Read a PDF from disk, then run the pipeline on its bytes."""
    path = Path(path)
    logger.info(f"Reading {path.name}")
    data = path.read_bytes()
    return extract_measurements(data, config)
