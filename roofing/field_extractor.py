#!/usr/bin/env python3
"""
Field Extractor for Roof Measurement Reports

Applies the ruleset registered for a DetectedFormat to a TextLayout and builds
a RoofMeasurements. Each field is extracted independently; a field no rule
can fill defaults to 0 and is reported as not found.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import ParsingConfig
from .errors import FieldNotFoundError
from .models import MEASUREMENT_FIELDS, DetectedFormat, RawTextRun, RoofMeasurements
from .rulesets import ExtractionRule, SearchScope, ruleset_for
from .text_layout import TextLayout

logger = logging.getLogger(__name__)

_HAS_DIGIT_RE = re.compile(r'\d')

# How far (in line heights) below a label a value may sit and still count
_BELOW_LINES = 2.5
# Vertical centre offset (in line heights) still treated as the same line
_SAME_LINE = 0.6


@dataclass
class FieldExtraction:
    """Measurements plus per-field bookkeeping for the normalizer and scorer."""
    measurements: RoofMeasurements
    found: Dict[str, bool] = field(default_factory=dict)
    matched_rules: Dict[str, str] = field(default_factory=dict)
    # Values a rule matched but the plausibility checks threw out
    rejected: List[str] = field(default_factory=list)

    @property
    def found_fields(self) -> List[str]:
        return [name for name, hit in self.found.items() if hit]

    @property
    def missing_fields(self) -> List[str]:
        return [name for name, hit in self.found.items() if not hit]


def _nearest_value_run(label: RawTextRun, runs: List[RawTextRun]) -> Optional[RawTextRun]:
    """
    Find the run holding a label's value: same line to the right first,
    then directly below within a couple of line heights.
    """
    line_height = max(label.bbox.height, 1.0)
    best: Optional[Tuple[int, float, RawTextRun]] = None

    for run in runs:
        if run is label or run.page != label.page:
            continue
        if not _HAS_DIGIT_RE.search(run.text):
            continue

        box = run.bbox
        if abs(box.center_y - label.bbox.center_y) <= line_height * _SAME_LINE and box.x0 >= label.bbox.x1 - 1.0:
            candidate = (0, box.x0 - label.bbox.x1, run)
        elif box.y0 >= label.bbox.y1 - 1.0 and box.y0 - label.bbox.y1 <= line_height * _BELOW_LINES:
            # Below: vertical gap first, then horizontal misalignment
            candidate = (1, (box.y0 - label.bbox.y1) + abs(box.x0 - label.bbox.x0) * 0.5, run)
        else:
            continue

        if best is None or candidate[:2] < best[:2]:
            best = candidate

    return best[2] if best else None


def _apply_rule(
    rule: ExtractionRule,
    layout: TextLayout,
    accept: Optional[Callable[[Any], bool]] = None,
) -> Optional[Any]:
    """
    Return the converted value for one rule, or None when it does not produce one.

    Values refused by accept are skipped and the search moves on to the next match.
    """
    def usable(value):
        return value is not None and (accept is None or accept(value))

    if rule.scope is SearchScope.DOCUMENT:
        if rule.collect:
            values = [rule.conversion(m.group(1)) for m in rule.pattern.finditer(layout.full_text)]
            values = [v for v in values if v is not None]
            return tuple(values) if values else None
        for match in rule.pattern.finditer(layout.full_text):
            value = rule.conversion(match.group(1))
            if usable(value):
                return value
        return None

    if rule.scope is SearchScope.RUN:
        for run in layout.runs:
            match = rule.pattern.search(run.text)
            if match:
                value = rule.conversion(match.group(1))
                if usable(value):
                    return value
        return None

    # NEARBY
    for run in layout.runs:
        if not rule.pattern.search(run.text):
            continue
        neighbour = _nearest_value_run(run, layout.runs)
        if neighbour is None:
            continue
        value = rule.conversion(neighbour.text)
        if usable(value):
            logger.debug(f"{rule.name}: '{run.text}' -> '{neighbour.text}'")
            return value
    return None


def _implausibility(field_name: str, value: Any, config: ParsingConfig) -> Optional[str]:
    """Why a value cannot be right for a field, or None when it is usable."""
    if field_name == "total_squares" and value >= config.max_plausible_squares:
        # A "squares" value this large is square footage read under the wrong label
        return f"Total squares value {value:g} rejected as implausible (looks like square feet)"
    if isinstance(value, (int, float)) and value < 0:
        return f"{field_name.replace('_', ' ').capitalize()} value {value:g} rejected as implausible (negative)"
    return None


def extract_field(
    field_name: str,
    rules: Tuple[ExtractionRule, ...],
    layout: TextLayout,
    config: ParsingConfig,
    rejected: Optional[List[str]] = None,
) -> Tuple[Any, str]:
    """
    Try every rule for one field in priority order.

    Args:
        rejected: When given, receives a note for every matched value thrown out
            as implausible

    Returns:
        (value, rule name) of the first rule that produced a plausible value

    Raises:
        FieldNotFoundError: no rule produced a value
    """
    def accept(value):
        reason = _implausibility(field_name, value, config)
        if reason is None:
            return True
        logger.debug(reason)
        if rejected is not None and reason not in rejected:
            rejected.append(reason)
        return False

    for rule in rules:
        if rule.field != field_name:
            continue
        value = _apply_rule(rule, layout, accept)
        if value is None:
            continue
        return value, rule.name
    raise FieldNotFoundError(field_name)


def extract_fields(
    layout: TextLayout,
    detected_format: DetectedFormat,
    config: Optional[ParsingConfig] = None,
) -> FieldExtraction:
    """
    Extract all measurement fields using the ruleset for a format.

    Args:
        layout: Text runs and joined text of the document
        detected_format: Format chosen by the detector
        config: Parsing thresholds

    Returns:
        FieldExtraction; fields with no match keep their zero default
    """
    config = config or ParsingConfig()
    rules = ruleset_for(detected_format)

    values: Dict[str, Any] = {}
    found: Dict[str, bool] = {}
    matched_rules: Dict[str, str] = {}
    rejected: List[str] = []

    for field_name in MEASUREMENT_FIELDS:
        try:
            value, rule_name = extract_field(field_name, rules, layout, config, rejected)
        except FieldNotFoundError as e:
            logger.debug(str(e))
            found[field_name] = False
            continue
        values[field_name] = value
        found[field_name] = True
        matched_rules[field_name] = rule_name
        logger.debug(f"{field_name} = {value!r} via {rule_name}")

    logger.info(
        f"Extracted {sum(found.values())}/{len(MEASUREMENT_FIELDS)} fields "
        f"with {detected_format.value} rules"
    )
    return FieldExtraction(
        measurements=RoofMeasurements(**values),
        found=found,
        matched_rules=matched_rules,
        rejected=rejected,
    )
