"""
Extraction Rulesets per Report Format

Each DetectedFormat owns an ordered tuple of ExtractionRule. Rules for the
same field are tried in order and the first one that yields a value wins.
Vendor rulesets end with the generic rules as a lower-priority fallback.

The registry is checked at import time: every DetectedFormat member must map
to a ruleset and every vendor format must own fingerprints.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Pattern, Tuple

from .format_detector import VENDOR_FINGERPRINTS
from .models import DetectedFormat
from .numbers import parse_feet_inches, parse_int, parse_number


class SearchScope(Enum):
    """Where a rule looks for its value."""
    DOCUMENT = "document"   # regex over the joined full text
    RUN = "run"             # regex over each text run on its own
    NEARBY = "nearby"       # label regex on a run, value from the closest run right of or below it


Conversion = Callable[[str], Optional[Any]]


@dataclass(frozen=True)
class ExtractionRule:
    """
    A single way of finding one measurement field.

    Group 1 of the pattern (DOCUMENT/RUN scope) or the neighbouring run's
    text (NEARBY scope) is handed to the conversion, which returns the value
    in canonical units or None when it cannot be parsed.
    """
    field: str
    pattern: Pattern
    conversion: Conversion
    scope: SearchScope = SearchScope.DOCUMENT
    name: str = ""
    collect: bool = False   # gather every match into a tuple (facet areas)


# =============================================================================
# UNIT CONVERSIONS
# =============================================================================

def to_feet(text: str) -> Optional[float]:
    return parse_feet_inches(text)


def to_square_feet(text: str) -> Optional[float]:
    return parse_number(text)


def to_squares(text: str) -> Optional[float]:
    return parse_number(text)


def to_count(text: str) -> Optional[int]:
    return parse_int(text)


_PITCH_VALUE_RE = re.compile(r'(\d+(?:\.\d+)?)\s*[/:]\s*12\b')


def to_pitch(text: str) -> Optional[str]:
    """Normalize "6:12", "6 / 12" and "6/12" to "6/12"."""
    match = _PITCH_VALUE_RE.search(text or "")
    if not match:
        return None
    rise = float(match.group(1))
    if rise > 24:
        return None
    rise_text = str(int(rise)) if rise == int(rise) else str(rise)
    return f"{rise_text}/12"


# =============================================================================
# PATTERN FRAGMENTS
# =============================================================================

_NUM = r"\d[\d,]*(?:[.,]\d+)?"
_AREA_UNIT = r"(?:sq\.?\s*ft\.?|sqft|SF\b|ft²|ft2\b|square\s+feet)"
_SQ_UNIT = r"(?:SQ(?!\s*\.?\s*ft|uare)\b|squares?\b)"
# Length with its unit, captured whole so feet-inches survive: 166'10", 80 ft, 12 ft 6 in, 45 LF
_LEN = (
    r"(" + _NUM + r"\s*(?:['’]\s*(?:\d{1,2}(?:\.\d+)?\s*(?:\"|''|”))?"
    r"|(?:ft|feet|LF)\b\.?(?:\s*\d{1,2}\s*in\b\.?)?))"
)
_SEP = r"[\s:=]*"


def _re(pattern: str, flags: int = re.IGNORECASE) -> Pattern:
    return re.compile(pattern, flags)


def _length_rules(field: str, label: str, prefix: str) -> Tuple[ExtractionRule, ...]:
    """Labelled length in running text, then the label-proximity fallback."""
    return (
        ExtractionRule(field, _re(label + _SEP + _LEN), to_feet,
                       SearchScope.DOCUMENT, f"{prefix}:{field}:labelled"),
        ExtractionRule(field, _re(r"^\s*" + label + r"\s*[:=]?\s*$"), to_feet,
                       SearchScope.NEARBY, f"{prefix}:{field}:nearby"),
    )


# =============================================================================
# GENERIC RULESET (best-effort label search for common measurement terms)
# =============================================================================

GENERIC_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule("total_roof_area",
                   _re(r"Total\s*(?:Roof\s*)?Area" + _SEP + r"(" + _NUM + r")\s*" + _AREA_UNIT),
                   to_square_feet, name="generic:area:labelled"),
    ExtractionRule("total_roof_area",
                   _re(r"(" + _NUM + r")\s*" + _AREA_UNIT + r"(?!\s*per)"),
                   to_square_feet, name="generic:area:unit"),
    ExtractionRule("total_roof_area", _re(r"^\s*Total\s*(?:Roof\s*)?Area\s*[:=]?\s*$"),
                   to_square_feet, SearchScope.NEARBY, "generic:area:nearby"),
    ExtractionRule("total_squares",
                   _re(r"Total\s*Squares?" + _SEP + r"(" + _NUM + r")(?![\d.,])(?!\s*" + _AREA_UNIT + r")"),
                   to_squares, name="generic:squares:labelled"),
    ExtractionRule("total_squares",
                   _re(r"(" + _NUM + r")\s*" + _SQ_UNIT),
                   to_squares, name="generic:squares:unit"),
    ExtractionRule("total_squares", _re(r"^\s*Total\s*Squares?\s*[:=]?\s*$"),
                   to_squares, SearchScope.NEARBY, "generic:squares:nearby"),
    *_length_rules("ridge_length", r"(?<![/\w])Ridges?", "generic"),
    *_length_rules("hip_length", r"(?<![/\w])Hips?", "generic"),
    *_length_rules("valley_length", r"(?<![/\w])Valleys?", "generic"),
    *_length_rules("eave_length", r"(?<![/\w])Eaves?(?:/Starter)?", "generic"),
    *_length_rules("rake_length", r"(?<![/\w])Rakes?", "generic"),
    ExtractionRule("facet_count", _re(r"(?:Total\s+)?(?:Roof\s+)?Facets" + _SEP + r"(\d+)\b"),
                   to_count, name="generic:facets:labelled"),
    ExtractionRule("facet_count", _re(r"(\d+)\s+(?:roof\s+)?facets\b"),
                   to_count, name="generic:facets:trailing"),
    ExtractionRule("pitch", _re(r"(?:Predominant|Dominant|Primary)?\s*Pitch" + _SEP + r"(\d+(?:\.\d+)?\s*[/:]\s*12)"),
                   to_pitch, name="generic:pitch:labelled"),
    ExtractionRule("pitch", _re(r"(\d+(?:\.\d+)?\s*/\s*12)\b"),
                   to_pitch, name="generic:pitch:bare"),
    ExtractionRule("num_stories", _re(r"(?:Number\s+of\s+)?Stories" + _SEP + r"[<>=]*\s*(\d+)"),
                   to_count, name="generic:stories"),
    ExtractionRule("facet_areas",
                   _re(r"Facet\s*#?\s*\d+" + _SEP + r"(" + _NUM + r")\s*" + _AREA_UNIT),
                   to_square_feet, name="generic:facet_areas", collect=True),
)


# =============================================================================
# VENDOR RULESETS
# =============================================================================

# iRoof: label on one line, value on the next ("Total Area\n5855.54 sqft", "Ridge\n166'10\"")
IROOF_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule("total_roof_area",
                   _re(r"Total\s*Area[:\s]*(" + _NUM + r")\s*(?:sqft|sq\.?\s*ft)"),
                   to_square_feet, name="iroof:area"),
    ExtractionRule("total_squares",
                   _re(r"Total\s*Squares?[:\s]*(" + _NUM + r")\s*" + _SQ_UNIT),
                   to_squares, name="iroof:squares"),
    ExtractionRule("total_squares",
                   _re(r"(" + _NUM + r")\s*SQ\b(?!\s*\.?\s*[fF][tT])", 0),
                   to_squares, name="iroof:squares:unit"),
    *_length_rules("ridge_length", r"\bRidge", "iroof"),
    *_length_rules("hip_length", r"\bHip", "iroof"),
    *_length_rules("valley_length", r"\bValley", "iroof"),
    *_length_rules("eave_length", r"\bEave", "iroof"),
    *_length_rules("rake_length", r"\bRake", "iroof"),
    ExtractionRule("facet_count", _re(r"(?:Total\s+|Number\s+of\s+)?Facets[:\s]*(\d+)\b"),
                   to_count, name="iroof:facets"),
    ExtractionRule("pitch", _re(r"Pitch[:\s]*(\d+(?:\.\d+)?\s*[/:]\s*12)"),
                   to_pitch, name="iroof:pitch"),
    ExtractionRule("facet_areas",
                   _re(r"Area\s*\d+\s*(?:Pitch\s*)?\d+/12[:\s]*(" + _NUM + r")\s*sqft"),
                   to_square_feet, name="iroof:facet_areas", collect=True),
) + GENERIC_RULES

# EagleView: "Label = value unit" pairs in the report summary
EAGLEVIEW_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule("total_roof_area",
                   _re(r"Total\s+(?:Roof\s+)?Area\s*[=:]\s*(" + _NUM + r")\s*(?:sq\.?\s*ft|SF\b)"),
                   to_square_feet, name="eagleview:area"),
    ExtractionRule("total_roof_area",
                   _re(r"Total\s+Area\s*\(All\s+Pitches\)\s*[=:]\s*(" + _NUM + r")"),
                   to_square_feet, name="eagleview:area:all_pitches"),
    ExtractionRule("total_squares",
                   _re(r"Total\s+(?:Roof\s+)?Squares?\s*[=:]\s*(" + _NUM + r")"),
                   to_squares, name="eagleview:squares"),
    ExtractionRule("ridge_length", _re(r"(?<![/\w])Ridges?\s*[=:]\s*" + _LEN),
                   to_feet, name="eagleview:ridge"),
    ExtractionRule("hip_length", _re(r"(?<![/\w])Hips?\s*[=:]\s*" + _LEN),
                   to_feet, name="eagleview:hip"),
    ExtractionRule("valley_length", _re(r"(?<![/\w])Valleys?\s*[=:]\s*" + _LEN),
                   to_feet, name="eagleview:valley"),
    ExtractionRule("rake_length", _re(r"(?<![/\w])Rakes?\**\s*[=:]\s*" + _LEN),
                   to_feet, name="eagleview:rake"),
    ExtractionRule("eave_length", _re(r"(?<![/\w])Eaves?(?:/Starter)?\**\s*[=:]\s*" + _LEN),
                   to_feet, name="eagleview:eave"),
    ExtractionRule("facet_count", _re(r"Total\s+(?:Roof\s+)?Facets\s*[=:]\s*(\d+)"),
                   to_count, name="eagleview:facets"),
    ExtractionRule("pitch", _re(r"Predominant\s+Pitch\s*[=:]\s*(\d+(?:\.\d+)?\s*/\s*12)"),
                   to_pitch, name="eagleview:pitch"),
    ExtractionRule("num_stories", _re(r"Number\s+of\s+Stories\s*[=:<>]*\s*(\d+)"),
                   to_count, name="eagleview:stories"),
) + GENERIC_RULES

# Hover: "Label value" with feet marks and ft² areas
HOVER_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule("total_roof_area",
                   _re(r"(?:Total\s+)?(?:Roof\s+)?Area[:\s]*(" + _NUM + r")\s*(?:ft²|ft2\b|sq\.?\s*ft|sqft|SF\b)"),
                   to_square_feet, name="hover:area"),
    ExtractionRule("total_squares",
                   _re(r"\bSquares?[:\s]+(" + _NUM + r")(?![\d.,])(?!\s*(?:" + _AREA_UNIT + r"|'))"),
                   to_squares, name="hover:squares"),
    *_length_rules("ridge_length", r"(?<![/\w])Ridges?", "hover"),
    *_length_rules("hip_length", r"(?<![/\w])Hips?", "hover"),
    *_length_rules("valley_length", r"(?<![/\w])Valleys?", "hover"),
    *_length_rules("eave_length", r"(?<![/\w])Eaves?", "hover"),
    *_length_rules("rake_length", r"(?<![/\w])Rakes?", "hover"),
    ExtractionRule("facet_count", _re(r"\bFacets[:\s]*(\d+)\b"), to_count, name="hover:facets"),
    ExtractionRule("pitch", _re(r"Pitch[:\s]*(\d+(?:\.\d+)?\s*/\s*12)"), to_pitch, name="hover:pitch"),
    ExtractionRule("facet_areas",
                   _re(r"\bRF-?\d+\s+(" + _NUM + r")\s*(?:ft²|ft2\b|sq\.?\s*ft|sqft)"),
                   to_square_feet, name="hover:facet_areas", collect=True),
) + GENERIC_RULES

# RoofSnap reports share iRoof's label-over-value layout
ROOFSNAP_RULES: Tuple[ExtractionRule, ...] = IROOF_RULES


RULESETS: Dict[DetectedFormat, Tuple[ExtractionRule, ...]] = {
    DetectedFormat.IROOF: IROOF_RULES,
    DetectedFormat.EAGLEVIEW: EAGLEVIEW_RULES,
    DetectedFormat.HOVER: HOVER_RULES,
    DetectedFormat.ROOFSNAP: ROOFSNAP_RULES,
    DetectedFormat.GENERIC: GENERIC_RULES,
    DetectedFormat.UNKNOWN: GENERIC_RULES,
}


def ruleset_for(detected_format: DetectedFormat) -> Tuple[ExtractionRule, ...]:
    return RULESETS[detected_format]


def _check_registry() -> None:
    missing = [fmt.value for fmt in DetectedFormat if fmt not in RULESETS]
    if missing:
        raise RuntimeError(f"No extraction ruleset registered for: {missing}")
    fingerprinted = {fmt for fmt, _ in VENDOR_FINGERPRINTS}
    unfingerprinted = [fmt.value for fmt in DetectedFormat if fmt.is_vendor and fmt not in fingerprinted]
    if unfingerprinted:
        raise RuntimeError(f"No fingerprints registered for: {unfingerprinted}")


_check_registry()
