"""
Numeric parsing for measurement text.

Handles thousands separators, comma decimal points, trailing units and
feet-inches notation. Parse failures return None so callers can treat the
field as not found.
"""

import re
from typing import Optional

# Leading number, allowing separators: "2,950.5", "2.950,5", "29,5"
_NUMBER_RE = re.compile(r'\d[\d.,]*')

_THOUSANDS_COMMA_RE = re.compile(r'^\d{1,3}(,\d{3})+$')
_THOUSANDS_DOT_RE = re.compile(r'^\d{1,3}(\.\d{3}){2,}$')

# "166'10\"", "166' 10''", "166'", "12 ft 6 in"
_FEET_INCHES_RE = re.compile(
    r"""(\d[\d,]*(?:\.\d+)?)\s*(?:'|’|ft\.?|feet)\s*(?:(\d{1,2}(?:\.\d+)?)\s*(?:"|''|”|in\.?|inches))?""",
    re.IGNORECASE,
)


def parse_number(s: Optional[str]) -> Optional[float]:
    """
    Parse a number string (handles commas, decimals, trailing units).

    Examples:
        "2,950.5 sq ft" -> 2950.5
        "29,5 SQ"       -> 29.5
        "1.234,5"       -> 1234.5
        "junk"          -> None
    """
    if s is None:
        return None
    match = _NUMBER_RE.search(str(s))
    if not match:
        return None
    token = match.group(0).rstrip('.,')
    if not token:
        return None

    has_comma = ',' in token
    has_dot = '.' in token
    if has_comma and has_dot:
        # Whichever separator comes last is the decimal point
        if token.rfind(',') > token.rfind('.'):
            token = token.replace('.', '').replace(',', '.')
        else:
            token = token.replace(',', '')
    elif has_comma:
        if _THOUSANDS_COMMA_RE.match(token):
            token = token.replace(',', '')
        elif token.count(',') == 1:
            token = token.replace(',', '.')
        else:
            return None
    elif has_dot and token.count('.') > 1:
        if _THOUSANDS_DOT_RE.match(token):
            token = token.replace('.', '')
        else:
            return None

    try:
        return float(token)
    except ValueError:
        return None


def parse_feet_inches(s: Optional[str]) -> Optional[float]:
    """
    Parse a length in feet, with optional inches, into decimal feet.

    Examples:
        "166'10\""    -> 166.8333
        "12 ft 6 in"  -> 12.5
        "80'"         -> 80.0
        "80 LF"       -> 80.0 (plain number fallback)
    """
    if s is None:
        return None
    match = _FEET_INCHES_RE.search(str(s))
    if match:
        feet = parse_number(match.group(1))
        if feet is None:
            return None
        inches = float(match.group(2)) if match.group(2) else 0.0
        if inches >= 12:
            return None
        return feet + inches / 12.0
    return parse_number(s)


def parse_int(s: Optional[str]) -> Optional[int]:
    value = parse_number(s)
    if value is None or value != int(value):
        return None
    return int(value)
