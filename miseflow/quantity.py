import re
from fractions import Fraction
from typing import Optional

UNICODE_FRACTIONS = {
    "¼": "1/4", "½": "1/2", "¾": "3/4",
    "⅐": "1/7", "⅑": "1/9", "⅒": "1/10",
    "⅓": "1/3", "⅔": "2/3",
    "⅕": "1/5", "⅖": "2/5", "⅗": "3/5", "⅘": "4/5",
    "⅙": "1/6", "⅚": "5/6",
    "⅛": "1/8", "⅜": "3/8", "⅝": "5/8", "⅞": "7/8",
}
_UNICODE_FRACTION_RE = re.compile(r"(?:(\d)\s*)?([%s])" % "".join(UNICODE_FRACTIONS))

INTEGER_RE = re.compile(r"^\d+$")
DECIMAL_RE = re.compile(r"^\d*\.\d+$")
FRACTION_RE = re.compile(r"^(\d+)/(\d+)$")
MIXED_RE = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")


def normalize_unicode_fractions(text: str) -> str:
    """Rewrite vulgar fraction glyphs as ASCII ("1½" -> "1 1/2")."""
    def _swap(m):
        whole, glyph = m.group(1), UNICODE_FRACTIONS[m.group(2)]
        return f"{whole} {glyph}" if whole else glyph
    return _UNICODE_FRACTION_RE.sub(_swap, text)


def _ratio(numerator: str, denominator: str) -> Optional[float]:
    if int(denominator) == 0:
        return None
    return float(Fraction(int(numerator), int(denominator)))


def parse_quantity(value: Optional[str]) -> Optional[float]:
    """Parse an integer, decimal, simple fraction or mixed number.

    Returns None for anything else, including empty input.
    """
    if not value:
        return None
    s = normalize_unicode_fractions(value).strip()
    if INTEGER_RE.match(s) or DECIMAL_RE.match(s):
        return float(s)
    m = FRACTION_RE.match(s)
    if m:
        return _ratio(m.group(1), m.group(2))
    m = MIXED_RE.match(s)
    if m:
        part = _ratio(m.group(2), m.group(3))
        if part is None:
            return None
        return int(m.group(1)) + part
    return None


def format_number(value: Optional[float]) -> str:
    """Render with at most two decimals and no trailing zeros."""
    if value is None:
        return ""
    return f"{value:.2f}".rstrip("0").rstrip(".")
