"""Year extraction from French article text.

Resolution order, first match wins:
  1. explicit BCE year ("52 av. J.-C.")
  2. earliest 3-4 digit year in [100, 2025]
  3. century notation ("XVIe siècle", "XVIe siècle av. J.-C.", "16e siècle")
"""

import re
from typing import Optional

from histoglobe.processing.taxonomy import BCE_SUFFIX, ROMAN_NUMERALS

MIN_YEAR = 100
MAX_YEAR = 2025

_BCE_YEAR_RE = re.compile(r"(\d{1,4})\s*av(?:ant)?\.?\s*J\.?-?C\.?", re.IGNORECASE | re.ASCII)
_YEAR_RE = re.compile(r"\b(\d{3,4})\b", re.ASCII)

_ROMAN = r"\b(X{0,3}(?:IX|IV|V?I{0,3}))e\s*siècle"
_BCE_ROMAN_CENTURY_RE = re.compile(_ROMAN + r"\s*av", re.IGNORECASE)
_ROMAN_CENTURY_RE = re.compile(_ROMAN, re.IGNORECASE)
_ARABIC_CENTURY_RE = re.compile(r"\b(\d{1,2})(?:e|ème)\s*siècle", re.IGNORECASE)

# Strips the "(1942) " / "(XVIe av. J.-C.) " prefix added to display titles.
_YEAR_PREFIX_RE = re.compile(r"^\(\d{1,4}(?:\s*av\.?\s*J\.?-?C\.?)?\)\s*")
_CENTURY_PREFIX_RE = re.compile(r"^\([IVXLCDM]+e(?:\s*av\.?\s*J\.?-?C\.?)?\)\s*")


def century_to_roman(n: int) -> Optional[str]:
    for numeral, value in ROMAN_NUMERALS.items():
        if value == n:
            return numeral
    return None


def _roman_value(numeral: str) -> Optional[int]:
    return ROMAN_NUMERALS.get(numeral.upper())


def extract_century_year(text: str) -> Optional[int]:
    """Midpoint year of the first century mentioned, negative for BCE."""
    m = _BCE_ROMAN_CENTURY_RE.search(text)
    if m:
        n = _roman_value(m.group(1))
        if n:
            return -(n * 100 - 50)

    m = _ROMAN_CENTURY_RE.search(text)
    if m:
        n = _roman_value(m.group(1))
        if n:
            return n * 100 - 50

    m = _ARABIC_CENTURY_RE.search(text)
    if m:
        n = int(m.group(1))
        if 1 <= n <= 21:
            return n * 100 - 50

    return None


def extract_year(text: str) -> Optional[int]:
    """Best-guess year of the event described by text, or None."""
    if not text:
        return None

    m = _BCE_YEAR_RE.search(text)
    if m:
        return -int(m.group(1))

    # Earliest date wins: the event's own date usually precedes later references.
    years = [int(y) for y in _YEAR_RE.findall(text)]
    years = [y for y in years if MIN_YEAR <= y <= MAX_YEAR]
    if years:
        return min(years)

    return extract_century_year(text)


def format_century_label(text: str) -> Optional[str]:
    """Short century label ("XVIe", "IIIe av. J.-C.") for display titles."""
    m = _BCE_ROMAN_CENTURY_RE.search(text)
    if m and _roman_value(m.group(1)):
        return f"{m.group(1)}e {BCE_SUFFIX}"

    m = _ROMAN_CENTURY_RE.search(text)
    if m and _roman_value(m.group(1)):
        return f"{m.group(1)}e"

    m = _ARABIC_CENTURY_RE.search(text)
    if m:
        n = int(m.group(1))
        roman = century_to_roman(n)
        return f"{roman}e" if roman else f"{n}e"

    return None


def strip_date_prefix(title: str) -> str:
    """Remove a leading "(1789) " or "(XVIe) " display prefix."""
    title = _YEAR_PREFIX_RE.sub("", title)
    title = _CENTURY_PREFIX_RE.sub("", title)
    return title.strip()
