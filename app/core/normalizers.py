# app/core/normalizers.py

"""
Normalization utilities for invoice fields.

Reference spreadsheets and PDF extraction disagree on formatting
(prefixes, leading zeros, date layouts, rounding). Everything here
produces a comparison-stable form and never raises on bad input.
"""

from datetime import date, datetime
from typing import Any
import re

from app.config import get_settings

settings = get_settings()

# Maximum absolute difference for two amounts to count as equal
AMOUNT_TOLERANCE: float = settings.amount_tolerance

# Identifiers this short or shorter only match exactly
MIN_CONTAINED_IDENTIFIER_LENGTH = 3


def normalize_text(s: Any) -> str:
    """Lowercase and strip everything outside [a-z0-9]."""
    if s is None:
        return ""
    return re.sub(r'[^a-z0-9]', '', str(s).lower())


def normalize_identifier(s: Any) -> str:
    """
    Normalize an invoice number for comparison.

    All-digit identifiers lose their leading zeros so "00123" and "123"
    compare equal. Anything else is returned as cleaned text.
    """
    cleaned = normalize_text(s)
    if cleaned.isdigit():
        return str(int(cleaned))
    return cleaned


def normalize_date(d: Any) -> str:
    """
    Normalize a date to DD-MM-YYYY.

    Handles:
    - date and datetime objects
    - YYYY-MM-DD, DD-MM-YYYY, DD/MM/YYYY (single-digit day/month allowed)
    - a trailing time part ("2024-03-07T10:00:00")

    Returns "" for anything unparsable or not a real calendar date.
    """
    if d is None:
        return ""

    if isinstance(d, date):
        return d.strftime('%d-%m-%Y')

    if not isinstance(d, str):
        return ""

    clean = d.strip()
    if not clean:
        return ""
    clean = re.split(r'[T\s]', clean, maxsplit=1)[0]

    parts = re.split(r'[-/.]', clean)
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return ""

    first, middle, last = parts
    if len(last) == 4 and len(first) <= 2 and len(middle) <= 2:
        day, month, year = first, middle, last
    elif len(first) == 4 and len(middle) <= 2 and len(last) <= 2:
        year, month, day = first, middle, last
    else:
        return ""

    try:
        parsed = datetime(int(year), int(month), int(day))
    except ValueError:
        return ""

    return parsed.strftime('%d-%m-%Y')


def normalize_amount(amount: Any) -> float:
    """
    Normalize amount to float.

    Handles:
    - Integers and floats
    - Strings with currency symbols and thousands separators
    - None and empty cells
    """
    if amount is None or isinstance(amount, bool):
        return 0.0

    if isinstance(amount, (int, float)):
        return float(amount)

    if isinstance(amount, str):
        # First numeric token, so prefixes like "Rs." are skipped
        match = re.search(r'-?\d[\d,]*(?:\.\d+)?', amount)
        if not match:
            return 0.0
        return float(match.group().replace(",", ""))

    return 0.0


def numbers_within_tolerance(a: float | None, b: float | None, epsilon: float = AMOUNT_TOLERANCE) -> bool:
    """True if |a - b| <= epsilon. Missing values count as zero."""
    diff = abs((a or 0.0) - (b or 0.0))
    return round(diff, 6) <= epsilon


def identifiers_match(a: Any, b: Any) -> bool:
    """
    Identifier containment rule.

    Equal after normalize_identifier, or one cleaned identifier of at
    least three characters is contained in the other ("INV-001" vs "001").
    """
    n1 = normalize_identifier(a)
    n2 = normalize_identifier(b)
    if not n1 or not n2:
        return False
    if n1 == n2:
        return True

    c1 = normalize_text(a)
    c2 = normalize_text(b)
    if len(c1) >= MIN_CONTAINED_IDENTIFIER_LENGTH and c1 in c2:
        return True
    if len(c2) >= MIN_CONTAINED_IDENTIFIER_LENGTH and c2 in c1:
        return True
    return False


def dates_match(a: Any, b: Any) -> bool:
    """Equal after normalize_date. An unparsable date never matches."""
    n1 = normalize_date(a)
    return bool(n1) and n1 == normalize_date(b)


def names_match(a: Any, b: Any) -> bool:
    """Equal after normalize_text, or one name contains the other."""
    n1 = normalize_text(a)
    n2 = normalize_text(b)
    return n1 in n2 or n2 in n1
