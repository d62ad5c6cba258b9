# app/core/__init__.py

from app.core.matching import reconcile, reconcile_batch, ReconciliationResult, ClaimState
from app.core.assembly import summarize
from app.core.comparator import compare_fields, build_match_result
from app.core.exceptions import InvalidInputError
from app.core.normalizers import (
    AMOUNT_TOLERANCE,
    identifiers_match,
    normalize_amount,
    normalize_date,
    normalize_identifier,
    normalize_text,
    numbers_within_tolerance,
)

__all__ = [
    "reconcile",
    "reconcile_batch",
    "ReconciliationResult",
    "ClaimState",
    "summarize",
    "compare_fields",
    "build_match_result",
    "InvalidInputError",
    "AMOUNT_TOLERANCE",
    "identifiers_match",
    "normalize_amount",
    "normalize_date",
    "normalize_identifier",
    "normalize_text",
    "numbers_within_tolerance",
]
