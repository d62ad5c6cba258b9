# app/core/comparator.py

"""
Field-level comparison of a resolved reference/candidate pair.
"""

from typing import Callable, Optional

from app.models import ComparisonResult, InvoiceRecord, MatchField, MatchMethod
from app.core.normalizers import (
    dates_match,
    identifiers_match,
    names_match,
    normalize_identifier,
    normalize_text,
    numbers_within_tolerance,
)
from app.config import get_settings

settings = get_settings()

MATCH_CONFIDENCE: dict[str, float] = {
    "tax_id": 1.0,
    "identifier": 1.0,
    "heuristic": settings.heuristic_match_confidence,
}

# (field_name, label)
TAX_COMPONENTS: list[tuple[str, str]] = [
    ("cgst_amount", "CGST"),
    ("sgst_amount", "SGST"),
    ("igst_amount", "IGST"),
]


def _tax_ids_match(a: str, b: str) -> bool:
    return normalize_text(a) == normalize_text(b)


def _invoice_numbers_match(a: str, b: str) -> bool:
    # Two blank numbers agree here, though the matcher never pairs on them
    return normalize_identifier(a) == normalize_identifier(b) or identifiers_match(a, b)


def _text_field(
    field_name: str,
    label: str,
    reference: InvoiceRecord,
    candidate: InvoiceRecord,
    matcher: Callable[[str, str], bool],
) -> MatchField:
    ref_value = getattr(reference, field_name)
    cand_value = getattr(candidate, field_name)
    return MatchField(
        field_name=field_name,
        label=label,
        reference_value=ref_value,
        candidate_value=cand_value,
        is_match=matcher(ref_value, cand_value),
    )


def _amount_field(
    field_name: str,
    label: str,
    reference: InvoiceRecord,
    candidate: InvoiceRecord,
) -> MatchField:
    ref_value = getattr(reference, field_name) or 0.0
    cand_value = getattr(candidate, field_name) or 0.0
    return MatchField(
        field_name=field_name,
        label=label,
        reference_value=ref_value,
        candidate_value=cand_value,
        is_match=numbers_within_tolerance(ref_value, cand_value),
    )


def compare_fields(reference: InvoiceRecord, candidate: InvoiceRecord) -> list[MatchField]:
    """
    Compare every field of a pair, in report order.

    Vendor name, GST number, invoice number, invoice date, taxable amount,
    each tax component, total amount.
    """
    fields = [
        _text_field("vendor_name", "Vendor Name", reference, candidate, names_match),
        _text_field("gst_number", "GST Number", reference, candidate, _tax_ids_match),
        _text_field("invoice_number", "Invoice Number", reference, candidate, _invoice_numbers_match),
        _text_field("invoice_date", "Invoice Date", reference, candidate, dates_match),
        _amount_field("taxable_amount", "Taxable (Base) Amount", reference, candidate),
    ]
    for field_name, label in TAX_COMPONENTS:
        fields.append(_amount_field(field_name, label, reference, candidate))
    fields.append(_amount_field("total_amount", "Invoice Amount", reference, candidate))
    return fields


def build_match_result(
    reference: InvoiceRecord,
    candidate: InvoiceRecord,
    method: MatchMethod,
    confidence: Optional[float] = None,
) -> ComparisonResult:
    """Build the output row for a matched pair."""
    fields = compare_fields(reference, candidate)
    has_mismatch = any(not f.is_match for f in fields)

    return ComparisonResult(
        invoice_number=reference.invoice_number,
        status="MATCHED_WITH_DISCREPANCY" if has_mismatch else "MATCHED_EXACT",
        fields=fields,
        confidence=confidence if confidence is not None else MATCH_CONFIDENCE[method],
        match_method=method,
        reference=reference,
        candidate=candidate,
    )
