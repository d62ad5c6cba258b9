# app/core/assembly.py

"""
Result assembly: deterministic ordering and completeness of the output.
"""

from typing import Optional

from app.models import ComparisonResult, InvoiceRecord, MatchField, ProcessingStats


def assemble_results(
    reference: list[InvoiceRecord],
    candidates: list[InvoiceRecord],
    resolutions: list[Optional[ComparisonResult]],
    claimed: set[int],
) -> list[ComparisonResult]:
    """
    Merge matched pairs and leftovers into the final output.

    Reference-derived rows come first in reference order, then every
    unclaimed candidate in candidate order.
    """
    results: list[ComparisonResult] = []

    for invoice, resolved in zip(reference, resolutions):
        results.append(resolved if resolved is not None else _only_in_reference(invoice))

    for idx, candidate in enumerate(candidates):
        if idx not in claimed:
            results.append(_only_in_candidate(candidate))

    return results


def summarize(
    results: list[ComparisonResult],
    reference_count: int,
    candidate_count: int,
) -> ProcessingStats:
    """Count rows per outcome."""
    return ProcessingStats(
        total_reference=reference_count,
        total_candidate=candidate_count,
        matched=len([r for r in results if r.status == "MATCHED_EXACT"]),
        mismatches=len([r for r in results if r.status == "MATCHED_WITH_DISCREPANCY"]),
        missing=len([r for r in results if r.status in ("ONLY_IN_REFERENCE", "ONLY_IN_CANDIDATE")]),
    )


def _only_in_reference(invoice: InvoiceRecord) -> ComparisonResult:
    return ComparisonResult(
        invoice_number=invoice.invoice_number,
        status="ONLY_IN_REFERENCE",
        reference=invoice,
        fields=[
            MatchField(
                field_name="total_amount",
                label="Expected Amount",
                reference_value=invoice.total_amount,
                is_match=False,
            ),
            MatchField(
                field_name="invoice_date",
                label="Expected Date",
                reference_value=invoice.invoice_date,
                is_match=False,
            ),
        ],
    )


def _only_in_candidate(invoice: InvoiceRecord) -> ComparisonResult:
    return ComparisonResult(
        invoice_number=invoice.invoice_number,
        status="ONLY_IN_CANDIDATE",
        candidate=invoice,
        fields=[
            MatchField(
                field_name="total_amount",
                label="Invoice Amount",
                candidate_value=invoice.total_amount,
                is_match=False,
            ),
            MatchField(
                field_name="invoice_date",
                label="Invoice Date",
                candidate_value=invoice.invoice_date,
                is_match=False,
            ),
        ],
    )
