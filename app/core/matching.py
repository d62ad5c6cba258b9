# app/core/matching.py

"""
Core invoice reconciliation engine.

Pairs reference invoices (spreadsheet) with candidate invoices
(extracted from PDFs) using a multi-pass approach. Each pass only sees
reference invoices still unresolved and candidates not yet claimed.
"""

from datetime import datetime
from typing import Optional, Sequence
import logging

from app.models import ComparisonResult, InvoiceRecord, MatchMethod, ProcessingStats
from app.core.assembly import assemble_results, summarize
from app.core.comparator import build_match_result
from app.core.exceptions import InvalidInputError
from app.core.normalizers import (
    dates_match,
    identifiers_match,
    normalize_text,
    numbers_within_tolerance,
)

logger = logging.getLogger(__name__)


class ClaimState:
    """Bookkeeping for one reconcile() call."""

    def __init__(self, reference_count: int):
        self.claimed: set[int] = set()
        self.resolutions: list[Optional[ComparisonResult]] = [None] * reference_count

    def is_resolved(self, reference_index: int) -> bool:
        return self.resolutions[reference_index] is not None

    def is_claimed(self, candidate_index: int) -> bool:
        return candidate_index in self.claimed

    def claim(
        self,
        reference_index: int,
        candidate_index: int,
        reference: InvoiceRecord,
        candidate: InvoiceRecord,
        method: MatchMethod,
    ) -> None:
        if self.is_claimed(candidate_index):
            raise RuntimeError(f"Candidate {candidate_index} is already claimed")
        self.claimed.add(candidate_index)
        self.resolutions[reference_index] = build_match_result(reference, candidate, method)

    @property
    def matched_count(self) -> int:
        return len(self.claimed)


class ReconciliationResult:
    """Result of a reconciliation run."""

    def __init__(self):
        self.results: list[ComparisonResult] = []
        self.stats: Optional[ProcessingStats] = None
        self.duration_ms: int = 0


def reconcile(
    reference: Sequence[InvoiceRecord],
    candidates: Sequence[InvoiceRecord],
) -> list[ComparisonResult]:
    """
    Main reconciliation function.

    1. Invoice number + GST number (GST disambiguates reused numbers)
    2. Invoice number only (total amount breaks ties)
    3. Total amount + invoice date, with reduced confidence
    4. Assemble: reference order first, then unclaimed candidates
    """
    reference = _validate_records("reference", reference)
    candidates = _validate_records("candidates", candidates)

    state = ClaimState(len(reference))

    _match_by_identifier_and_tax_id(reference, candidates, state)
    _match_by_identifier(reference, candidates, state)
    _match_by_amount_and_date(reference, candidates, state)

    results = assemble_results(reference, candidates, state.resolutions, state.claimed)

    logger.info(
        f"Reconciled {len(reference)} reference and {len(candidates)} candidate invoices: "
        f"{state.matched_count} matched, {len(results) - state.matched_count} unmatched rows"
    )
    return results


def reconcile_batch(
    reference: Sequence[InvoiceRecord],
    candidates: Sequence[InvoiceRecord],
) -> ReconciliationResult:
    """Run reconcile() and attach batch statistics and timing."""
    start_time = datetime.now()
    result = ReconciliationResult()

    result.results = reconcile(reference, candidates)
    result.stats = summarize(result.results, len(reference), len(candidates))
    result.duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)

    return result


# ============================================
# Passes
# ============================================

def _match_by_identifier_and_tax_id(
    reference: list[InvoiceRecord],
    candidates: list[InvoiceRecord],
    state: ClaimState,
) -> None:
    """Pass 1: invoice number agrees and GST number is identical."""
    for ref_idx, invoice in enumerate(reference):
        if state.is_resolved(ref_idx):
            continue

        tax_id = normalize_text(invoice.gst_number)
        if not tax_id:
            continue

        for cand_idx in _unclaimed_identifier_matches(invoice, candidates, state):
            if normalize_text(candidates[cand_idx].gst_number) == tax_id:
                state.claim(ref_idx, cand_idx, invoice, candidates[cand_idx], "tax_id")
                break


def _match_by_identifier(
    reference: list[InvoiceRecord],
    candidates: list[InvoiceRecord],
    state: ClaimState,
) -> None:
    """Pass 2: invoice number agrees; prefer the candidate whose total agrees too."""
    for ref_idx, invoice in enumerate(reference):
        if state.is_resolved(ref_idx):
            continue

        matches = _unclaimed_identifier_matches(invoice, candidates, state)
        if not matches:
            continue

        best = next(
            (i for i in matches if numbers_within_tolerance(invoice.total_amount, candidates[i].total_amount)),
            matches[0],
        )
        state.claim(ref_idx, best, invoice, candidates[best], "identifier")


def _match_by_amount_and_date(
    reference: list[InvoiceRecord],
    candidates: list[InvoiceRecord],
    state: ClaimState,
) -> None:
    """Pass 3: no usable invoice number; total amount and invoice date agree."""
    for ref_idx, invoice in enumerate(reference):
        if state.is_resolved(ref_idx):
            continue

        for cand_idx, candidate in enumerate(candidates):
            if state.is_claimed(cand_idx):
                continue

            if (
                numbers_within_tolerance(invoice.total_amount, candidate.total_amount)
                and dates_match(invoice.invoice_date, candidate.invoice_date)
            ):
                state.claim(ref_idx, cand_idx, invoice, candidate, "heuristic")
                break


def _unclaimed_identifier_matches(
    invoice: InvoiceRecord,
    candidates: list[InvoiceRecord],
    state: ClaimState,
) -> list[int]:
    """Indices of unclaimed candidates whose invoice number matches, in input order."""
    return [
        idx
        for idx, candidate in enumerate(candidates)
        if not state.is_claimed(idx) and identifiers_match(invoice.invoice_number, candidate.invoice_number)
    ]


def _validate_records(name: str, records: Sequence[InvoiceRecord]) -> list[InvoiceRecord]:
    if records is None:
        raise InvalidInputError(f"{name} must be a list of invoices, got None")
    if not isinstance(records, (list, tuple)):
        raise InvalidInputError(f"{name} must be a list of invoices, got {type(records).__name__}")

    for i, record in enumerate(records):
        if not isinstance(record, InvoiceRecord):
            raise InvalidInputError(f"{name}[{i}] is {type(record).__name__}, expected InvoiceRecord")

    return list(records)
