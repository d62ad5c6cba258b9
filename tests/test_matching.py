# tests/test_matching.py

"""
Tests for the core matching engine.
"""

import random
from collections import Counter
from itertools import permutations

import pytest
from pydantic import ValidationError

from app.models import InvoiceRecord
from app.core.matching import ClaimState, reconcile, reconcile_batch
from app.core.comparator import compare_fields, build_match_result
from app.core.exceptions import InvalidInputError


# ============================================
# Test Data
# ============================================

def make_invoice(
    invoice_number: str,
    total: float = 100.00,
    invoice_date: str = "01-02-2024",
    gst_number: str = "",
    vendor_name: str = "Acme Traders",
    taxable: float = None,
    **extra,
) -> InvoiceRecord:
    return InvoiceRecord(
        invoice_number=invoice_number,
        vendor_name=vendor_name,
        gst_number=gst_number,
        invoice_date=invoice_date,
        taxable_amount=taxable if taxable is not None else total,
        total_amount=total,
        **extra,
    )


def field_verdicts(result) -> dict[str, bool]:
    return {f.field_name: f.is_match for f in result.fields}


def pair_key(result) -> tuple:
    ref = result.reference.invoice_number if result.reference else None
    cand = result.candidate.invoice_number if result.candidate else None
    return (ref, cand, result.status)


# ============================================
# End-to-end Scenarios
# ============================================

class TestScenarios:
    """Reference vs candidate scenarios with known outcomes."""

    def test_identifier_containment_with_tax_id_is_exact_match(self):
        reference = [make_invoice("INV-001", 100.00, "01-02-2024", gst_number="T1")]
        candidates = [make_invoice("001", 100.00, "2024-02-01", gst_number="T1")]

        results = reconcile(reference, candidates)

        assert len(results) == 1
        assert results[0].status == "MATCHED_EXACT"
        assert results[0].match_method == "tax_id"
        assert results[0].confidence == 1.0
        assert all(f.is_match for f in results[0].fields)

    def test_total_outside_tolerance_is_discrepancy(self):
        reference = [make_invoice("INV-001", 100.00, "01-02-2024", gst_number="T1", taxable=100.00)]
        candidates = [make_invoice("001", 102.00, "2024-02-01", gst_number="T1", taxable=100.00)]

        results = reconcile(reference, candidates)

        assert len(results) == 1
        assert results[0].status == "MATCHED_WITH_DISCREPANCY"
        mismatched = [f.field_name for f in results[0].fields if not f.is_match]
        assert mismatched == ["total_amount"]
        assert results[0].mismatched_labels == ["Invoice Amount"]

    def test_total_within_tolerance_is_still_exact(self):
        reference = [make_invoice("INV-001", 100.00, gst_number="T1", taxable=100.00)]
        candidates = [make_invoice("001", 100.90, gst_number="T1", taxable=100.00)]

        results = reconcile(reference, candidates)

        assert results[0].status == "MATCHED_EXACT"

    def test_missing_in_candidates(self):
        reference = [make_invoice("INV-5", 250.00, "03-04-2024")]
        candidates = [make_invoice("XYZ-777", 999.00, "09-09-2024")]

        results = reconcile(reference, candidates)

        assert results[0].status == "ONLY_IN_REFERENCE"
        assert results[0].candidate is None
        assert [f.field_name for f in results[0].fields] == ["total_amount", "invoice_date"]
        assert results[0].fields[0].reference_value == 250.00
        assert results[0].fields[1].reference_value == "03-04-2024"
        assert all(f.candidate_value is None for f in results[0].fields)
        assert not any(f.is_match for f in results[0].fields)

    def test_extra_candidate_appended_after_reference_rows(self):
        reference = [
            make_invoice("INV-001", gst_number="T1"),
            make_invoice("INV-002", 300.00, gst_number="T1"),
        ]
        candidates = [
            make_invoice("INV-999", 50.00, "05-05-2024"),
            make_invoice("INV-001", gst_number="T1"),
        ]

        results = reconcile(reference, candidates)

        assert [r.status for r in results] == [
            "MATCHED_EXACT",
            "ONLY_IN_REFERENCE",
            "ONLY_IN_CANDIDATE",
        ]
        extra = results[-1]
        assert extra.invoice_number == "INV-999"
        assert extra.reference is None
        assert extra.fields[0].candidate_value == 50.00
        assert not any(f.is_match for f in extra.fields)

    def test_shared_identifier_resolved_by_tax_id(self):
        reference = [
            make_invoice("100", 500.00, gst_number="T1", vendor_name="Alpha"),
            make_invoice("100", 700.00, gst_number="T2", vendor_name="Beta"),
        ]
        # Candidate order deliberately reversed
        candidates = [
            make_invoice("100", 700.00, gst_number="T2", vendor_name="Beta"),
            make_invoice("100", 500.00, gst_number="T1", vendor_name="Alpha"),
        ]

        results = reconcile(reference, candidates)

        assert len(results) == 2
        assert results[0].candidate is candidates[1]
        assert results[1].candidate is candidates[0]
        assert all(r.match_method == "tax_id" for r in results)
        assert not any(r.status.startswith("ONLY_IN") for r in results)

    def test_unparsable_reference_date_is_flagged(self):
        reference = [make_invoice("INV-42", invoice_date="N/A", gst_number="T1")]
        candidates = [make_invoice("INV-42", invoice_date="01-02-2024", gst_number="T1")]

        results = reconcile(reference, candidates)

        assert results[0].status == "MATCHED_WITH_DISCREPANCY"
        assert field_verdicts(results[0])["invoice_date"] is False


# ============================================
# Matcher Passes
# ============================================

class TestMatcherPasses:
    """Test pass ordering, tie-breaks and claiming."""

    def test_tax_id_pass_wins_over_earlier_reference(self):
        """A reference without GST cannot take a candidate pass 1 gives to a GST match."""
        reference = [
            make_invoice("100"),
            make_invoice("100", gst_number="T1"),
        ]
        candidates = [make_invoice("100", gst_number="T1")]

        results = reconcile(reference, candidates)

        assert results[0].status == "ONLY_IN_REFERENCE"
        assert results[1].candidate is candidates[0]
        assert results[1].match_method == "tax_id"

    def test_identifier_pass_when_tax_id_disagrees(self):
        reference = [make_invoice("INV-7", gst_number="T1")]
        candidates = [make_invoice("INV-7", gst_number="T9")]

        results = reconcile(reference, candidates)

        assert results[0].match_method == "identifier"
        assert results[0].confidence == 1.0
        assert field_verdicts(results[0])["gst_number"] is False

    def test_identifier_pass_prefers_matching_total(self):
        reference = [make_invoice("200", 500.00)]
        candidates = [
            make_invoice("200", 450.00),
            make_invoice("200", 500.40),
        ]

        results = reconcile(reference, candidates)

        assert results[0].candidate is candidates[1]
        assert results[1].candidate is candidates[0]
        assert results[1].status == "ONLY_IN_CANDIDATE"

    def test_identifier_pass_falls_back_to_first_candidate(self):
        reference = [make_invoice("200", 500.00)]
        candidates = [
            make_invoice("200", 450.00),
            make_invoice("200", 600.00),
        ]

        results = reconcile(reference, candidates)

        assert results[0].candidate is candidates[0]
        assert results[0].status == "MATCHED_WITH_DISCREPANCY"

    def test_heuristic_pass_on_amount_and_date(self):
        reference = [make_invoice("ABC", 1180.00, "15-03-2024")]
        candidates = [make_invoice("XYZ-9", 1180.50, "2024-03-15")]

        results = reconcile(reference, candidates)

        assert results[0].match_method == "heuristic"
        assert results[0].confidence == 0.8
        assert results[0].status == "MATCHED_WITH_DISCREPANCY"
        assert field_verdicts(results[0])["invoice_number"] is False

    def test_heuristic_pass_needs_a_real_date(self):
        reference = [make_invoice("ABC", 1180.00, "")]
        candidates = [make_invoice("XYZ-9", 1180.00, "")]

        results = reconcile(reference, candidates)

        assert [r.status for r in results] == ["ONLY_IN_REFERENCE", "ONLY_IN_CANDIDATE"]

    def test_heuristic_never_reuses_claimed_candidate(self):
        reference = [
            make_invoice("INV-1", 100.00),
            make_invoice("OTHER", 100.00),
        ]
        candidates = [make_invoice("INV-1", 100.00)]

        results = reconcile(reference, candidates)

        assert results[0].match_method == "identifier"
        assert results[1].status == "ONLY_IN_REFERENCE"

    def test_claim_state_rejects_double_claim(self):
        invoice = make_invoice("1")
        state = ClaimState(2)
        state.claim(0, 0, invoice, invoice, "identifier")

        assert state.is_resolved(0)
        assert state.is_claimed(0)
        with pytest.raises(RuntimeError):
            state.claim(1, 0, invoice, invoice, "identifier")


# ============================================
# Field Comparator
# ============================================

class TestFieldComparator:
    """Test per-field rules."""

    def test_field_order(self):
        fields = compare_fields(make_invoice("1"), make_invoice("1"))

        assert [f.field_name for f in fields] == [
            "vendor_name",
            "gst_number",
            "invoice_number",
            "invoice_date",
            "taxable_amount",
            "cgst_amount",
            "sgst_amount",
            "igst_amount",
            "total_amount",
        ]

    def test_vendor_name_containment(self):
        ref = make_invoice("1", vendor_name="Acme Traders")
        cand = make_invoice("1", vendor_name="ACME TRADERS PVT LTD")

        assert field_verdicts(build_match_result(ref, cand, "identifier"))["vendor_name"]

    def test_blank_reference_vendor_still_exact(self):
        """A sheet without a vendor column must not flag every pair."""
        ref = make_invoice("INV-1", gst_number="T1", vendor_name="")
        cand = make_invoice("INV-1", gst_number="T1", vendor_name="Acme Traders")

        result = build_match_result(ref, cand, "tax_id")

        assert result.status == "MATCHED_EXACT"
        assert field_verdicts(result)["vendor_name"]

    def test_blank_invoice_numbers_agree(self):
        ref = make_invoice("")
        cand = make_invoice("")

        result = build_match_result(ref, cand, "heuristic")

        assert field_verdicts(result)["invoice_number"]
        assert result.status == "MATCHED_EXACT"

    def test_blank_invoice_number_against_real_one(self):
        verdicts = field_verdicts(build_match_result(make_invoice(""), make_invoice("INV-1"), "heuristic"))

        assert verdicts["invoice_number"] is False

    def test_blank_invoice_numbers_never_pair(self):
        results = reconcile([make_invoice("", 10.0)], [make_invoice("", 99.0)])

        assert [r.status for r in results] == ["ONLY_IN_REFERENCE", "ONLY_IN_CANDIDATE"]

    def test_missing_tax_component_treated_as_zero(self):
        ref = make_invoice("1", cgst_amount=0.0)
        cand = make_invoice("1")

        result = build_match_result(ref, cand, "identifier")
        cgst = result.get_field("cgst_amount")

        assert cgst.is_match
        assert cgst.candidate_value == 0.0

    def test_tax_component_mismatch(self):
        ref = make_invoice("1", cgst_amount=9.0, sgst_amount=9.0)
        cand = make_invoice("1", igst_amount=18.0)

        verdicts = field_verdicts(build_match_result(ref, cand, "identifier"))

        assert verdicts["cgst_amount"] is False
        assert verdicts["sgst_amount"] is False
        assert verdicts["igst_amount"] is False

    def test_tax_id_is_exact_after_cleanup(self):
        ref = make_invoice("1", gst_number="27AABCU9603R1ZX")
        cand = make_invoice("1", gst_number="27 aabcu 9603 r1zx")

        assert field_verdicts(build_match_result(ref, cand, "tax_id"))["gst_number"]


# ============================================
# Invariants
# ============================================

def _sample_data():
    reference = [
        make_invoice("INV-001", 100.00, gst_number="T1"),
        make_invoice("100", 500.00, gst_number="T1", vendor_name="Alpha"),
        make_invoice("100", 700.00, gst_number="T2", vendor_name="Beta"),
        make_invoice("ABC", 1180.00, "15-03-2024"),
        make_invoice("INV-5", 250.00, "03-04-2024"),
    ]
    candidates = [
        make_invoice("100", 700.00, gst_number="T2", vendor_name="Beta"),
        make_invoice("001", 102.00, "2024-02-01", gst_number="T1"),
        make_invoice("XYZ-9", 1180.00, "2024-03-15"),
        make_invoice("100", 500.00, gst_number="T1", vendor_name="Alpha"),
        make_invoice("INV-999", 50.00, "05-05-2024"),
    ]
    return reference, candidates


class TestInvariants:
    """Completeness, uniqueness and order independence."""

    def test_row_count(self):
        reference, candidates = _sample_data()

        results = reconcile(reference, candidates)
        matched = [r for r in results if r.is_matched]

        assert len(results) == len(reference) + len(candidates) - len(matched)

    def test_every_record_appears_exactly_once(self):
        reference, candidates = _sample_data()

        results = reconcile(reference, candidates)

        for invoice in reference:
            assert sum(1 for r in results if r.reference is invoice) == 1
        for invoice in candidates:
            assert sum(1 for r in results if r.candidate is invoice) == 1

    def test_reference_rows_keep_input_order(self):
        reference, candidates = _sample_data()

        results = reconcile(reference, candidates)

        assert [r.reference for r in results[:len(reference)]] == reference
        assert all(r.status == "ONLY_IN_CANDIDATE" for r in results[len(reference):])

    def test_order_independent_content(self):
        reference, candidates = _sample_data()
        expected = Counter(pair_key(r) for r in reconcile(reference, candidates))

        rng = random.Random(7)
        for _ in range(10):
            shuffled_ref = reference[:]
            shuffled_cand = candidates[:]
            rng.shuffle(shuffled_ref)
            rng.shuffle(shuffled_cand)

            actual = Counter(pair_key(r) for r in reconcile(shuffled_ref, shuffled_cand))
            assert actual == expected

    def test_small_lists_all_permutations(self):
        reference = [
            make_invoice("100", 500.00, gst_number="T1", vendor_name="Alpha"),
            make_invoice("100", 700.00, gst_number="T2", vendor_name="Beta"),
        ]
        candidates = [
            make_invoice("100", 500.00, gst_number="T1", vendor_name="Alpha"),
            make_invoice("100", 700.00, gst_number="T2", vendor_name="Beta"),
            make_invoice("55", 10.00, "01-01-2024"),
        ]
        expected = Counter(pair_key(r) for r in reconcile(reference, candidates))

        for cand_order in permutations(candidates):
            actual = Counter(pair_key(r) for r in reconcile(reference[::-1], list(cand_order)))
            assert actual == expected

    def test_inputs_are_not_mutated(self):
        reference, candidates = _sample_data()
        reference_copy = list(reference)
        candidates_copy = list(candidates)

        reconcile(reference, candidates)

        assert reference == reference_copy
        assert candidates == candidates_copy

    def test_results_are_immutable(self):
        results = reconcile([make_invoice("1")], [make_invoice("1")])

        with pytest.raises(ValidationError):
            results[0].status = "ONLY_IN_REFERENCE"


# ============================================
# Input Validation & Edge Cases
# ============================================

class TestInputValidation:
    """Test structural preconditions."""

    def test_none_reference(self):
        with pytest.raises(InvalidInputError):
            reconcile(None, [])

    def test_none_candidates(self):
        with pytest.raises(InvalidInputError):
            reconcile([], None)

    def test_wrong_record_type(self):
        with pytest.raises(InvalidInputError):
            reconcile([{"invoice_number": "1"}], [])

    def test_string_is_not_a_collection(self):
        with pytest.raises(InvalidInputError):
            reconcile("INV-1", [])

    def test_empty_inputs(self):
        assert reconcile([], []) == []

    def test_no_matches_at_all(self):
        reference = [make_invoice("A-100", 1.0, "01-01-2024")]
        candidates = [make_invoice("B-200", 2000.0, "02-02-2024")]

        results = reconcile(reference, candidates)

        assert [r.status for r in results] == ["ONLY_IN_REFERENCE", "ONLY_IN_CANDIDATE"]


# ============================================
# Batch Wrapper
# ============================================

class TestReconcileBatch:
    """Test reconcile_batch statistics."""

    def test_stats(self):
        reference, candidates = _sample_data()

        result = reconcile_batch(reference, candidates)

        assert result.stats.total_reference == 5
        assert result.stats.total_candidate == 5
        # INV-001 (total mismatch) and ABC (heuristic, id mismatch) carry discrepancies
        assert result.stats.matched == 2
        assert result.stats.mismatches == 2
        assert result.stats.missing == 2
        assert result.duration_ms >= 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
