# tests/test_report.py

"""
Tests for Excel report exports.
"""

from io import BytesIO

import pytest
from openpyxl import load_workbook

from app.core.matching import reconcile
from app.core.report import (
    build_extraction_report,
    build_reconciliation_report,
    format_report_value,
)
from app.models import InvoiceRecord, PageRange


def read_rows(content: bytes) -> list[dict]:
    wb = load_workbook(BytesIO(content))
    ws = wb.active
    rows = list(ws.iter_rows(values_only=True))
    headers = rows[0]
    return [dict(zip(headers, row)) for row in rows[1:]]


# ============================================
# Value Formatting
# ============================================

class TestFormatReportValue:
    """Test placeholder and transform handling."""

    def test_placeholders(self):
        assert format_report_value(None) == "N/a"
        assert format_report_value("  ") == "N/a"
        assert format_report_value("Unknown") == "N/a"
        assert format_report_value("none", placeholder="-") == "-"

    def test_transforms(self):
        assert format_report_value("yes", transform="capitalize") == "Yes"
        assert format_report_value("NO", transform="capitalize") == "No"
        assert format_report_value("998314", transform="upper") == "998314"
        assert format_report_value("sac abc", transform="upper") == "SAC ABC"


# ============================================
# Reconciliation Report
# ============================================

class TestReconciliationReport:
    """Test the reconciliation export."""

    def test_rows_and_statuses(self):
        reference = [
            InvoiceRecord(invoice_number="INV-1", vendor_name="Acme", gst_number="T1",
                          invoice_date="01-02-2024", taxable_amount=100, total_amount=118,
                          row_id="1", branch="Pune"),
            InvoiceRecord(invoice_number="INV-2", total_amount=50, invoice_date="02-02-2024"),
        ]
        candidates = [
            InvoiceRecord(invoice_number="INV-1", vendor_name="Acme", gst_number="T1",
                          invoice_date="01-02-2024", taxable_amount=100, total_amount=130,
                          hsn_code="998314", has_signature="yes"),
            InvoiceRecord(invoice_number="INV-9", total_amount=75, invoice_date="09-09-2024"),
        ]

        rows = read_rows(build_reconciliation_report(reconcile(reference, candidates)))

        assert [r["Comparison Status"] for r in rows] == ["MISMATCH", "MISSING IN PDF", "EXTRA IN PDF"]

        mismatch = rows[0]
        assert mismatch["Discrepancy Notes"] == "Invoice Amount"
        assert mismatch["ID"] == "1"
        assert mismatch["Branch"] == "Pune"
        assert mismatch["Total Amount (Excel)"] == 118
        assert mismatch["Total Amount (PDF)"] == 130
        assert mismatch["Total Amt Match"] == "MISMATCH"
        assert mismatch["Vendor Match"] == "Match"
        assert mismatch["Signature Present (PDF)"] == "Yes"

        missing = rows[1]
        assert missing["Total Amt Match"] == "N/A"
        assert missing["Total Amount (PDF)"] is None
        assert missing["Reverse Charge (PDF)"] == "N/a"

        extra = rows[2]
        assert extra["Invoice Number (PDF)"] == "INV-9"
        assert extra["Invoice Number (Excel)"] is None


# ============================================
# Extraction Report
# ============================================

class TestExtractionReport:
    """Test the extraction export."""

    def test_rows(self):
        invoices = [
            InvoiceRecord(invoice_number="INV-1", vendor_name="Acme", total_amount=118,
                          igst_amount=18, reverse_charge="no", page_range=PageRange(start=2, end=3)),
        ]

        rows = read_rows(build_extraction_report(invoices))

        assert len(rows) == 1
        assert rows[0]["Invoice Number"] == "INV-1"
        assert rows[0]["IGST"] == 18
        assert rows[0]["CGST"] == 0
        assert rows[0]["Reverse Charge"] == "No"
        assert rows[0]["HSN Code"] == "N/a"
        assert rows[0]["Pages"] == "2 - 3"

    def test_empty_report_is_valid_workbook(self):
        wb = load_workbook(BytesIO(build_extraction_report([])))

        assert wb.active.title == "Extraction Report"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
