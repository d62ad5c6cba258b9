# app/core/report.py

"""
Excel exports of reconciliation results and extraction output.
"""

from io import BytesIO
from typing import Any, Literal

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from app.models import ComparisonResult, InvoiceRecord

STATUS_DISPLAY = {
    "MATCHED_EXACT": "MATCH",
    "MATCHED_WITH_DISCREPANCY": "MISMATCH",
    "ONLY_IN_REFERENCE": "MISSING IN PDF",
    "ONLY_IN_CANDIDATE": "EXTRA IN PDF",
}

# (field_name, column prefix, match column)
COMPARED_COLUMNS = [
    ("vendor_name", "Vendor Name", "Vendor Match"),
    ("gst_number", "GST Number", "GST Match"),
    ("invoice_number", "Invoice Number", "Invoice Number Match"),
    ("invoice_date", "Invoice Date", "Date Match"),
    ("taxable_amount", "Taxable (Base) Amount", "Taxable Match"),
    ("cgst_amount", "CGST", "CGST Match"),
    ("sgst_amount", "SGST", "SGST Match"),
    ("igst_amount", "IGST", "IGST Match"),
    ("total_amount", "Total Amount", "Total Amt Match"),
]


def format_report_value(
    value: Any,
    placeholder: str = "N/a",
    transform: Literal["none", "upper", "capitalize"] = "none",
) -> str:
    """Render a display value, substituting a placeholder for blanks."""
    if value is None:
        return placeholder

    text = str(value).strip()
    if text == "" or text.lower() in ("unknown", "none"):
        return placeholder

    if transform == "upper":
        return text.upper()
    if transform == "capitalize":
        return text[:1].upper() + text[1:].lower()
    return text


def _match_status(result: ComparisonResult, field_name: str) -> str:
    if not result.is_matched:
        return "N/A"
    field = result.get_field(field_name)
    return "Match" if field is not None and field.is_match else "MISMATCH"


def _reconciliation_row(result: ComparisonResult) -> dict[str, Any]:
    excel = result.reference
    pdf = result.candidate

    row: dict[str, Any] = {
        "Comparison Status": STATUS_DISPLAY[result.status],
        "Discrepancy Notes": ", ".join(result.mismatched_labels),
        "ID": (excel.row_id if excel else None) or "",
        "Branch": (excel.branch if excel else None) or "",
        "WD Code": (excel.wd_code if excel else None) or "",
        "SO Number": (excel.so_number if excel else None) or "",
        "Description": (excel.description if excel else None) or "",
        "PMC Consultant GST (PDF)": (pdf.pmc_consultant_gst if pdf else None) or "",
        "Reverse Charge (PDF)": format_report_value(pdf.reverse_charge if pdf else None, transform="capitalize"),
        "HSN Code (PDF)": format_report_value(pdf.hsn_code if pdf else None, transform="upper"),
        "Invoice Type (PDF)": (pdf.invoice_type if pdf else None) or "",
        "Signature Present (PDF)": format_report_value(pdf.has_signature if pdf else None, transform="capitalize"),
    }

    for field_name, prefix, match_column in COMPARED_COLUMNS:
        row[f"{prefix} (Excel)"] = getattr(excel, field_name) if excel else None
        row[f"{prefix} (PDF)"] = getattr(pdf, field_name) if pdf else None
        row[match_column] = _match_status(result, field_name)

    return row


def _extraction_row(invoice: InvoiceRecord) -> dict[str, Any]:
    pages = invoice.page_range
    return {
        "Vendor Name": invoice.vendor_name,
        "GST Number": invoice.gst_number,
        "PMC/Consultant GST": invoice.pmc_consultant_gst or "",
        "Invoice Number": invoice.invoice_number,
        "Invoice Date": invoice.invoice_date,
        "Taxable (Base) Amount": invoice.taxable_amount,
        "CGST": invoice.cgst_amount or 0,
        "SGST": invoice.sgst_amount or 0,
        "IGST": invoice.igst_amount or 0,
        "GST Amount": invoice.gst_amount or 0,
        "Total Amount": invoice.total_amount,
        "Reverse Charge": format_report_value(invoice.reverse_charge, transform="capitalize"),
        "HSN Code": format_report_value(invoice.hsn_code, transform="upper"),
        "Invoice Type": invoice.invoice_type or "",
        "Signature Present": format_report_value(invoice.has_signature, transform="capitalize"),
        "Pages": f"{pages.start} - {pages.end}" if pages else "1 - 1",
    }


def _to_workbook_bytes(rows: list[dict[str, Any]], sheet_title: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title

    if rows:
        headers = list(rows[0].keys())
        ws.append(headers)
        for row in rows:
            ws.append([row[h] for h in headers])

        for col_idx, header in enumerate(headers, start=1):
            ws.column_dimensions[get_column_letter(col_idx)].width = len(header) + 8

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_reconciliation_report(results: list[ComparisonResult]) -> bytes:
    """One row per comparison result, Excel vs PDF side by side."""
    rows = [_reconciliation_row(r) for r in results]
    return _to_workbook_bytes(rows, "Reconciliation Report")


def build_extraction_report(invoices: list[InvoiceRecord]) -> bytes:
    """One row per extracted invoice."""
    rows = [_extraction_row(i) for i in invoices]
    return _to_workbook_bytes(rows, "Extraction Report")
