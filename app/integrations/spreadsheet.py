# app/integrations/spreadsheet.py

"""
Reference ingestion from an Excel workbook.

Column headers vary between spreadsheets, so each invoice field is
located through an alias table rather than fixed column names.
"""

import logging
from datetime import date, datetime
from io import BytesIO
from typing import Any, Optional
import re

from openpyxl import load_workbook
from openpyxl.utils.datetime import from_excel

from app.core.normalizers import normalize_amount, normalize_date
from app.models import InvoiceRecord

logger = logging.getLogger(__name__)


class SpreadsheetError(ValueError):
    """The uploaded file could not be read as a workbook."""


def _normalize_header(header: Any) -> str:
    if header is None:
        return ""
    return re.sub(r'[^a-z0-9]', '', str(header).lower().strip())


class FieldAlias:
    """Header aliases for one invoice field, most specific first."""

    def __init__(self, aliases: list[str], strict: bool = False):
        self.aliases = [_normalize_header(a) for a in aliases]
        self.strict = strict


# Resolved in this order; a column is only ever used by one field.
FIELD_ALIASES: dict[str, FieldAlias] = {
    "row_id": FieldAlias(["id", "sr no", "s.no", "serial no"], strict=True),
    "invoice_number": FieldAlias(["invoice number", "invoice no", "inv no"]),
    "invoice_date": FieldAlias(["invoice date", "date"]),
    "vendor_name": FieldAlias(["vendor name", "vendor", "wd name"]),
    "gst_number": FieldAlias(["gst number", "gstin", "gst no"]),
    "taxable_amount": FieldAlias(["taxable amount", "base amount", "gross amount", "taxable"]),
    "cgst_amount": FieldAlias(["cgst", "cgst amount", "central tax"]),
    "sgst_amount": FieldAlias(["sgst", "sgst amount", "state tax", "utgst"]),
    "igst_amount": FieldAlias(["igst", "igst amount", "integrated tax"]),
    "gst_amount": FieldAlias(["gst amount", "tax amount", "total tax"]),
    "total_amount": FieldAlias(["invoice amount", "total amount", "total"]),
    "wd_code": FieldAlias(["wd code"]),
    "so_number": FieldAlias(["so number", "so"], strict=True),
    "branch": FieldAlias(["branch"]),
    "description": FieldAlias(["description"]),
}

AMOUNT_FIELDS = {
    "taxable_amount",
    "cgst_amount",
    "sgst_amount",
    "igst_amount",
    "gst_amount",
    "total_amount",
}


def resolve_columns(
    headers: list[Any],
    aliases: Optional[dict[str, FieldAlias]] = None,
) -> dict[str, int]:
    """
    Map invoice fields to column indices.

    Exact header matches win over containment matches; strict aliases
    only match exactly.
    """
    if aliases is None:
        aliases = FIELD_ALIASES

    normalized = [_normalize_header(h) for h in headers]
    used: set[int] = set()
    columns: dict[str, int] = {}

    for field, alias in aliases.items():
        index = _find_column(normalized, alias.aliases, used, exact=True)
        if index is None and not alias.strict:
            index = _find_column(normalized, alias.aliases, used, exact=False)
        if index is not None:
            columns[field] = index
            used.add(index)

    return columns


def _find_column(
    headers: list[str],
    aliases: list[str],
    used: set[int],
    exact: bool,
) -> Optional[int]:
    for alias in aliases:
        for idx, header in enumerate(headers):
            if idx in used or not header:
                continue
            if header == alias or (not exact and alias in header):
                return idx
    return None


def _cell_to_date(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return normalize_date(value)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Excel serial date
        try:
            return normalize_date(from_excel(value))
        except (ValueError, OverflowError):
            return ""

    if value is None:
        return ""

    raw = str(value).strip()
    return normalize_date(raw) or raw


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_reference_rows(rows: list[tuple]) -> list[InvoiceRecord]:
    """Turn a header row plus data rows into reference invoices."""
    if not rows:
        return []

    headers, *data = rows
    columns = resolve_columns(list(headers))
    if "invoice_number" not in columns:
        logger.warning(f"No invoice number column found in headers: {list(headers)}")

    invoices: list[InvoiceRecord] = []
    for row in data:
        if row is None or all(cell is None or str(cell).strip() == "" for cell in row):
            continue

        values: dict[str, Any] = {}
        for field, idx in columns.items():
            cell = row[idx] if idx < len(row) else None
            if field == "invoice_date":
                values[field] = _cell_to_date(cell)
            elif field in AMOUNT_FIELDS:
                values[field] = normalize_amount(cell)
            else:
                values[field] = _cell_to_text(cell)

        invoices.append(InvoiceRecord(**values))

    return invoices


def parse_reference_workbook(data: bytes) -> list[InvoiceRecord]:
    """
    Read reference invoices from the first sheet of an .xlsx workbook.

    The first row is treated as the header row.
    """
    try:
        wb = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except Exception as e:
        raise SpreadsheetError(f"Could not read workbook: {e}") from e

    try:
        ws = wb.worksheets[0]
        rows = list(ws.iter_rows(values_only=True))
    finally:
        wb.close()

    invoices = parse_reference_rows(rows)
    logger.info(f"Parsed {len(invoices)} reference invoices from workbook")
    return invoices
