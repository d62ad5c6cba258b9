# app/models/invoice.py

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class PageRange(BaseModel):
    """1-based page span of an invoice inside the source PDF."""

    start: int = 1
    end: int = 1

    class Config:
        frozen = True


class InvoiceRecord(BaseModel):
    """An invoice from the reference spreadsheet or extracted from a PDF."""

    invoice_number: str = ""
    vendor_name: str = ""
    gst_number: str = ""
    invoice_date: str = ""
    taxable_amount: float = 0.0
    cgst_amount: Optional[float] = None
    sgst_amount: Optional[float] = None
    igst_amount: Optional[float] = None
    gst_amount: Optional[float] = None
    total_amount: float = 0.0

    # Reference-side extras, display only
    row_id: Optional[str] = None
    branch: Optional[str] = None
    description: Optional[str] = None
    so_number: Optional[str] = None
    wd_code: Optional[str] = None

    # Candidate-side extras, display only
    pmc_consultant_gst: Optional[str] = None
    reverse_charge: Optional[str] = None
    hsn_code: Optional[str] = None
    has_signature: Optional[str] = None
    invoice_type: Optional[str] = None
    page_range: Optional[PageRange] = None

    class Config:
        frozen = True


class ExtractedInvoice(BaseModel):
    """One invoice as returned by the extraction tool call."""

    invoice_number: Optional[str] = None
    vendor_name: Optional[str] = None
    gst_number: Optional[str] = None
    pmc_consultant_gst: Optional[str] = None
    reverse_charge: Optional[str] = None
    hsn_code: Optional[str] = None
    invoice_type: Optional[str] = None
    has_signature: Optional[str] = None
    invoice_date: Optional[str] = None
    taxable_amount: Optional[float] = None
    cgst_amount: Optional[float] = None
    sgst_amount: Optional[float] = None
    igst_amount: Optional[float] = None
    gst_amount: Optional[float] = None
    total_amount: float
    page_start: Optional[int] = Field(default=None, ge=1)
    page_end: Optional[int] = Field(default=None, ge=1)

    @field_validator(
        "invoice_number",
        "gst_number",
        "pmc_consultant_gst",
        "hsn_code",
        mode="before",
    )
    @classmethod
    def _coerce_numeric_text(cls, value):
        # Numeric codes come back as JSON numbers; 1234.0 must read "1234"
        if isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, (int, float)):
            return str(value)
        return value

    def to_record(self) -> InvoiceRecord:
        from app.core.normalizers import normalize_date

        start = self.page_start or 1
        return InvoiceRecord(
            invoice_number=self.invoice_number or "Unknown",
            vendor_name=self.vendor_name or "Unknown",
            gst_number=self.gst_number or "",
            pmc_consultant_gst=self.pmc_consultant_gst or "",
            reverse_charge=self.reverse_charge or "no",
            hsn_code=self.hsn_code or "",
            invoice_type=self.invoice_type or "Tax Invoice",
            has_signature=self.has_signature or "no",
            invoice_date=normalize_date(self.invoice_date) or (self.invoice_date or ""),
            taxable_amount=self.taxable_amount or 0.0,
            cgst_amount=self.cgst_amount or 0.0,
            sgst_amount=self.sgst_amount or 0.0,
            igst_amount=self.igst_amount or 0.0,
            gst_amount=self.gst_amount or 0.0,
            total_amount=self.total_amount,
            page_range=PageRange(start=start, end=self.page_end or start),
        )
