# app/integrations/claude.py

"""
Claude integration for candidate extraction.

Sends the scanned invoice PDF to Claude and forces a tool call whose
input schema describes the invoice fields, so the response is
structured JSON rather than free text.
"""

import base64
import logging
from functools import lru_cache
from typing import Any, Optional

from anthropic import AsyncAnthropic, APIError
from pydantic import ValidationError

from app.config import get_settings
from app.models import ExtractedInvoice, InvoiceRecord

settings = get_settings()
logger = logging.getLogger(__name__)

TOOL_NAME = "record_invoices"

INVOICE_TOOL = {
    "name": TOOL_NAME,
    "description": "Record every invoice found in the document.",
    "input_schema": {
        "type": "object",
        "properties": {
            "invoices": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "invoice_number": {"type": "string", "description": "The unique invoice number extracted exactly as it appears on the document."},
                        "vendor_name": {"type": "string", "description": "Name of the vendor/seller."},
                        "gst_number": {"type": "string", "description": "GSTIN or tax ID of the vendor/seller."},
                        "pmc_consultant_gst": {"type": "string", "description": "GSTIN of 'PMC Consultants Private Limited' only if printed on the pages of THIS invoice, otherwise an empty string."},
                        "reverse_charge": {"type": "string", "description": "Whether reverse charge applies. 'yes' or 'no'."},
                        "hsn_code": {"type": "string", "description": "HSN or SAC code found in line items."},
                        "invoice_type": {"type": "string", "description": "Document type (e.g., tax invoice, e-invoice, credit note)."},
                        "has_signature": {"type": "string", "description": "'yes' if there is a signature or digital stamp, otherwise 'no'."},
                        "invoice_date": {"type": "string", "description": "Date of invoice in DD-MM-YYYY format."},
                        "taxable_amount": {"type": "number", "description": "Taxable amount before tax."},
                        "cgst_amount": {"type": "number", "description": "Central GST amount."},
                        "sgst_amount": {"type": "number", "description": "State GST amount."},
                        "igst_amount": {"type": "number", "description": "Integrated GST amount."},
                        "gst_amount": {"type": "number", "description": "Total tax (sum of CGST, SGST, IGST)."},
                        "total_amount": {"type": "number", "description": "Final total amount including tax."},
                        "page_start": {"type": "integer", "description": "1-based start page."},
                        "page_end": {"type": "integer", "description": "1-based end page."},
                    },
                    "required": ["invoice_number", "total_amount", "page_start", "page_end"],
                },
            },
        },
        "required": ["invoices"],
    },
}


class ExtractionError(Exception):
    """Claude could not produce a valid extraction for the document."""


@lru_cache()
def get_client() -> AsyncAnthropic:
    if not settings.anthropic_api_key:
        raise ExtractionError("ANTHROPIC_API_KEY is not configured")
    return AsyncAnthropic(api_key=settings.anthropic_api_key)


def build_prompt(reference: Optional[list[InvoiceRecord]] = None) -> str:
    """Extraction instructions, with the reference list as ground truth when given."""
    reference_text = ""
    if reference:
        reference_text = "Reference Excel Data (Ground Truth for Comparison):\n" + "\n".join(
            f"Expected Inv: {inv.invoice_number}, Date: {inv.invoice_date}, "
            f"Base/Taxable: {inv.taxable_amount}, Total: {inv.total_amount}"
            for inv in reference
        )

    return f"""You are a high-precision financial auditor performing a strict audit. The PDF contains multiple invoices.

{reference_text}

STRICT EXTRACTION PROTOCOL:
1. INDEPENDENT VERIFICATION: Treat every invoice (and its set of pages) as a completely separate document.
2. PMC GST: Only return a GSTIN for 'PMC Consultants Private Limited' if it is printed on the pages of the
   invoice you are extracting. Never reuse one found elsewhere in the PDF.
3. EXACT MATCHING: Capture invoice numbers exactly as printed.
4. DIGITAL SIGNATURES: Check for "Digitally signed by", QR codes, or physical stamps.
5. DATE FORMAT: Standardize to DD-MM-YYYY.

Record every invoice with the {TOOL_NAME} tool."""


def parse_extraction_response(response: Any) -> list[InvoiceRecord]:
    """Validate the forced tool call and convert it to candidate invoices."""
    tool_input = None
    for block in response.content:
        if getattr(block, "type", None) == "tool_use" and getattr(block, "name", TOOL_NAME) == TOOL_NAME:
            tool_input = block.input
            break

    if tool_input is None:
        raise ExtractionError("Claude response did not contain an invoice tool call")

    items = tool_input.get("invoices") if isinstance(tool_input, dict) else None
    if not isinstance(items, list):
        raise ExtractionError("Invoice tool call is missing the 'invoices' list")

    try:
        extracted = [ExtractedInvoice.model_validate(item) for item in items]
    except ValidationError as e:
        raise ExtractionError(f"Extracted invoice failed validation: {e}") from e

    return [invoice.to_record() for invoice in extracted]


async def extract_invoices(
    pdf_bytes: bytes,
    reference: Optional[list[InvoiceRecord]] = None,
) -> list[InvoiceRecord]:
    """
    Extract candidate invoices from a PDF.

    Raises ExtractionError on API failure or an invalid response.
    """
    client = get_client()
    document = base64.standard_b64encode(pdf_bytes).decode("utf-8")

    try:
        response = await client.messages.create(
            model=settings.anthropic_model,
            max_tokens=settings.extraction_max_tokens,
            tools=[INVOICE_TOOL],
            tool_choice={"type": "tool", "name": TOOL_NAME},
            messages=[{
                "role": "user",
                "content": [
                    {
                        "type": "document",
                        "source": {
                            "type": "base64",
                            "media_type": "application/pdf",
                            "data": document,
                        },
                    },
                    {"type": "text", "text": build_prompt(reference)},
                ],
            }],
        )
    except APIError as e:
        logger.error(f"Claude API error during extraction: {e}")
        raise ExtractionError(f"Claude API error: {e}") from e

    invoices = parse_extraction_response(response)
    logger.info(f"Extracted {len(invoices)} invoices from PDF")
    return invoices
