# app/integrations/pdf.py

"""
Re-orders a scanned invoice PDF to follow the reconciliation order.
"""

import logging
from io import BytesIO

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError

from app.models import ComparisonResult

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """The PDF could not be read or written."""


def create_sorted_pdf(pdf_bytes: bytes, results: list[ComparisonResult]) -> bytes:
    """
    Copy each matched invoice's pages into a new PDF, in result order.

    Results without a candidate (missing in the PDF) or without a page
    range are skipped. Out-of-range starts are skipped and ends clamped.
    """
    try:
        reader = PdfReader(BytesIO(pdf_bytes))
        total_pages = len(reader.pages)
    except (PdfReadError, ValueError) as e:
        raise DocumentError(f"Could not read PDF: {e}") from e

    writer = PdfWriter()
    copied = 0

    for result in results:
        candidate = result.candidate
        if candidate is None or candidate.page_range is None:
            continue

        start = candidate.page_range.start
        if start < 1 or start > total_pages:
            continue
        end = min(max(candidate.page_range.end, start), total_pages)

        for page_idx in range(start - 1, end):
            writer.add_page(reader.pages[page_idx])
            copied += 1

    buffer = BytesIO()
    writer.write(buffer)
    logger.info(f"Sorted PDF built with {copied} of {total_pages} pages")
    return buffer.getvalue()
