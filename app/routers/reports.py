# app/routers/reports.py

"""
Report downloads: Excel exports and the re-ordered invoice PDF.
"""

from datetime import date

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import TypeAdapter, ValidationError

from app.core.report import build_extraction_report, build_reconciliation_report
from app.dependencies import get_current_user
from app.integrations.pdf import DocumentError, create_sorted_pdf
from app.models import ComparisonResult, InvoiceRecord

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_results_adapter = TypeAdapter(list[ComparisonResult])


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/reconciliation")
async def reconciliation_report(
    results: list[ComparisonResult],
    user_id: str = Depends(get_current_user),
):
    """Download reconciliation results as an Excel report."""
    if not results:
        raise HTTPException(status_code=400, detail="No results to export.")

    content = build_reconciliation_report(results)
    return _attachment(
        content,
        XLSX_MEDIA_TYPE,
        f"Invoice_Reconciliation_Report_{date.today().isoformat()}.xlsx",
    )


@router.post("/extraction")
async def extraction_report(
    invoices: list[InvoiceRecord],
    user_id: str = Depends(get_current_user),
):
    """Download extracted invoices as an Excel report."""
    if not invoices:
        raise HTTPException(status_code=400, detail="No invoices to export.")

    content = build_extraction_report(invoices)
    return _attachment(
        content,
        XLSX_MEDIA_TYPE,
        f"PDF_Extraction_Report_{date.today().isoformat()}.xlsx",
    )


@router.post("/sorted-pdf")
async def sorted_pdf(
    file: UploadFile = File(..., description="The PDF the results were extracted from"),
    results: str = Form(..., description="JSON list of comparison results"),
    user_id: str = Depends(get_current_user),
):
    """Download the PDF with invoices re-ordered to follow the results."""
    try:
        parsed = _results_adapter.validate_json(results)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid results payload: {e.error_count()} errors")

    if not parsed:
        raise HTTPException(status_code=400, detail="No results to sort by.")

    try:
        content = create_sorted_pdf(await file.read(), parsed)
    except DocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _attachment(
        content,
        "application/pdf",
        f"Sorted_Invoices_{date.today().isoformat()}.pdf",
    )
