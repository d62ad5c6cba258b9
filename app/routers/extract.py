# app/routers/extract.py

"""
Extraction-only route: PDF in, structured invoices out.
"""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from app.dependencies import get_current_user
from app.integrations import claude
from app.models import InvoiceRecord

router = APIRouter()


class ExtractResponse(BaseModel):
    success: bool
    count: int
    invoices: list[InvoiceRecord]


@router.post("/extract", response_model=ExtractResponse)
async def extract(
    file: UploadFile = File(..., description="Scanned invoices (.pdf)"),
    user_id: str = Depends(get_current_user),
):
    """Extract every invoice in the uploaded PDF."""
    try:
        invoices = await claude.extract_invoices(await file.read())
    except claude.ExtractionError as e:
        raise HTTPException(status_code=502, detail=f"Invoice extraction failed: {e}")

    return ExtractResponse(success=True, count=len(invoices), invoices=invoices)
