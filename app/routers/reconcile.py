# app/routers/reconcile.py

"""
Reconciliation routes.

The main endpoint that runs the matching engine.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from app.core.matching import reconcile_batch
from app.database import save_session
from app.dependencies import get_current_user
from app.integrations import claude
from app.integrations.spreadsheet import SpreadsheetError, parse_reference_workbook
from app.models import ComparisonResult, ProcessingStats
from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter()


class ReconcileResponse(BaseModel):
    success: bool
    stats: ProcessingStats
    results: list[ComparisonResult]
    duration_ms: int
    session_id: Optional[str] = None


# ============================================
# Main Reconciliation Endpoint
# ============================================

@router.post("/reconcile", response_model=ReconcileResponse)
async def run_reconciliation(
    reference_file: UploadFile = File(..., description="Reference invoices (.xlsx)"),
    candidate_file: UploadFile = File(..., description="Scanned invoices (.pdf)"),
    persist: bool = Form(True),
    user_id: str = Depends(get_current_user),
):
    """
    Reconcile a reference spreadsheet against a scanned invoice PDF.

    1. Parses the reference spreadsheet
    2. Extracts candidate invoices from the PDF with Claude
    3. Runs the matching engine
    4. Optionally saves the session to history
    """
    start_time = datetime.now()

    try:
        reference = parse_reference_workbook(await reference_file.read())
    except SpreadsheetError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not reference:
        raise HTTPException(
            status_code=400,
            detail="No invoices found in the reference spreadsheet."
        )

    try:
        candidates = await claude.extract_invoices(await candidate_file.read(), reference)
    except claude.ExtractionError as e:
        raise HTTPException(status_code=502, detail=f"Invoice extraction failed: {e}")

    result = reconcile_batch(reference, candidates)

    session_id = None
    if persist and settings.enable_history:
        try:
            saved = await save_session(
                user_id,
                reference_file.filename or "reference.xlsx",
                candidate_file.filename or "invoices.pdf",
                result.stats,
                result.results,
            )
            session_id = saved.get("id") if saved else None
        except Exception:
            # Persistence failure shouldn't fail the whole request
            logger.exception("Failed to persist reconciliation session")

    duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)

    return ReconcileResponse(
        success=True,
        stats=result.stats,
        results=result.results,
        duration_ms=duration_ms,
        session_id=session_id,
    )
