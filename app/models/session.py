# app/models/session.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.comparison import ComparisonResult


# ============================================
# Batch statistics
# ============================================

class ProcessingStats(BaseModel):
    """Summary counts of a reconciliation run."""

    total_reference: int
    total_candidate: int
    matched: int
    mismatches: int
    missing: int


# ============================================
# Persisted session
# ============================================

class ReconciliationSession(BaseModel):
    """A reconciliation run as stored in history."""

    id: Optional[str] = None
    user_id: str
    reference_file_name: str
    candidate_file_name: str
    stats: ProcessingStats
    results: list[ComparisonResult] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
