# app/models/comparison.py

from typing import Optional, Literal, Union
from pydantic import BaseModel, Field

from app.models.invoice import InvoiceRecord


# ============================================
# Status & Match Method
# ============================================

ComparisonStatus = Literal[
    "MATCHED_EXACT",
    "MATCHED_WITH_DISCREPANCY",
    "ONLY_IN_REFERENCE",
    "ONLY_IN_CANDIDATE",
]

MatchMethod = Literal["tax_id", "identifier", "heuristic"]

FieldValue = Union[float, str, None]


# ============================================
# Field-level comparison
# ============================================

class MatchField(BaseModel):
    """Outcome of comparing one field of a reference/candidate pair."""

    field_name: str
    label: str
    reference_value: FieldValue = None
    candidate_value: FieldValue = None
    is_match: bool

    class Config:
        frozen = True


# ============================================
# Comparison Result
# ============================================

class ComparisonResult(BaseModel):
    """One output row of a reconciliation run."""

    invoice_number: str
    status: ComparisonStatus
    fields: list[MatchField] = Field(default_factory=list)
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    match_method: Optional[MatchMethod] = None
    reference: Optional[InvoiceRecord] = None
    candidate: Optional[InvoiceRecord] = None

    class Config:
        frozen = True

    @property
    def is_matched(self) -> bool:
        return self.status in ("MATCHED_EXACT", "MATCHED_WITH_DISCREPANCY")

    @property
    def mismatched_labels(self) -> list[str]:
        """Labels of the fields that disagree, for matched rows only."""
        if self.status != "MATCHED_WITH_DISCREPANCY":
            return []
        return [f.label for f in self.fields if not f.is_match]

    def get_field(self, field_name: str) -> Optional[MatchField]:
        for field in self.fields:
            if field.field_name == field_name:
                return field
        return None
