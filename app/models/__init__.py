# app/models/__init__.py

from app.models.invoice import (
    InvoiceRecord,
    PageRange,
    ExtractedInvoice,
)
from app.models.comparison import (
    ComparisonStatus,
    ComparisonResult,
    MatchField,
    MatchMethod,
)
from app.models.session import (
    ProcessingStats,
    ReconciliationSession,
)

__all__ = [
    # Invoice
    "InvoiceRecord",
    "PageRange",
    "ExtractedInvoice",
    # Comparison
    "ComparisonStatus",
    "ComparisonResult",
    "MatchField",
    "MatchMethod",
    # Session
    "ProcessingStats",
    "ReconciliationSession",
]
