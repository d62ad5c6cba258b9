# app/routers/__init__.py

from app.routers import health
from app.routers import reconcile
from app.routers import extract
from app.routers import reports
from app.routers import history

__all__ = ["health", "reconcile", "extract", "reports", "history"]
