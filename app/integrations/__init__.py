# app/integrations/__init__.py

from app.integrations import claude
from app.integrations import pdf
from app.integrations import spreadsheet

__all__ = ["claude", "pdf", "spreadsheet"]
