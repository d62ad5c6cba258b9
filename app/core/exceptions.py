# app/core/exceptions.py


class InvalidInputError(ValueError):
    """Raised when reconcile() is handed something other than lists of InvoiceRecord."""
