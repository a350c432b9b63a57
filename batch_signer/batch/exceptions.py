class BatchError(Exception):
    """Base exception for batch-level errors."""


class RenderError(BatchError):
    """Raised when one invoice's PDF cannot be fetched or rendered."""

    def __init__(self, invoice_id: str, message: str) -> None:
        super().__init__(message)
        self.invoice_id = invoice_id


class InvalidTransitionError(BatchError):
    """Raised when an invoice is moved to a state its current state does not allow."""
