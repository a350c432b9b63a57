from enum import Enum


class SigningApiError(Exception):
    """Base exception for all signing server errors."""


class AcceptErrorKind(str, Enum):
    """Why a batch could not be accepted; drives the guidance shown to the user."""

    EXPIRED = "expired"
    INVALID = "invalid"
    EMPTY = "empty"
    OTHER = "other"


class AcceptError(SigningApiError):
    """Raised when the ACCEPT call fails or yields no usable invoice sessions."""

    def __init__(self, kind: AcceptErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class InvoiceCallError(SigningApiError):
    """A per-invoice server call failed."""

    def __init__(self, invoice_id: str, message: str) -> None:
        super().__init__(message)
        self.invoice_id = invoice_id
        self.message = message


class PrepareError(InvoiceCallError):
    """Raised when PREPARE fails or returns no digest."""


class CompleteError(InvoiceCallError):
    """Raised when COMPLETE fails or is not acknowledged."""


class PdfFetchError(InvoiceCallError):
    """Raised when an invoice PDF cannot be downloaded."""


class TokenError(SigningApiError):
    """Raised when a bearer token cannot be obtained."""
