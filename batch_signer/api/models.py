from dataclasses import dataclass


@dataclass(frozen=True)
class InvoiceSessionSeed:
    """One invoice entry of the ACCEPT response.

    ``signing_session_id`` is the only token PREPARE and COMPLETE may use
    for this invoice.
    """

    document_identifier: str
    signing_session_id: str
    invoice_id: str


@dataclass(frozen=True)
class AcceptResult:
    sessions: tuple[InvoiceSessionSeed, ...]
    status: str | None = None


@dataclass(frozen=True)
class PrepareResult:
    """Output of PREPARE.

    The server echoes a ``signingSessionId`` in this response. It is kept as
    ``prepare_session_id`` for diagnostics only and must never replace the
    token captured at ACCEPT time.
    """

    digest: str
    signature_id: int | None = None
    status: str | None = None
    prepare_session_id: str | None = None


@dataclass(frozen=True)
class CompleteResult:
    """Acknowledged COMPLETE; an unsuccessful answer raises CompleteError instead."""

    status: str | None = None
