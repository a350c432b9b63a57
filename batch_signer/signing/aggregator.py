from collections.abc import Iterable

from batch_signer.batch.models import InvoiceSession, InvoiceState
from batch_signer.signing.models import BatchOutcome


def aggregate(invoices: Iterable[InvoiceSession]) -> BatchOutcome:
    """Fold per-invoice states into a BatchOutcome, keeping batch order for failures."""
    total = 0
    signed = 0
    failed: list[str] = []
    for invoice in invoices:
        total += 1
        if invoice.state is InvoiceState.SIGNED:
            signed += 1
        elif invoice.state is InvoiceState.FAILED:
            failed.append(invoice.label)
    return BatchOutcome(total=total, signed_count=signed, failed_invoice_labels=tuple(failed))
