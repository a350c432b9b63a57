import asyncio

from batch_signer.api.client import SigningApiClient
from batch_signer.api.exceptions import AcceptError, AcceptErrorKind, PdfFetchError
from batch_signer.batch.exceptions import RenderError
from batch_signer.batch.models import RENDER_ERROR_REASON, InvoiceSession, SigningBatch
from batch_signer.logging.logger import Log
from batch_signer.notifications.base import BaseNotifier
from batch_signer.pdf.base import BasePdfRenderer
from batch_signer.pdf.exceptions import PdfRenderError
from batch_signer.pdf.models import RenderedPage

_ACCEPT_ERROR_TITLES: dict[AcceptErrorKind, str] = {
    AcceptErrorKind.EXPIRED: "Session expired",
    AcceptErrorKind.INVALID: "Invalid link",
    AcceptErrorKind.EMPTY: "No invoices",
    AcceptErrorKind.OTHER: "Error",
}


class BatchLoader:
    """Turns a document identifier into a SigningBatch with rendered invoices.

    Pipeline: accept -> build sessions -> fetch + render every invoice
    concurrently. A failed render only affects its own invoice.
    """

    def __init__(
        self,
        api_client: SigningApiClient,
        renderer: BasePdfRenderer,
        notifier: BaseNotifier,
    ) -> None:
        self._api_client = api_client
        self._renderer = renderer
        self._notifier = notifier

    async def load(self, document_identifier: str) -> SigningBatch:
        """Accept the signing request and render all of its invoices.

        Raises:
            AcceptError: if the batch cannot be accepted; no batch is built.
        """
        Log.info("Loading signing batch", batch=document_identifier)
        try:
            accepted = await self._api_client.accept_batch(document_identifier)
        except AcceptError as exc:
            Log.error(
                f"Accept failed ({exc.kind.value}): {exc.message}",
                batch=document_identifier,
            )
            self._notifier.error(_ACCEPT_ERROR_TITLES[exc.kind], exc.message)
            raise

        batch = SigningBatch(
            document_identifier=document_identifier,
            invoices=[InvoiceSession(seed=seed) for seed in accepted.sessions],
        )
        # Every load settles before an unexpected error propagates.
        results = await asyncio.gather(
            *(self._load_invoice(batch.document_identifier, inv) for inv in batch.invoices),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        failed = sum(1 for inv in batch.invoices if inv.is_terminal)
        Log.info(
            f"Loaded {batch.invoice_count - failed}/{batch.invoice_count} invoice(s)",
            batch=document_identifier,
        )
        return batch

    async def _load_invoice(self, batch_document_identifier: str, invoice: InvoiceSession) -> None:
        try:
            invoice.pages = await self._render_invoice(batch_document_identifier, invoice.invoice_id)
        except RenderError as exc:
            Log.error(f"Unable to load invoice: {exc}", invoice=invoice.invoice_id)
            invoice.pages = []
            invoice.fail(RENDER_ERROR_REASON)
            return
        Log.info(f"Rendered {len(invoice.pages)} page(s)", invoice=invoice.invoice_id)

    async def _render_invoice(
        self, batch_document_identifier: str, invoice_id: str
    ) -> list[RenderedPage]:
        try:
            pdf_bytes = await self._api_client.fetch_invoice_pdf(
                batch_document_identifier, invoice_id
            )
            return self._renderer.render(pdf_bytes)
        except (PdfFetchError, PdfRenderError) as exc:
            raise RenderError(invoice_id, str(exc)) from exc
