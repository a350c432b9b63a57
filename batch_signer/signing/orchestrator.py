"""Sequential batch signing: PREPARE -> AGENT-SIGN -> COMPLETE for each invoice."""

from collections.abc import Awaitable, Callable

from batch_signer.agent.exceptions import AgentError
from batch_signer.agent.models import Certificate
from batch_signer.api.exceptions import CompleteError, PrepareError
from batch_signer.batch.models import InvoiceSession, InvoiceState, SigningBatch
from batch_signer.logging.logger import Log
from batch_signer.notifications.base import BaseNotifier
from batch_signer.signing.aggregator import aggregate
from batch_signer.signing.exceptions import PreconditionError
from batch_signer.signing.models import BatchOutcome, OutcomeKind, SigningProgress, SigningRun
from batch_signer.signing.steps import InvoiceContext, InvoiceStep

ReadinessCheck = Callable[[], Awaitable[bool]]

# Failures absorbed at the invoice boundary; anything else aborts the run.
INVOICE_FAILURES = (PrepareError, AgentError, CompleteError)

TERMS_NOT_ACCEPTED_TITLE = "Attention"
TERMS_NOT_ACCEPTED_TEXT = "Please accept the terms before signing."


class SigningOrchestrator:
    """Drives every invoice of a batch through the signing protocol, one at a time.

    The agent guards a single hardware key, so invoice i+1 never starts
    before invoice i has been signed or has failed. One invoice failing never
    stops the others. At most one run is active per orchestrator; the handle
    of the active run is exposed as ``active_run``.
    """

    def __init__(
        self,
        steps: list[InvoiceStep],
        readiness_check: ReadinessCheck,
        notifier: BaseNotifier,
    ) -> None:
        self._steps = steps
        self._readiness_check = readiness_check
        self._notifier = notifier
        self._active_run: SigningRun | None = None

    @property
    def active_run(self) -> SigningRun | None:
        return self._active_run

    @property
    def is_running(self) -> bool:
        return self._active_run is not None

    async def sign_batch(
        self,
        batch: SigningBatch,
        certificate: Certificate,
        *,
        terms_accepted: bool,
    ) -> BatchOutcome | None:
        """Sign every loaded invoice of ``batch`` with ``certificate``.

        Returns None without touching any invoice when the terms are not
        accepted, a run is already in progress, or the batch is empty.

        Raises:
            PreconditionError: if the agent or certificate is not ready.
        """
        if not terms_accepted:
            self._notifier.warning(TERMS_NOT_ACCEPTED_TITLE, TERMS_NOT_ACCEPTED_TEXT)
            return None
        if self.is_running:
            Log.warning(
                "Signing already in progress, ignoring request",
                batch=batch.document_identifier,
            )
            return None
        if not batch.invoices:
            Log.warning("Nothing to sign", batch=batch.document_identifier)
            return None

        run = SigningRun(
            batch_document_identifier=batch.document_identifier,
            total=batch.invoice_count,
        )
        self._active_run = run
        try:
            return await self._run(run, batch, certificate)
        except PreconditionError:
            raise
        except Exception as exc:
            Log.exception(f"Signing run aborted: {exc}", batch=batch.document_identifier)
            self._notifier.error("Signing error", str(exc) or "An unexpected error occurred.")
            raise
        finally:
            self._active_run = None

    async def _run(
        self, run: SigningRun, batch: SigningBatch, certificate: Certificate
    ) -> BatchOutcome:
        self._notifier.progress("Checking certificate...")
        if not await self._readiness_check():
            Log.warning("Agent or certificate not ready", batch=batch.document_identifier)
            raise PreconditionError("Signing agent or certificate is not available")

        Log.info(
            f"Signing {batch.invoice_count} invoice(s) with certificate {certificate.alias}",
            batch=batch.document_identifier,
        )
        for index, invoice in enumerate(batch.invoices, start=1):
            await self._sign_invoice(run, index, batch, invoice, certificate)

        outcome = aggregate(batch.invoices)
        Log.info(
            f"Signing finished: {outcome.summary()} ({outcome.kind.value})",
            batch=batch.document_identifier,
        )
        self._present(outcome)
        return outcome

    async def _sign_invoice(
        self,
        run: SigningRun,
        index: int,
        batch: SigningBatch,
        invoice: InvoiceSession,
        certificate: Certificate,
    ) -> None:
        if invoice.state is not InvoiceState.LOADED:
            Log.info(
                f"Skipping invoice in state {invoice.state.value}",
                invoice=invoice.invoice_id,
            )
            return

        context = InvoiceContext(
            batch_document_identifier=batch.document_identifier,
            invoice=invoice,
            certificate=certificate,
        )
        for step in self._steps:
            run.progress = SigningProgress(
                current=index,
                total=run.total,
                document_identifier=invoice.document_identifier,
                invoice_id=invoice.invoice_id,
                step=step.step,
            )
            self._notifier.progress(run.progress.describe())
            try:
                await step.run(context)
            except INVOICE_FAILURES as exc:
                Log.error(
                    f"Invoice failed at {step.step.value}: {exc}",
                    invoice=invoice.invoice_id,
                )
                invoice.fail(str(exc))
                return

    def _present(self, outcome: BatchOutcome) -> None:
        if outcome.kind is OutcomeKind.ALL_SIGNED:
            self._notifier.success(
                "All invoices signed!",
                f"{outcome.total} invoice(s) signed successfully.",
            )
            return
        failures = "\n".join(outcome.failed_invoice_labels)
        self._notifier.warning(
            "Partial signature" if outcome.kind is OutcomeKind.PARTIAL else "No invoice signed",
            f"{outcome.summary()}.\nFailures:\n{failures}",
        )
