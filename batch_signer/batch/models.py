from dataclasses import dataclass, field
from enum import Enum

from batch_signer.api.models import InvoiceSessionSeed
from batch_signer.batch.exceptions import InvalidTransitionError
from batch_signer.logging.logger import Log
from batch_signer.pdf.models import RenderedPage

RENDER_ERROR_REASON = "render-error"


class InvoiceState(str, Enum):
    LOADED = "loaded"
    PREPARING = "preparing"
    PREPARED = "prepared"
    AGENT_SIGNING = "agent-signing"
    AGENT_SIGNED = "agent-signed"
    COMPLETING = "completing"
    SIGNED = "signed"
    FAILED = "failed"


_NEXT_STATE: dict[InvoiceState, InvoiceState] = {
    InvoiceState.LOADED: InvoiceState.PREPARING,
    InvoiceState.PREPARING: InvoiceState.PREPARED,
    InvoiceState.PREPARED: InvoiceState.AGENT_SIGNING,
    InvoiceState.AGENT_SIGNING: InvoiceState.AGENT_SIGNED,
    InvoiceState.AGENT_SIGNED: InvoiceState.COMPLETING,
    InvoiceState.COMPLETING: InvoiceState.SIGNED,
}

TERMINAL_STATES = frozenset({InvoiceState.SIGNED, InvoiceState.FAILED})


@dataclass
class InvoiceSession:
    """One invoice's identity and signing protocol state.

    Identity comes from the frozen ACCEPT seed, so the session token cannot
    be reassigned during a run.
    """

    seed: InvoiceSessionSeed
    state: InvoiceState = InvoiceState.LOADED
    failure_reason: str | None = None
    digest: str | None = None
    signature_value: str | None = None
    certificate_bytes: str | None = None
    pages: list[RenderedPage] = field(default_factory=list)

    @property
    def invoice_id(self) -> str:
        return self.seed.invoice_id

    @property
    def document_identifier(self) -> str:
        return self.seed.document_identifier

    @property
    def signing_session_id(self) -> str:
        return self.seed.signing_session_id

    @property
    def label(self) -> str:
        return f"{self.document_identifier} (No. {self.invoice_id})"

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, target: InvoiceState) -> None:
        """Move one step forward in the protocol.

        Raises:
            InvalidTransitionError: if ``target`` is not the next state or the
                output the target state depends on has not been recorded.
        """
        expected = _NEXT_STATE.get(self.state)
        if target is not expected:
            raise InvalidTransitionError(
                f"Invoice {self.invoice_id}: cannot move from {self.state.value} "
                f"to {target.value}"
            )
        missing = self._missing_outputs(target)
        if missing:
            raise InvalidTransitionError(
                f"Invoice {self.invoice_id}: cannot enter {target.value} "
                f"without {', '.join(missing)}"
            )
        Log.debug(
            f"Invoice {self.state.value} -> {target.value}", invoice=self.invoice_id
        )
        self.state = target

    def fail(self, reason: str) -> None:
        """Mark the invoice as failed.

        Raises:
            InvalidTransitionError: if the invoice already reached a terminal state.
        """
        if self.is_terminal:
            raise InvalidTransitionError(
                f"Invoice {self.invoice_id}: cannot fail from terminal state "
                f"{self.state.value}"
            )
        Log.debug(f"Invoice {self.state.value} -> failed", invoice=self.invoice_id)
        self.state = InvoiceState.FAILED
        self.failure_reason = reason

    def _missing_outputs(self, target: InvoiceState) -> list[str]:
        if target is InvoiceState.PREPARED:
            return [] if self.digest else ["digest"]
        if target is InvoiceState.AGENT_SIGNED:
            missing = []
            if not self.signature_value:
                missing.append("signature_value")
            if not self.certificate_bytes:
                missing.append("certificate_bytes")
            return missing
        return []


@dataclass
class SigningBatch:
    """All invoices accepted together under one document link, in ACCEPT order."""

    document_identifier: str
    invoices: list[InvoiceSession] = field(default_factory=list)

    @property
    def invoice_count(self) -> int:
        return len(self.invoices)

