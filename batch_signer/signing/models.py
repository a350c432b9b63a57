from dataclasses import dataclass, field
from enum import Enum


class OutcomeKind(str, Enum):
    ALL_SIGNED = "all-signed"
    PARTIAL = "partial"
    NONE_SIGNED = "none-signed"


class SigningStep(str, Enum):
    PREPARE = "prepare"
    AGENT_SIGN = "agent-sign"
    COMPLETE = "complete"


@dataclass(frozen=True)
class BatchOutcome:
    """Result of one signing run, computed once after the loop."""

    total: int
    signed_count: int
    failed_invoice_labels: tuple[str, ...] = ()

    @property
    def kind(self) -> OutcomeKind:
        if not self.failed_invoice_labels and self.signed_count == self.total:
            return OutcomeKind.ALL_SIGNED
        if self.signed_count == 0:
            return OutcomeKind.NONE_SIGNED
        return OutcomeKind.PARTIAL

    def summary(self) -> str:
        return f"{self.signed_count}/{self.total} invoice(s) signed"


@dataclass(frozen=True)
class SigningProgress:
    current: int
    total: int
    document_identifier: str
    invoice_id: str
    step: SigningStep

    def describe(self) -> str:
        return (
            f"Invoice {self.current}/{self.total} - {self.document_identifier} "
            f"(No. {self.invoice_id}): {self.step.value}"
        )


@dataclass
class SigningRun:
    """Handle for the run in progress; the orchestrator holds at most one."""

    batch_document_identifier: str
    total: int
    progress: SigningProgress | None = field(default=None)
