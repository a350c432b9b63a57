from abc import ABC, abstractmethod
from dataclasses import dataclass

from batch_signer.agent.client import AgentClient
from batch_signer.agent.models import Certificate
from batch_signer.api.client import SigningApiClient
from batch_signer.batch.models import InvoiceSession, InvoiceState
from batch_signer.logging.logger import Log
from batch_signer.signing.models import SigningStep


@dataclass(slots=True)
class InvoiceContext:
    batch_document_identifier: str
    invoice: InvoiceSession
    certificate: Certificate


class InvoiceStep(ABC):
    step: SigningStep

    @abstractmethod
    async def run(self, context: InvoiceContext) -> None:
        raise NotImplementedError


class PrepareStep(InvoiceStep):
    step = SigningStep.PREPARE

    def __init__(self, api_client: SigningApiClient) -> None:
        self._api_client = api_client

    async def run(self, context: InvoiceContext) -> None:
        invoice = context.invoice
        invoice.advance(InvoiceState.PREPARING)
        result = await self._api_client.prepare_invoice(
            context.batch_document_identifier,
            invoice.signing_session_id,
            context.certificate.alias,
            context.certificate.serial_number,
            invoice_id=invoice.invoice_id,
        )
        invoice.digest = result.digest
        invoice.advance(InvoiceState.PREPARED)
        Log.info("Digest received", invoice=invoice.invoice_id)


class AgentSignStep(InvoiceStep):
    step = SigningStep.AGENT_SIGN

    def __init__(self, agent_client: AgentClient) -> None:
        self._agent_client = agent_client

    async def run(self, context: InvoiceContext) -> None:
        invoice = context.invoice
        if invoice.digest is None:
            raise ValueError("InvoiceSession.digest must be set before agent signing")
        invoice.advance(InvoiceState.AGENT_SIGNING)
        signature = await self._agent_client.sign_digest(
            invoice.digest,
            context.certificate.algorithm,
            context.certificate.alias,
        )
        invoice.signature_value = signature.signature_value
        invoice.certificate_bytes = signature.certificate
        invoice.advance(InvoiceState.AGENT_SIGNED)
        Log.info("Digest signed by agent", invoice=invoice.invoice_id)


class CompleteStep(InvoiceStep):
    step = SigningStep.COMPLETE

    def __init__(self, api_client: SigningApiClient) -> None:
        self._api_client = api_client

    async def run(self, context: InvoiceContext) -> None:
        invoice = context.invoice
        if invoice.signature_value is None or invoice.certificate_bytes is None:
            raise ValueError(
                "InvoiceSession.signature_value and certificate_bytes must be set before complete"
            )
        invoice.advance(InvoiceState.COMPLETING)
        # Same token as PREPARE: the one issued by ACCEPT for this invoice.
        await self._api_client.complete_invoice(
            context.batch_document_identifier,
            invoice.signing_session_id,
            invoice.signature_value,
            invoice.certificate_bytes,
            context.certificate.algorithm,
            invoice_id=invoice.invoice_id,
        )
        invoice.advance(InvoiceState.SIGNED)
        Log.info("Invoice signed", invoice=invoice.invoice_id)


def build_invoice_steps(
    api_client: SigningApiClient, agent_client: AgentClient
) -> list[InvoiceStep]:
    """Protocol steps in the order every invoice must go through them."""
    return [
        PrepareStep(api_client),
        AgentSignStep(agent_client),
        CompleteStep(api_client),
    ]
