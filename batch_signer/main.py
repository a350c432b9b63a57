import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import click
import httpx

from batch_signer.agent.client import AgentClient
from batch_signer.agent.exceptions import AgentError, AgentUnreachableError
from batch_signer.agent.models import Certificate
from batch_signer.agent.readiness import (
    AGENT_NOT_RUNNING_TEXT,
    AGENT_NOT_RUNNING_TITLE,
    AgentReadinessCheck,
)
from batch_signer.api.auth import build_token_provider
from batch_signer.api.client import SigningApiClient
from batch_signer.api.exceptions import AcceptError
from batch_signer.batch.loader import BatchLoader
from batch_signer.batch.models import SigningBatch
from batch_signer.config.settings import Settings
from batch_signer.logging.logger import Log
from batch_signer.notifications.base import BaseNotifier
from batch_signer.notifications.console_notifier import ConsoleNotifier
from batch_signer.pdf.factory import PdfRendererFactory
from batch_signer.signing.exceptions import PreconditionError
from batch_signer.signing.models import OutcomeKind
from batch_signer.signing.orchestrator import (
    TERMS_NOT_ACCEPTED_TEXT,
    TERMS_NOT_ACCEPTED_TITLE,
    SigningOrchestrator,
)
from batch_signer.signing.steps import build_invoice_steps


@dataclass
class Services:
    agent_client: AgentClient
    loader: BatchLoader
    orchestrator: SigningOrchestrator


@asynccontextmanager
async def open_services(
    settings: Settings, notifier: BaseNotifier
) -> AsyncIterator[Services]:
    """Build clients, loader and orchestrator; close HTTP connections on exit."""
    async with (
        httpx.AsyncClient(
            base_url=settings.api_base_url, timeout=settings.api_timeout_seconds
        ) as api_http,
        httpx.AsyncClient(
            base_url=settings.agent_base_url, timeout=settings.agent_timeout_seconds
        ) as agent_http,
    ):
        api_client = SigningApiClient(api_http, build_token_provider(settings, api_http))
        agent_client = AgentClient(agent_http)
        yield Services(
            agent_client=agent_client,
            loader=BatchLoader(api_client, PdfRendererFactory.create(settings), notifier),
            orchestrator=SigningOrchestrator(
                steps=build_invoice_steps(api_client, agent_client),
                readiness_check=AgentReadinessCheck(agent_client, notifier),
                notifier=notifier,
            ),
        )


def select_certificate(certificates: list[Certificate], alias: str | None) -> Certificate | None:
    """Pick the certificate named by ``alias``, or the first one when no alias is given."""
    if alias is None:
        return certificates[0] if certificates else None
    return next((cert for cert in certificates if cert.alias == alias), None)


async def list_certificates(settings: Settings, notifier: BaseNotifier) -> int:
    async with open_services(settings, notifier) as services:
        try:
            certificates = await services.agent_client.list_certificates()
        except AgentUnreachableError:
            notifier.error(AGENT_NOT_RUNNING_TITLE, AGENT_NOT_RUNNING_TEXT)
            return 1
        except AgentError as exc:
            notifier.error("Certificate listing failed", str(exc))
            return 1

    if not certificates:
        notifier.warning("No certificate", "No valid certificate was found on this computer.")
        return 1
    for cert in certificates:
        click.echo(
            f"{cert.alias}\tserial={cert.serial_number}\talgorithm={cert.algorithm}\t"
            f"issuer={cert.issuer_common_name}\tvalid={cert.valid_from}..{cert.valid_until}"
        )
    return 0


async def review_batch(
    settings: Settings, notifier: BaseNotifier, document_identifier: str, output_dir: Path
) -> int:
    async with open_services(settings, notifier) as services:
        try:
            batch = await services.loader.load(document_identifier)
        except AcceptError:
            return 1

    write_pages(batch, output_dir)
    for invoice in batch.invoices:
        status = invoice.failure_reason or f"{len(invoice.pages)} page(s)"
        click.echo(f"{invoice.label}: {status}")
    return 0


def write_pages(batch: SigningBatch, output_dir: Path) -> None:
    """Write rendered pages as {output_dir}/{invoice_id}/page-{n}.png"""
    for invoice in batch.invoices:
        if not invoice.pages:
            continue
        invoice_dir = output_dir / invoice.invoice_id
        invoice_dir.mkdir(parents=True, exist_ok=True)
        for page in invoice.pages:
            (invoice_dir / f"page-{page.page_number}.png").write_bytes(page.image_png)


async def sign_document(
    settings: Settings,
    notifier: BaseNotifier,
    document_identifier: str,
    alias: str | None,
    terms_accepted: bool,
) -> int:
    if not terms_accepted:
        notifier.warning(TERMS_NOT_ACCEPTED_TITLE, TERMS_NOT_ACCEPTED_TEXT)
        return 1

    async with open_services(settings, notifier) as services:
        try:
            batch = await services.loader.load(document_identifier)
        except AcceptError:
            return 1

        try:
            certificate = select_certificate(
                await services.agent_client.list_certificates(), alias
            )
        except AgentUnreachableError:
            notifier.error(AGENT_NOT_RUNNING_TITLE, AGENT_NOT_RUNNING_TEXT)
            return 1
        except AgentError as exc:
            Log.warning(f"Certificate listing failed: {exc}", batch=document_identifier)
            certificate = None
        if certificate is None:
            notifier.warning(
                "No certificate",
                f"Certificate '{alias}' was not found." if alias else "No certificate available.",
            )
            return 1

        try:
            outcome = await services.orchestrator.sign_batch(
                batch, certificate, terms_accepted=terms_accepted
            )
        except PreconditionError as exc:
            Log.error(str(exc), batch=document_identifier)
            return 1

    if outcome is None or outcome.kind is not OutcomeKind.ALL_SIGNED:
        return 1
    return 0


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Review and sign invoice batches with a hardware-backed certificate."""
    settings = Settings()
    Log.configure(settings.log_level)
    ctx.obj = settings


@cli.command("certificates")
@click.pass_obj
def certificates_command(settings: Settings) -> None:
    """List the certificates exposed by the local signing agent."""
    raise SystemExit(asyncio.run(list_certificates(settings, ConsoleNotifier())))


@cli.command("review")
@click.argument("document_identifier")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("pages"),
    show_default=True,
    help="Directory receiving the rendered pages.",
)
@click.pass_obj
def review_command(settings: Settings, document_identifier: str, output_dir: Path) -> None:
    """Accept a signing request and render its invoices for review."""
    raise SystemExit(
        asyncio.run(review_batch(settings, ConsoleNotifier(), document_identifier, output_dir))
    )


@cli.command("sign")
@click.argument("document_identifier")
@click.option("--alias", default=None, help="Certificate alias (defaults to the first one).")
@click.option("--accept-terms", is_flag=True, help="Accept the signing terms.")
@click.pass_obj
def sign_command(
    settings: Settings, document_identifier: str, alias: str | None, accept_terms: bool
) -> None:
    """Sign every invoice of a signing request."""
    raise SystemExit(
        asyncio.run(
            sign_document(settings, ConsoleNotifier(), document_identifier, alias, accept_terms)
        )
    )


if __name__ == "__main__":
    cli()
