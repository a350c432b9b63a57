import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from batch_signer.agent.models import Certificate


def _make_pdf(*page_texts: str) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for text in page_texts:
        c.drawString(72, 720, text)
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    return _make_pdf("Invoice 001")


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a three-page PDF with known text on each page."""
    return _make_pdf("Page one content", "Page two content", "Page three content")


@pytest.fixture()
def certificate() -> Certificate:
    return Certificate(
        alias="Jane Doe",
        serial_number="51255aef",
        algorithm="SHA1WithRSA",
        issuer="CN=Test CA,O=Example,C=FR",
        subject="CN=Jane Doe",
        type="SSCD",
        valid_from="2025-01-01",
        valid_until="2027-01-01",
    )


@pytest.fixture()
def anyio_backend():
    # The application runs on asyncio (asyncio.run / asyncio.gather); trio is not a dependency.
    return "asyncio"
