from unittest.mock import MagicMock

import pytest

from batch_signer.pdf.factory import PdfRendererFactory
from batch_signer.pdf.pdfplumber_adapter import PdfPlumberAdapter
from batch_signer.pdf.pymupdf_adapter import PyMuPdfAdapter


def _make_settings(pdf_engine: str, scale: float = 1.4) -> MagicMock:
    """Create a minimal Settings-like object with only the PDF fields."""
    return MagicMock(pdf_engine=pdf_engine, pdf_render_scale=scale)


class TestPdfRendererFactory:
    def test_creates_pymupdf_adapter(self) -> None:
        adapter = PdfRendererFactory.create(_make_settings("pymupdf"))
        assert isinstance(adapter, PyMuPdfAdapter)

    def test_creates_pdfplumber_adapter(self) -> None:
        adapter = PdfRendererFactory.create(_make_settings("pdfplumber"))
        assert isinstance(adapter, PdfPlumberAdapter)

    def test_is_case_insensitive(self) -> None:
        adapter = PdfRendererFactory.create(_make_settings("PyMuPDF"))
        assert isinstance(adapter, PyMuPdfAdapter)

    def test_passes_render_scale(self) -> None:
        adapter = PdfRendererFactory.create(_make_settings("pymupdf", scale=2.0))
        assert adapter.scale == 2.0

    def test_raises_for_unknown_engine(self) -> None:
        with pytest.raises(ValueError, match="Unknown PDF engine"):
            PdfRendererFactory.create(_make_settings("unknown"))

    def test_rejects_non_positive_scale(self) -> None:
        with pytest.raises(ValueError, match="must be positive"):
            PdfRendererFactory.create(_make_settings("pymupdf", scale=0))
