import io

import pdfplumber
from pdfplumber.page import Page

from batch_signer.pdf.base import BasePdfRenderer
from batch_signer.pdf.exceptions import PdfRenderError
from batch_signer.pdf.models import RenderedPage

_POINTS_PER_INCH = 72


class PdfPlumberAdapter(BasePdfRenderer):
    """Renders PDF pages to PNG using pdfplumber (pypdfium2 backend)."""

    def render(self, pdf_bytes: bytes) -> list[RenderedPage]:
        resolution = round(_POINTS_PER_INCH * self._scale)
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                total = len(pdf.pages)
                if total == 0:
                    raise PdfRenderError("document has no pages")
                return [
                    RenderedPage(
                        image_png=self._to_png(page, resolution),
                        page_number=number,
                        total_pages=total,
                    )
                    for number, page in enumerate(pdf.pages, start=1)
                ]
        except PdfRenderError:
            raise
        except Exception as exc:
            raise PdfRenderError(f"pdfplumber rendering failed: {exc}") from exc

    @staticmethod
    def _to_png(page: Page, resolution: int) -> bytes:
        buf = io.BytesIO()
        page.to_image(resolution=resolution).original.save(buf, format="PNG")
        return buf.getvalue()
