import pymupdf

from batch_signer.pdf.base import BasePdfRenderer
from batch_signer.pdf.exceptions import PdfRenderError
from batch_signer.pdf.models import RenderedPage


class PyMuPdfAdapter(BasePdfRenderer):
    """Renders PDF pages to PNG using PyMuPDF."""

    def render(self, pdf_bytes: bytes) -> list[RenderedPage]:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                total = doc.page_count
                if total == 0:
                    raise PdfRenderError("document has no pages")
                matrix = pymupdf.Matrix(self._scale, self._scale)
                return [
                    RenderedPage(
                        image_png=page.get_pixmap(matrix=matrix).tobytes("png"),
                        page_number=page.number + 1,
                        total_pages=total,
                    )
                    for page in doc
                ]
        except PdfRenderError:
            raise
        except Exception as exc:
            raise PdfRenderError(f"pymupdf rendering failed: {exc}") from exc
