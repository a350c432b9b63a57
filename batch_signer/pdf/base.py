from abc import ABC, abstractmethod

from batch_signer.pdf.models import RenderedPage


class BasePdfRenderer(ABC):
    """Contract for all PDF page rendering adapters."""

    def __init__(self, scale: float = 1.4) -> None:
        if scale <= 0:
            raise ValueError(f"Render scale must be positive, got {scale}")
        self._scale = scale

    @property
    def scale(self) -> float:
        return self._scale

    @abstractmethod
    def render(self, pdf_bytes: bytes) -> list[RenderedPage]:
        """Render every page of a PDF into a PNG image.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            Rendered pages in source order, numbered from 1.

        Raises:
            PdfRenderError: if the document cannot be opened or rendered.
        """
