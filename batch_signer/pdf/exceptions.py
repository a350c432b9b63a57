class PdfRenderError(Exception):
    """Raised when a PDF byte stream cannot be rendered into page images."""
