from dataclasses import dataclass


@dataclass(frozen=True)
class RenderedPage:
    """One rendered PDF page as a PNG bitmap."""

    image_png: bytes
    page_number: int
    total_pages: int
