"""PDF text extraction and page rendering."""

import io
from dataclasses import dataclass

import fitz  # PyMuPDF
from PIL import Image

from .loader import LoadedDocument


@dataclass
class PDFPage:
    """Represents a single PDF page."""

    page_number: int
    text: str
    image: Image.Image | None = None


class PDFParser:
    """Parse PDF transcripts into text and, when needed, page images."""

    def __init__(self, dpi: int = 150, max_pages: int = 10):
        """Initialize PDF parser.

        Args:
            dpi: Resolution for page rendering sent to the vision model.
            max_pages: Pages rendered at most; long transcripts rarely exceed this.
        """
        self.dpi = dpi
        self.zoom = dpi / 72  # PDF default is 72 DPI
        self.max_pages = max_pages

    def extract_text(self, document: LoadedDocument) -> str:
        """Return the embedded text layer of all pages, or "" for scanned PDFs."""
        pdf_doc = fitz.open(stream=document.content, filetype="pdf")

        try:
            return "\n\n".join(page.get_text("text") for page in pdf_doc).strip()
        finally:
            pdf_doc.close()

    def render_pages(self, document: LoadedDocument) -> list[PDFPage]:
        """Render pages to images for vision extraction.

        Args:
            document: LoadedDocument containing PDF bytes.

        Returns:
            List of PDFPage objects.
        """
        pages = []
        pdf_doc = fitz.open(stream=document.content, filetype="pdf")

        try:
            matrix = fitz.Matrix(self.zoom, self.zoom)
            for page_num in range(min(len(pdf_doc), self.max_pages)):
                page = pdf_doc[page_num]
                pixmap = page.get_pixmap(matrix=matrix)
                image = Image.open(io.BytesIO(pixmap.tobytes("png")))

                pages.append(PDFPage(
                    page_number=page_num + 1,
                    text=page.get_text("text"),
                    image=image,
                ))
        finally:
            pdf_doc.close()

        return pages
