"""Text Stage - Obtain raw text from a shipping document.

PDFs are read with PyMuPDF's text layer; images go through Tesseract.
Any failure yields an empty string, which later classifies as unknown.
"""

import logging
from pathlib import Path

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = {".pdf"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp"}


class DocumentTextSource:
    """Reads text out of guide PDFs and label photos."""

    def __init__(self, language: str = "spa"):
        """Initialize text source.

        Args:
            language: Tesseract language code(s) for image OCR.
        """
        self.language = language

    def read(self, path: Path | str) -> str:
        """Return the document text, or ``""`` if it cannot be read."""
        path = Path(path)
        suffix = path.suffix.lower()

        try:
            if suffix in PDF_EXTENSIONS:
                return self._read_pdf(path)
            if suffix in IMAGE_EXTENSIONS:
                return self._read_image(path)
        except (OSError, RuntimeError, ValueError, pytesseract.TesseractError) as exc:
            logger.error("Could not read %s: %s", path.name, exc, extra={"event": "text_read_failed"})
            return ""

        logger.warning("Unsupported file type: %s", suffix, extra={"event": "text_unsupported"})
        return ""

    def _read_pdf(self, path: Path) -> str:
        with fitz.open(path) as pdf_doc:
            return "\n".join(page.get_text() for page in pdf_doc)

    def _read_image(self, path: Path) -> str:
        with Image.open(path) as image:
            text = pytesseract.image_to_string(image, lang=self.language)
        return text.strip()
