"""PDF text extraction using PyMuPDF."""

import logging

import fitz  # PyMuPDF


class PdfTextExtractor:
    """Best-effort PDF to plain text. Never raises: unreadable files yield ""."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logging = logger

    def extract_text(self, pdf_path: str) -> str:
        """Extract the text of every page, one line break after each page.

        Args:
            pdf_path (str): Path of the PDF file.

        Returns:
            str: The extracted text, or an empty string if extraction failed.
        """
        try:
            with fitz.open(pdf_path) as doc:
                return "".join(page.get_text() + "\n" for page in doc)
        except Exception as exc:
            self.logging.warning("Text extraction failed for %s: %s", pdf_path, exc)
            return ""
