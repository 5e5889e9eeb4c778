"""
PDF Text Extraction Module

Extracts the plain text of a PDF statement so it can go through the
same parser as pasted text.
"""

import io
import logging
from pathlib import Path

import pdfplumber

from .exceptions import PdfExtractionError

logger = logging.getLogger(__name__)


def extract_pdf_text(pdf_bytes: bytes, source_name: str = "statement.pdf") -> str:
    """Extract the text of every page, joined by newlines.

    Args:
        pdf_bytes: Raw PDF content
        source_name: Name used in error messages

    Returns:
        Page texts joined with newlines

    Raises:
        PdfExtractionError: If the PDF cannot be opened or has no text
    """
    if not pdf_bytes:
        raise PdfExtractionError(source_name, "file is empty")

    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            if not pdf.pages:
                raise PdfExtractionError(source_name, "PDF has no pages")
            page_texts = [page.extract_text() or "" for page in pdf.pages]
    except PdfExtractionError:
        raise
    except Exception as e:
        if "password" in str(e).lower() or "encrypt" in str(e).lower():
            raise PdfExtractionError(source_name, "PDF is password protected") from e
        raise PdfExtractionError(source_name, str(e) or type(e).__name__) from e

    text = "\n".join(page_texts)
    if not text.strip():
        raise PdfExtractionError(source_name, "PDF contains no extractable text")

    logger.info(f"Extracted {len(text)} characters from {len(page_texts)} pages of {source_name}")
    return text


def extract_pdf_file(file_path: Path | str) -> str:
    """Extract text from a PDF on disk."""
    file_path = Path(file_path)
    try:
        content = file_path.read_bytes()
    except OSError as e:
        raise PdfExtractionError(str(file_path), str(e)) from e
    return extract_pdf_text(content, source_name=file_path.name)
