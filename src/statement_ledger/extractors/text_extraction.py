"""
Document bytes to statement text.

PDFs go through pdfplumber's layout-preserving text extraction so that table
columns stay separated by runs of spaces. CSV and plain text are decoded.
"""

import io
import logging

import pdfplumber

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPES = ("application/pdf",)
CSV_MEDIA_TYPES = ("text/csv", "application/csv", "application/vnd.ms-excel")
TEXT_MEDIA_TYPES = ("text/plain",)


class UnsupportedMediaTypeError(Exception):
    """Raised when a document's media type cannot be turned into text."""

    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"Unsupported media type: {media_type}")


def _base_type(media_type: str) -> str:
    return (media_type or "").split(";")[0].strip().lower()


def is_csv(media_type: str) -> bool:
    return _base_type(media_type) in CSV_MEDIA_TYPES


def decode_text(data: bytes) -> str:
    """Decode text bytes, tolerating a BOM and legacy encodings."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def extract_pdf_text(data: bytes) -> str:
    """Extract layout-preserving text from every page, pages separated by a blank line."""
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text(layout=True) or "")

    text = "\n\n".join(pages)
    logger.info(f"Extracted {len(text)} characters from {len(pages)} PDF page(s)")
    return text


def extract_text(data: bytes, media_type: str) -> str:
    """
    Turn raw document bytes into statement text.

    Args:
        data: Raw document bytes
        media_type: Declared media type (PDF, CSV or plain text)

    Raises:
        UnsupportedMediaTypeError: For any other media type
    """
    media_type = _base_type(media_type)

    if media_type in PDF_MEDIA_TYPES:
        return extract_pdf_text(data)
    if media_type in CSV_MEDIA_TYPES or media_type in TEXT_MEDIA_TYPES:
        return decode_text(data)

    raise UnsupportedMediaTypeError(media_type)
