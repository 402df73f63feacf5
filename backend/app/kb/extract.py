"""Plain-text extraction for uploaded PDF and TXT files."""
import logging
from enum import Enum
from io import BytesIO

import PyPDF2

logger = logging.getLogger(__name__)


class FileKind(str, Enum):
    """Ingestible file kinds, valued by their stored file extension."""
    PDF = ".pdf"
    TXT = ".txt"


def _normalize(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def extract_text_from_pdf(content: bytes) -> str:
    """
    Concatenate the text layers of every page in a PDF.

    Raises whatever PyPDF2 raises when the document cannot be parsed.
    """
    pdf_reader = PyPDF2.PdfReader(BytesIO(content))
    pages = [page.extract_text() or "" for page in pdf_reader.pages]
    logger.debug(f"Extracted text from {len(pages)} PDF pages")
    return _normalize("\n".join(pages))


def extract_text_from_txt(content: bytes) -> str:
    """Decode UTF-8 text best-effort and strip NUL characters."""
    text = content.decode("utf-8", errors="replace").replace("\x00", "")
    return _normalize(text)


def extract_text(content: bytes, kind: FileKind) -> str:
    """Extract normalized plain text from an uploaded file of the given kind."""
    if kind is FileKind.PDF:
        return extract_text_from_pdf(content)
    return extract_text_from_txt(content)
