"""Extract plain text from stored CV files (PDF, DOCX, legacy DOC)."""

import logging

import pdfplumber
from docx import Document

from ..errors import ExtractionError, NotFound, UnsupportedMediaType
from ..storage import from_locator

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC = "application/msword"

SUPPORTED_MEDIA_TYPES = frozenset({PDF, DOCX, DOC})


def _extract_pdf(path) -> str:
    try:
        with pdfplumber.open(path) as pdf:
            parts = [page.extract_text() or "" for page in pdf.pages]
    except Exception as exc:
        # pdfminer raises PDFSyntaxError and a range of internal errors on corrupt input
        raise ExtractionError(f"Failed to extract text from PDF: {exc}", cause=exc) from exc
    return "\n".join(p for p in parts if p)


def _extract_docx(path) -> str:
    doc = Document(path)
    parts = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


class TextExtractor:
    """Reads a stored file and returns its stripped text. Never modifies the file."""

    def extract(self, location: str, media_type: str) -> str:
        if media_type not in SUPPORTED_MEDIA_TYPES:
            raise UnsupportedMediaType(f"Unsupported file type: {media_type}")

        path = from_locator(location)
        if not path.is_file():
            raise NotFound(f"File not found: {path}")

        if media_type == PDF:
            text = _extract_pdf(path)
        else:
            try:
                text = _extract_docx(path)
            except Exception as exc:
                # python-docx surfaces zip, package and lxml XMLSyntaxError failures on corrupt input
                if media_type == DOC:
                    raise ExtractionError(
                        f"Failed to extract text from DOC file. Please convert to PDF or DOCX format. Error: {exc}",
                        cause=exc,
                    ) from exc
                raise ExtractionError(f"Failed to extract text from DOCX: {exc}", cause=exc) from exc

        text = text.strip()
        logger.debug("Extracted %d characters from %s (%s)", len(text), path.name, media_type)
        return text
