"""Extract plain text from uploaded resumes."""
import io
import logging

import pdfplumber
from docx import Document

from ats.errors import IntegrationError

logger = logging.getLogger(__name__)


class ResumeParseError(IntegrationError):
    """The file could not be turned into text."""


def _pdf_text(content: bytes) -> str:
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        text_parts = []
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                text_parts.append(text)
        return "\n".join(text_parts)


def _docx_text(content: bytes) -> str:
    doc = Document(io.BytesIO(content))
    text_parts = [para.text for para in doc.paragraphs if para.text.strip()]

    for table in doc.tables:
        for row in table.rows:
            row_text = " | ".join(cell.text.strip() for cell in row.cells if cell.text.strip())
            if row_text:
                text_parts.append(row_text)

    return "\n".join(text_parts)


def parse_resume(file_name: str, content: bytes) -> str:
    """Text of a PDF or DOCX resume; anything else is rejected."""
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    if extension not in ("pdf", "docx"):
        raise ResumeParseError(f"Unsupported file type: {file_name}")

    try:
        text = _pdf_text(content) if extension == "pdf" else _docx_text(content)
    except Exception as e:
        logger.warning("Failed to parse %s: %s", file_name, e)
        raise ResumeParseError(f"Could not read {file_name}") from e

    if not text.strip():
        raise ResumeParseError(f"No text found in {file_name}")
    return text
