from __future__ import annotations

import logging
from io import BytesIO

from app.normalize.sanitize import clean_text

from .models import ExtractedDocument

logger = logging.getLogger(__name__)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

MIME_SOURCE_TYPES = {
    "application/pdf": "pdf",
    DOCX_MIME_TYPE: "docx",
    "text/plain": "txt",
}

EXTENSION_SOURCE_TYPES = {
    "pdf": "pdf",
    "docx": "docx",
    "txt": "txt",
}

UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file format. Please upload PDF, DOCX, or TXT files."


class UnsupportedFormat(ValueError):
    pass


class ExtractionFailed(RuntimeError):
    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def mime_source_type(content_type: str | None) -> str | None:
    mime = (content_type or "").split(";")[0].strip().lower()
    return MIME_SOURCE_TYPES.get(mime)


def detect_source_type(*, filename: str, content_type: str | None = None) -> str:
    source_type = mime_source_type(content_type)
    if source_type:
        return source_type
    source_type = EXTENSION_SOURCE_TYPES.get(file_extension(filename or ""))
    if source_type:
        return source_type
    raise UnsupportedFormat(UNSUPPORTED_FORMAT_MESSAGE)


def _extract_txt(content: bytes) -> tuple[str, int | None]:
    return content.decode("utf-8", errors="replace"), None


def _extract_docx(content: bytes) -> tuple[str, int | None]:
    try:
        from docx import Document

        document = Document(BytesIO(content))
        chunks = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                for cell in row.cells:
                    chunks.extend(paragraph.text for paragraph in cell.paragraphs)
        return "\n".join(chunks), None
    except Exception as exc:
        raise ExtractionFailed("Failed to extract text from DOCX", cause=exc) from exc


def _extract_pdf(content: bytes) -> tuple[str, int | None]:
    try:
        from pypdf import PdfReader

        reader = PdfReader(BytesIO(content))
        full_text = ""
        for page in reader.pages:
            runs: list[str] = []

            def visitor(text, cm, tm, font_dict, font_size, runs=runs):
                if text and text.strip():
                    runs.append(text)

            page.extract_text(visitor_text=visitor)
            full_text += " ".join(runs) + "\n"
        return full_text, len(reader.pages)
    except Exception as exc:
        raise ExtractionFailed("Failed to extract text from PDF", cause=exc) from exc


_EXTRACTORS = {
    "txt": _extract_txt,
    "docx": _extract_docx,
    "pdf": _extract_pdf,
}


def extract_document(*, filename: str, content: bytes, content_type: str | None = None) -> ExtractedDocument:
    source_type = detect_source_type(filename=filename, content_type=content_type)
    raw_text, page_count = _EXTRACTORS[source_type](content)
    text = clean_text(raw_text)
    logger.info(
        "document_extracted source_type=%s bytes=%s chars=%s",
        source_type,
        len(content),
        len(text),
    )
    return ExtractedDocument(
        source_type=source_type,
        filename=filename,
        text=text,
        page_count=page_count,
    )
