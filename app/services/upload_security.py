from __future__ import annotations

from io import BytesIO
from zipfile import ZipFile

from app.parsing.parse import ExtractionFailed, UnsupportedFormat, detect_source_type, file_extension, mime_source_type

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")


class UploadTooLarge(ValueError):
    def __init__(self, max_bytes: int):
        super().__init__(f"File too large. Maximum allowed size is {max_bytes // (1024 * 1024)} MB.")
        self.max_bytes = max_bytes


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
        return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)
    except Exception:
        return False


def _is_probably_text_payload(content: bytes) -> bool:
    if not content:
        return True
    sample = content[:4096]
    if b"\x00" in sample:
        return False
    try:
        sample.decode("utf-8")
        return True
    except UnicodeDecodeError as exc:
        # A multi-byte sequence cut at the sample boundary is still text.
        if exc.start >= len(sample) - 3:
            return True
    printable = 0
    for byte in sample:
        if byte in (9, 10, 13) or 32 <= byte <= 126:
            printable += 1
    return (printable / len(sample)) >= 0.75


def _signature_mismatch(source_type: str) -> ExtractionFailed:
    cause = ValueError(f"File signature does not match .{source_type} content.")
    return ExtractionFailed(f"Failed to extract text from {source_type.upper()}", cause=cause)


def validate_upload_signature(*, filename: str, content: bytes, content_type: str | None = None) -> str:
    """Check the bytes look like the detected kind and return that kind.

    An unknown kind is `UnsupportedFormat`. A known kind whose bytes do not
    decode as that kind is `ExtractionFailed`.
    """
    if mime_source_type(content_type) is None and file_extension(filename or "") == "doc":
        raise UnsupportedFormat("Legacy .doc is not supported. Convert to .docx.")

    source_type = detect_source_type(filename=filename, content_type=content_type)

    if source_type == "pdf" and not content.startswith(PDF_MAGIC):
        raise _signature_mismatch(source_type)

    if source_type == "docx" and (not _is_zip_payload(content) or not _zip_has_paths(content, ("word/",))):
        raise _signature_mismatch(source_type)

    if source_type == "txt" and not _is_probably_text_payload(content):
        raise _signature_mismatch(source_type)

    return source_type
