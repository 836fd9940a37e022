from __future__ import annotations

import re
import time
from datetime import datetime

DOC_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_DOCUMENT_STYLE = """
    body { font-family: 'Times New Roman', serif; line-height: 1.6; margin: 40px; color: #333; }
    h1, h2 { color: #2c3e50; border-bottom: 2px solid #3498db; padding-bottom: 5px; }
    h3 { color: #34495e; margin-top: 20px; }
    .header { text-align: center; margin-bottom: 30px; }
    .section { margin: 20px 0; }
    .contact-info { text-align: center; margin: 15px 0; font-size: 14px; }
    ul { padding-left: 20px; }
    li { margin: 5px 0; }
    .experience-item { margin: 15px 0; }
    .company { font-weight: bold; color: #2980b9; }
    .position { font-style: italic; color: #7f8c8d; }
    .date { float: right; color: #95a5a6; }
"""

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def build_document(content_html: str) -> str:
    """Wrap generated markup in a standalone page Word can open."""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="UTF-8">\n'
        f"<style>{_DOCUMENT_STYLE}</style>\n"
        "</head>\n"
        "<body>\n"
        f"{content_html}\n"
        "</body>\n"
        "</html>\n"
    )


def download_filename(created_at: datetime | None = None, requested: str | None = None) -> str:
    if requested:
        base = _UNSAFE_FILENAME_RE.sub("-", requested.strip()).strip("-.")
        if base:
            return base if base.lower().endswith(".doc") else f"{base}.doc"
    if created_at is not None:
        return f"resume-{created_at.date().isoformat()}.doc"
    return f"resume-{int(time.time() * 1000)}.doc"


def content_disposition(filename: str) -> str:
    return f'attachment; filename="{filename}"'
