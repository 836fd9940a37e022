from __future__ import annotations

import argparse
import json
import mimetypes
import sys
from pathlib import Path

from app.parsing.parse import ExtractionFailed, UnsupportedFormat, extract_document
from app.parsing.resume_fields import extraction_message, parse_resume_text


def main() -> None:
    parser = argparse.ArgumentParser(description="Extract resume form fields from a PDF, DOCX or TXT file.")
    parser.add_argument("path", help="Resume file to read")
    parser.add_argument("--text", action="store_true", help="Include the cleaned document text in the output.")
    args = parser.parse_args()

    path = Path(args.path)
    content_type, _ = mimetypes.guess_type(path.name)
    try:
        document = extract_document(filename=path.name, content=path.read_bytes(), content_type=content_type)
    except (UnsupportedFormat, ExtractionFailed) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    parsed = parse_resume_text(document.text)
    output = {
        "source_type": document.source_type,
        "fields": parsed.updates,
        "message": extraction_message(parsed.fields_extracted),
    }
    if args.text:
        output["text"] = document.text
    print(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
