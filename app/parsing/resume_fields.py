from __future__ import annotations

import re

from app.normalize.sanitize import clean_name, clean_text

from .models import ParsedResumeFields

_EMAIL_RE = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")
_PHONE_RE = re.compile(r"(\+?1?[-.\s]?)?(\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4})")
_GITHUB_RE = re.compile(r"(https?://)?(www\.)?github\.com/[\w-]+", re.IGNORECASE)

SECTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "experience": ("experience", "work experience", "employment", "professional experience"),
    "education": ("education", "educational background", "academic background"),
    "skills": ("skills", "technical skills", "technologies", "programming languages"),
    "projects": ("projects", "personal projects", "key projects"),
}

SECTION_END_KEYWORDS: dict[str, tuple[str, ...]] = {
    "experience": ("education", "skills", "projects", "certifications"),
    "education": ("experience", "skills", "projects", "certifications"),
    "skills": ("experience", "education", "projects", "certifications"),
    "projects": ("experience", "education", "skills", "certifications"),
}

# Form field order used when reporting updates.
FIELD_ORDER = ("name", "email", "phone", "github", "experience", "education", "skills", "projects")


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    return re.compile("(" + "|".join(re.escape(keyword) for keyword in keywords) + ")", re.IGNORECASE)


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in (text or "").split("\n") if line.strip()]


def extract_section(lines: list[str], start_keywords: tuple[str, ...], end_keywords: tuple[str, ...] = ()) -> str:
    start_pattern = _keyword_pattern(start_keywords)
    end_pattern = _keyword_pattern(end_keywords) if end_keywords else None

    start_index = next((index for index, line in enumerate(lines) if start_pattern.search(line)), -1)
    if start_index == -1:
        return ""

    end_index = len(lines)
    if end_pattern is not None:
        for index in range(start_index + 1, len(lines)):
            if end_pattern.search(lines[index]):
                end_index = index
                break

    return clean_text("\n".join(lines[start_index + 1 : end_index]).strip())


def _first_match(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return clean_text(match.group(0)) if match else ""


def parse_resume_text(text: str) -> ParsedResumeFields:
    """Map sanitized résumé text onto form fields.

    Contact details come from the first regex match anywhere in the text.
    Sections start at the first line mentioning one of their keywords and
    stop at the next line mentioning another section's keyword. Only
    non-empty values are returned.
    """
    lines = split_lines(text)

    candidates = {
        "name": clean_name(lines[0]) if lines else "",
        "email": _first_match(_EMAIL_RE, text or ""),
        "phone": _first_match(_PHONE_RE, text or ""),
        "github": _first_match(_GITHUB_RE, text or ""),
    }
    for section, keywords in SECTION_KEYWORDS.items():
        candidates[section] = extract_section(lines, keywords, SECTION_END_KEYWORDS[section])

    updates = {field: candidates[field] for field in FIELD_ORDER if candidates[field]}
    return ParsedResumeFields(updates=updates)


def extraction_message(fields_extracted: int) -> str:
    if fields_extracted > 0:
        return f"Successfully extracted {fields_extracted} fields from your resume!"
    return "File uploaded but no recognizable resume fields found. Please check the file format."
