from __future__ import annotations

import re

_INLINE_WHITESPACE_RE = re.compile(r"[\t\v\f\r]+")
_ALL_WHITESPACE_RE = re.compile(r"[\t\v\f\r\n]+")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_MULTI_SPACE_RE = re.compile(r" +")
_MULTI_NEWLINE_RE = re.compile(r"\n+")
_NAME_NOISE_RE = re.compile(r"[\t\v\f\r|\"]")


def clean_text(text: str | None) -> str:
    """Normalize extracted or typed text while keeping its line structure.

    Whitespace runs inside a line become one space, empty lines are dropped
    and every line is trimmed. Pipes and control characters are removed and
    double quotes become single quotes.
    """
    if not text:
        return ""

    value = _INLINE_WHITESPACE_RE.sub(" ", text)
    value = _CONTROL_CHARS_RE.sub("", value)
    value = value.replace("|", "")
    value = _MULTI_SPACE_RE.sub(" ", value)
    value = _MULTI_NEWLINE_RE.sub("\n", value)
    lines = [line.strip() for line in value.split("\n")]
    value = "\n".join(line for line in lines if line).strip()
    return value.replace('"', "'")


def ultra_clean_for_json(text: str | None) -> str:
    """Flatten text to a single line for the generation request body."""
    if not text:
        return ""

    value = _ALL_WHITESPACE_RE.sub(" ", text)
    value = _CONTROL_CHARS_RE.sub("", value)
    value = value.replace("|", "").replace("\\", "")
    value = _MULTI_SPACE_RE.sub(" ", value)
    value = value.replace('"', "'")
    return value.strip()


def clean_name(text: str | None) -> str:
    """Keep the first two words of the first line.

    A pasted résumé header often lands in the name field whole; only the
    leading "First Last" survives.
    """
    if not text:
        return ""

    first_line = text.split("\n", 1)[0].strip()
    cleaned = _NAME_NOISE_RE.sub(" ", first_line)
    cleaned = _MULTI_SPACE_RE.sub(" ", cleaned).strip()
    words = [word for word in cleaned.split() if word]
    return " ".join(words[:2])


def final_submission_pass(value: str) -> str:
    if not value:
        return ""
    cleaned = _CONTROL_CHARS_RE.sub("", value)
    cleaned = re.sub(r"[\n\r\t]", " ", cleaned)
    cleaned = cleaned.replace('"', "'").replace("|", "").replace("\\", "")
    cleaned = _MULTI_SPACE_RE.sub(" ", cleaned)
    return cleaned.strip()
