from __future__ import annotations

import re

_BOLD_RE = re.compile(r"\*\*([^*\n]+)\*\*")
_ITALIC_RE = re.compile(r"\*(?!\s)([^*\n]+?)\*")
_HEADING_RE = re.compile(r"^[ \t]*#{1,6}[ \t]*([^\n]+)", re.MULTILINE)
_FENCED_CODE_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BULLET_RE = re.compile(r"^[ \t]*[-*+][ \t]+(.+)", re.MULTILINE)
_ORDERED_RE = re.compile(r"^[ \t]*\d+\.[ \t]+(.+)", re.MULTILINE)
_BLANK_RUN_RE = re.compile(r"\n\s*\n")

BULLET = "•"


def markdown_to_html(text: str | None) -> str:
    """Render the generation output as lightweight display markup.

    Only the constructs the generator emits are handled: emphasis, headings
    (all rendered as h3), inline code, bullets and numbered lists. Fenced
    code is dropped and links keep only their text.
    """
    if not text:
        return ""

    html = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    html = _ITALIC_RE.sub(r"<em>\1</em>", html)
    html = _HEADING_RE.sub(r"<h3>\1</h3>", html)
    html = _FENCED_CODE_RE.sub("", html)
    html = _INLINE_CODE_RE.sub(r"<code>\1</code>", html)
    html = _LINK_RE.sub(r"\1", html)
    html = _BULLET_RE.sub(rf"{BULLET} \1", html)
    html = _ORDERED_RE.sub(r"\1", html)
    html = _BLANK_RUN_RE.sub("\n\n", html)
    html = html.replace("\n", "<br>")
    return html.strip()
