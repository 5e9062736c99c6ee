"""Text helpers shared by prompt builders."""

import html
import re

_TAG = re.compile(r"<[^>]+>")
_BLOCK_TAG = re.compile(r"</?(p|div|br|li|h[1-6])\b[^>]*>", re.IGNORECASE)
_BLANK_RUN = re.compile(r"\n{3,}")


def strip_markup(text: str | None) -> str:
    """Return plain text from rich-editor HTML.

    Block-level tags become line breaks so paragraphs stay apart.
    """
    if not text:
        return ""
    if "<" not in text:
        return html.unescape(text).strip()
    plain = _BLOCK_TAG.sub("\n", text)
    plain = _TAG.sub("", plain)
    plain = html.unescape(plain)
    plain = "\n".join(line.strip() for line in plain.splitlines())
    return _BLANK_RUN.sub("\n\n", plain).strip()


def word_count(text: str) -> int:
    return len(text.split())
