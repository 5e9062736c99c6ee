"""Pull structured JSON out of free-form model output.

Models wrap JSON in markdown fences, prepend "Here is the result:" and
trail off with commentary. Every stage that expects structured output goes
through :func:`extract_json_block` first, so there is exactly one place
that knows how to find the payload.
"""

import json
import re
from typing import Any

_FENCE_OPEN = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```\s*$")

_CLOSERS = {"{": "}", "[": "]"}


def strip_fences(text: str) -> str:
    """Remove a leading and trailing code-fence marker, then trim."""
    if not text:
        return ""
    cleaned = _FENCE_OPEN.sub("", text, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def _balanced_end(text: str, start: int) -> int:
    """Return the index one past the bracket closing ``text[start]``, or -1."""
    stack = [_CLOSERS[text[start]]]
    in_str = False
    esc = False
    for i in range(start + 1, len(text)):
        c = text[i]
        if esc:
            esc = False
            continue
        if in_str:
            if c == "\\":
                esc = True
            elif c == '"':
                in_str = False
            continue
        if c == '"':
            in_str = True
        elif c in _CLOSERS:
            stack.append(_CLOSERS[c])
        elif c in ("}", "]"):
            if c != stack[-1]:
                return -1
            stack.pop()
            if not stack:
                return i + 1
    return -1


def extract_json_block(raw_text: str | None) -> str | None:
    """Return the first balanced ``{...}`` or ``[...]`` region, or None.

    Brackets inside quoted strings are ignored. A region whose brackets
    never balance (or mismatch) is skipped and scanning resumes after its
    opening bracket.

    >>> extract_json_block('```json\\n[1,2]\\n```')
    '[1,2]'
    >>> extract_json_block('no structure here') is None
    True
    """
    if not raw_text:
        return None
    text = strip_fences(raw_text)
    pos = 0
    while pos < len(text):
        starts = [i for i in (text.find("{", pos), text.find("[", pos)) if i != -1]
        if not starts:
            return None
        start = min(starts)
        end = _balanced_end(text, start)
        if end != -1:
            return text[start:end]
        pos = start + 1
    return None


def parse_json_block(raw_text: str | None, default: Any = None) -> Any:
    """Extract and decode the first JSON block, falling back to ``default``."""
    block = extract_json_block(raw_text)
    if block is None:
        return default
    try:
        return json.loads(block)
    except json.JSONDecodeError:
        return default
