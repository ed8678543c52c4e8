from __future__ import annotations

import re
from typing import Optional

from .errors import NoJsonFound

__all__ = ["extract"]

JSON_MD_RE = re.compile(r"```json(?!\w)[ \t]*\r?\n?([\s\S]*?)```", re.IGNORECASE)
PLAIN_MD_RE = re.compile(r"```[ \t]*\r?\n([\s\S]*?)```")


def _first_fenced(regex, text: str) -> Optional[str]:
    for m in regex.finditer(text):
        body = m.group(1).strip()
        if body:
            return body
    return None


def _brace_span(text: str) -> Optional[str]:
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    # Unterminated completion: keep the tail so the repairer can close it.
    if end < start:
        return text[start:].strip() or None
    return text[start:end + 1].strip() or None


def extract(raw_text: str) -> str:
    """Isolate one JSON object candidate from free-form completion text.

    Preference order: a ```json fenced block, an unlabelled fenced block,
    then the span from the first ``{`` to the last ``}``. Prose around the
    fences (which may itself contain braces) is ignored when a fence matches.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise NoJsonFound("Empty completion")
    if "{" not in raw_text:
        raise NoJsonFound("No '{' in completion")

    for candidate in (
        _first_fenced(JSON_MD_RE, raw_text),
        _first_fenced(PLAIN_MD_RE, raw_text),
        _brace_span(raw_text),
    ):
        if candidate:
            return candidate
    raise NoJsonFound("No JSON block found")
