"""Best-effort textual repairs for JSON produced by a language model.

Every pass walks the text with quote/escape state, so characters inside
string literals (URLs with ``//``, notes with ``, }``) are never touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_END_MARKER", "RepairReport", "repair", "repair_report"]

DEFAULT_END_MARKER = "---END---"


@dataclass
class RepairReport:
    text: str
    was_truncated: bool = False
    repairs: List[str] = field(default_factory=list)


def _cut_at_marker(text: str, marker: str) -> str:
    if not marker or marker not in text:
        return text
    in_str = escaped = False
    for i, ch in enumerate(text):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif text.startswith(marker, i):
            return text[:i]
    return text


def _strip_comments(text: str) -> str:
    out: List[str] = []
    in_str = escaped = False
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if in_str:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            i += 1
            continue
        if ch == '"':
            in_str = True
        elif ch == "/" and text.startswith("//", i):
            nl = text.find("\n", i)
            if nl == -1:
                break
            i = nl
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _drop_trailing_commas(text: str) -> str:
    out: List[str] = []
    in_str = escaped = False
    n = len(text)
    for i, ch in enumerate(text):
        if in_str:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == ",":
            j = i + 1
            # runs of commas before a closer all go, e.g. "[1,,]"
            while j < n and (text[j].isspace() or text[j] == ","):
                j += 1
            if j < n and text[j] in "}]":
                continue
        out.append(ch)
    return "".join(out)


def repair_report(candidate: str, end_marker: str = DEFAULT_END_MARKER) -> RepairReport:
    """Repair *candidate* and report which repairs were applied.

    Order: cut at the end marker, strip ``//`` comments, close an
    unterminated object with one ``}``, drop trailing commas. Closing the
    object before dropping commas keeps ``repair`` idempotent.
    """
    text = candidate if isinstance(candidate, str) else ""
    report = RepairReport(text="")

    cut = _cut_at_marker(text, end_marker)
    if cut != text:
        report.repairs.append("end_marker")
    text = cut.strip()

    stripped = _strip_comments(text)
    if stripped != text:
        report.repairs.append("comments")
    text = stripped.rstrip()

    if not text.endswith("}"):
        logger.warning("JSON candidate looks truncated; appending closing brace")
        text += "}"
        report.was_truncated = True
        report.repairs.append("closing_brace")

    no_commas = _drop_trailing_commas(text)
    if no_commas != text:
        report.repairs.append("trailing_commas")

    report.text = no_commas.strip()
    return report


def repair(candidate: str, end_marker: str = DEFAULT_END_MARKER) -> str:
    return repair_report(candidate, end_marker).text
