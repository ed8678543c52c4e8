"""Completion text in, persisted program out.

raw text -> extract -> repair -> parse -> adapt -> validate -> normalize
-> persist. Nothing is written unless the program fully validated.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .adapters import adapt
from .errors import LeafSkipped, MalformedJson
from .extractor import extract
from .models import NormalizedProgram, OwnerContext
from .normalizer import normalize
from .persister import ProgramPersister
from .repair import DEFAULT_END_MARKER, repair_report
from .schema import validate
from .store import DataStore

logger = logging.getLogger(__name__)

__all__ = ["IngestResult", "ingest_and_persist", "prepare"]

SNIPPET_CHARS = 300


@dataclass
class IngestResult:
    program_id: str
    title: str
    week_count: int
    version_number: int = 1
    skipped: List[LeafSkipped] = field(default_factory=list)
    was_truncated: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "program_id": self.program_id,
            "title": self.title,
            "week_count": self.week_count,
            "version_number": self.version_number,
            "skipped": [{"table": s.table, "key": s.key} for s in self.skipped],
            "was_truncated": self.was_truncated,
            "warnings": list(self.warnings),
        }


def _parse(text: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        lo = max(0, exc.pos - SNIPPET_CHARS // 2)
        snippet = text[lo:lo + SNIPPET_CHARS]
        raise MalformedJson(f"JSON still invalid after repair: {exc.msg} at char {exc.pos}", snippet=snippet) from exc


def prepare(raw_text: str, *, end_marker: str = DEFAULT_END_MARKER) -> NormalizedProgram:
    """Run every stage short of persistence."""
    candidate = extract(raw_text)
    report = repair_report(candidate, end_marker)
    if report.repairs:
        logger.info("Applied JSON repairs: %s", ", ".join(report.repairs))
    obj = adapt(_parse(report.text))
    valid = validate(obj, was_truncated=report.was_truncated)
    return normalize(valid)


def ingest_and_persist(
    raw_text: str,
    owner: OwnerContext,
    store: DataStore,
    *,
    end_marker: str = DEFAULT_END_MARKER,
    persister: Optional[ProgramPersister] = None,
) -> IngestResult:
    """Turn raw completion text into a stored program.

    Raises a :class:`~fitplan.errors.ModelOutputError` subclass when the text
    is unusable and :class:`~fitplan.errors.PersistenceError` when a spine
    insert fails. Leaf failures are returned in ``IngestResult.skipped``.
    """
    program = prepare(raw_text, end_marker=end_marker)
    if program.was_truncated:
        logger.warning("Program '%s' was recovered from a truncated completion", program.title)

    persisted = (persister or ProgramPersister(store)).persist(program, owner)
    return IngestResult(
        program_id=persisted.program_id,
        title=program.title,
        week_count=program.detailed_weeks,
        version_number=persisted.version_number,
        skipped=persisted.skipped,
        was_truncated=program.was_truncated,
        warnings=program.warnings,
    )
