"""Error taxonomy for the ingestion pipeline and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class IngestError(Exception):
    """Base exception for everything the ingestion core raises."""

    kind = "ingest"


class ModelOutputError(IngestError):
    """The model's completion could not be turned into a valid program."""

    kind = "unusable_output"


class NoJsonFound(ModelOutputError):
    """The completion text contains no JSON object candidate."""


class MalformedJson(ModelOutputError):
    """The repaired candidate still fails to parse."""

    def __init__(self, message: str, snippet: str = "") -> None:
        super().__init__(message)
        self.snippet = snippet


class SchemaError(ModelOutputError):
    """The parsed object does not match the program schema."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path or '<root>'}: {reason}")
        self.path = path
        self.reason = reason


class StoreError(Exception):
    """A data-store call failed (HTTP status / error code plus body)."""

    def __init__(self, message: str, status: Any = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def retryable(self) -> bool:
        try:
            code = int(self.status)
        except (TypeError, ValueError):
            return False
        # PostgREST reports SQLSTATE codes (e.g. "23505") in the same field
        return code in (408, 429) or 500 <= code < 600


class PersistenceError(IngestError):
    """A spine insert failed; rows written before the failure may remain."""

    kind = "persistence"

    def __init__(
        self,
        table: str,
        cause: Exception,
        program_id: Optional[str] = None,
        partial: bool = False,
        retryable: Optional[bool] = None,
    ) -> None:
        super().__init__(f"Insert into {table} failed: {cause}")
        self.table = table
        self.cause = cause
        self.program_id = program_id
        self.partial = partial
        if retryable is None:
            retryable = bool(getattr(cause, "retryable", False))
        self.retryable = retryable


class IntakeNotFound(IngestError):
    """No intake record exists for the requested user."""

    kind = "not_found"


@dataclass(frozen=True)
class LeafSkipped:
    """Non-fatal record of a leaf subtree that could not be inserted."""

    table: str
    key: str
    cause: str = ""
