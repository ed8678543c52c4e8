"""Shared fixtures: canned completions, program builders, recording stores."""

from __future__ import annotations

import copy
import json
from datetime import date
from typing import Any, Callable

import pytest

from fitplan.errors import StoreError
from fitplan.models import OwnerContext
from fitplan.store import MemoryStore

SCENARIO_A: dict[str, Any] = {
    "program_title": "Test",
    "blocks": [
        {
            "title": "Base",
            "week_range": [1, 1],
            "weeks": [
                {
                    "week_number": 1,
                    "days": [
                        {
                            "day": "Monday",
                            "focus_area": "Cardio",
                            "duration_min": 30,
                            "structure_type": "steady_state",
                            "quote": "Go",
                            "warmup": [],
                            "main_set": [{"name": "Run", "sets": 1, "reps": 1}],
                            "cooldown": [],
                        }
                    ],
                }
            ],
        }
    ],
}


class RecordingStore(MemoryStore):
    """MemoryStore that records inserts and fails those matching *fail_when*."""

    def __init__(self, fail_when: Callable[[str, list], bool] | None = None, status: int = 500) -> None:
        super().__init__()
        self.fail_when = fail_when
        self.status = status
        self.insert_calls: list[tuple[str, list]] = []

    def insert(self, table, rows):
        self.insert_calls.append((table, rows))
        if self.fail_when is not None and self.fail_when(table, rows):
            raise StoreError(f"insert into {table} rejected", status=self.status, body="rejected")
        return super().insert(table, rows)

    def count(self, table: str) -> int:
        return len(self.tables.get(table, []))


@pytest.fixture
def scenario_a() -> dict:
    return copy.deepcopy(SCENARIO_A)


@pytest.fixture
def scenario_a_text() -> str:
    return json.dumps(SCENARIO_A)


@pytest.fixture
def owner() -> OwnerContext:
    """Program owner starting on Monday 2025-03-03."""
    return OwnerContext(user_id="user-1", intake_id="intake-1", start_date=date(2025, 3, 3))


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def failing_store() -> Callable[..., RecordingStore]:
    def _make(fail_when, status: int = 500) -> RecordingStore:
        return RecordingStore(fail_when=fail_when, status=status)

    return _make


@pytest.fixture
def make_day() -> Callable[..., dict]:
    """Build a valid day object; keyword arguments override fields."""

    def _make(day: str = "Monday", **overrides: Any) -> dict:
        d = {
            "day": day,
            "focus_area": "Strength",
            "duration_min": 45,
            "structure_type": "circuit",
            "quote": "Keep going",
            "warmup": [],
            "main_set": [{"name": "Squat", "sets": 3, "reps": 10}],
            "cooldown": [],
        }
        d.update(overrides)
        return d

    return _make


@pytest.fixture
def make_program() -> Callable[..., dict]:
    """Build a one-block program from {week_number: [day, ...]}."""

    def _make(weeks: dict[int, list[dict]], title: str = "Plan", **top: Any) -> dict:
        numbers = sorted(weeks) or [1]
        prog = {
            "program_title": title,
            "blocks": [
                {
                    "title": "Base",
                    "block_goal": "Build a base",
                    "week_range": [numbers[0], numbers[-1]],
                    "weeks": [{"week_number": n, "days": weeks[n]} for n in sorted(weeks)],
                }
            ],
        }
        prog.update(top)
        return prog

    return _make
