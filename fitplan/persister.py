"""Write a normalized program into the relational store.

Insertion order is program -> blocks -> schedule entries -> workouts ->
exercise blocks -> exercises. The first four tables form the spine: their
identifiers are needed downstream, so a failed spine insert aborts the whole
operation. Exercise blocks and exercises are leaves; a failed leaf insert is
logged, recorded as :class:`LeafSkipped` and its siblings carry on.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List

from .errors import LeafSkipped, PersistenceError, StoreError
from .models import Exercise, ExerciseKind, NormalizedProgram, OwnerContext, ProgramBlock, WorkoutDay
from .store import DataStore

logger = logging.getLogger(__name__)

PROGRAMS = "programs"
PROGRAM_BLOCKS = "program_blocks"
PROGRAM_SCHEDULE = "program_schedule"
WORKOUTS = "workouts"
WORKOUT_BLOCKS = "workout_blocks"
WORKOUT_EXERCISES = "workout_exercises"

SPINE_TABLES = (PROGRAMS, PROGRAM_BLOCKS, PROGRAM_SCHEDULE, WORKOUTS)
LEAF_TABLES = (WORKOUT_BLOCKS, WORKOUT_EXERCISES)
ALL_TABLES = SPINE_TABLES + LEAF_TABLES


@dataclass
class PersistResult:
    program_id: str
    version_number: int
    skipped: List[LeafSkipped] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=lambda: {t: 0 for t in ALL_TABLES})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def next_version(store: DataStore, user_id: str) -> int:
    """Version for a new program of *user_id*: one past the highest stored."""
    rows = store.query(PROGRAMS, {"user_id": user_id})
    versions = [r.get("version_number") for r in rows]
    versions = [v for v in versions if isinstance(v, int)]
    return max(versions, default=0) + 1


class ProgramPersister:
    def __init__(
        self,
        store: DataStore,
        *,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        self.store = store
        self._new_id = id_factory
        self._now = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def persist(self, program: NormalizedProgram, owner: OwnerContext) -> PersistResult:
        """Insert *program* for *owner*; raise :class:`PersistenceError` on spine failure."""
        try:
            version = owner.version_number or next_version(self.store, owner.user_id)
        except StoreError as exc:
            raise PersistenceError(PROGRAMS, exc) from exc

        result = PersistResult(program_id=self._new_id(), version_number=version)
        self._insert_spine(result, PROGRAMS, self._program_row(program, owner, result))
        logger.info(
            "Persisting program %s '%s' v%d (%d blocks)",
            result.program_id, program.title, version, len(program.blocks),
        )

        for block in program.blocks:
            block_id = self._new_id()
            self._insert_spine(result, PROGRAM_BLOCKS, self._block_row(block, block_id, owner, result))
            for day in block.iter_days():
                self._persist_day(day, block_id, owner, result)

        if result.skipped:
            logger.warning(
                "Program %s created with %d item(s) skipped", result.program_id, len(result.skipped)
            )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _insert_spine(self, result: PersistResult, table: str, row: Dict[str, Any]) -> None:
        try:
            self.store.insert(table, [row])
        except StoreError as exc:
            partial = any(result.counts.values())
            logger.error("Spine insert into %s failed (partial=%s): %s", table, partial, exc)
            raise PersistenceError(table, exc, program_id=result.program_id, partial=partial) from exc
        result.counts[table] += 1

    def _insert_leaf(self, result: PersistResult, table: str, rows: List[Dict[str, Any]], key: str) -> bool:
        try:
            self.store.insert(table, rows)
        except StoreError as exc:
            logger.warning("Skipping %s (%s): %s", key, table, exc)
            result.skipped.append(LeafSkipped(table=table, key=key, cause=str(exc)))
            return False
        result.counts[table] += len(rows)
        return True

    def _persist_day(self, day: WorkoutDay, block_id: str, owner: OwnerContext, result: PersistResult) -> None:
        schedule_id = self._new_id()
        self._insert_spine(result, PROGRAM_SCHEDULE, self._schedule_row(day, schedule_id, block_id, owner, result))
        if day.is_rest_day:
            return

        workout_id = self._new_id()
        self._insert_spine(result, WORKOUTS, self._workout_row(day, workout_id, schedule_id, owner, result))

        for kind in ExerciseKind:
            exercises = day.exercises(kind)
            if not exercises:
                continue
            key = f"week {day.week_number} day {day.day_number} {kind.value}"
            ex_block_id = self._new_id()
            block_row = {
                "block_id": ex_block_id,
                "workout_id": workout_id,
                "program_id": result.program_id,
                "user_id": owner.user_id,
                "block_order": 1,
                "block_title": kind.label,
                "block_type": kind.value,
                "created_at": self._now(),
            }
            if not self._insert_leaf(result, WORKOUT_BLOCKS, [block_row], key):
                continue
            rows = [
                self._exercise_row(ex, seq, kind, ex_block_id, workout_id, schedule_id, owner, result)
                for seq, ex in enumerate(exercises, start=1)
            ]
            self._insert_leaf(result, WORKOUT_EXERCISES, rows, key)

    # ------------------------------------------------------------------
    # Row builders
    # ------------------------------------------------------------------

    def _program_row(self, program: NormalizedProgram, owner: OwnerContext, result: PersistResult) -> Dict[str, Any]:
        return {
            "program_id": result.program_id,
            "user_id": owner.user_id,
            "intake_id": owner.intake_id,
            "program_title": program.title,
            "goal_summary": owner.goal_summary or program.goal_summary,
            "program_duration_weeks": program.duration_weeks,
            "program_start_date": owner.start_date.isoformat(),
            "timezone": owner.timezone,
            "is_active": True,
            "version_number": result.version_number,
            "created_at": self._now(),
        }

    def _block_row(self, block: ProgramBlock, block_id: str, owner: OwnerContext, result: PersistResult) -> Dict[str, Any]:
        start = owner.start_date + timedelta(weeks=block.week_start - 1)
        end = owner.start_date + timedelta(weeks=block.week_end) - timedelta(days=1)
        return {
            "block_id": block_id,
            "program_id": result.program_id,
            "user_id": owner.user_id,
            "block_title": block.title,
            "block_order": block.order,
            "block_goal": block.goal,
            "week_start": block.week_start,
            "week_end": block.week_end,
            "block_start": start.isoformat(),
            "block_end": end.isoformat(),
            "created_at": self._now(),
        }

    def _schedule_row(
        self, day: WorkoutDay, schedule_id: str, block_id: str, owner: OwnerContext, result: PersistResult
    ) -> Dict[str, Any]:
        return {
            "schedule_id": schedule_id,
            "program_id": result.program_id,
            "block_id": block_id,
            "user_id": owner.user_id,
            "week_number": day.week_number,
            "day_number": day.day_number,
            "day_of_week": day.day_of_week,
            "schedule_date": _schedule_date(owner.start_date, day).isoformat(),
            "focus_area": day.focus_area,
            "is_rest_day": day.is_rest_day,
            "is_generated": True,
            "created_at": self._now(),
        }

    def _workout_row(
        self, day: WorkoutDay, workout_id: str, schedule_id: str, owner: OwnerContext, result: PersistResult
    ) -> Dict[str, Any]:
        return {
            "workout_id": workout_id,
            "schedule_id": schedule_id,
            "program_id": result.program_id,
            "user_id": owner.user_id,
            "duration_minutes": day.duration_min,
            "quote": day.quote,
            "structure_type": day.structure_type,
            "version_number": result.version_number,
            "is_active": True,
            "created_at": self._now(),
        }

    def _exercise_row(
        self,
        ex: Exercise,
        seq: int,
        kind: ExerciseKind,
        block_id: str,
        workout_id: str,
        schedule_id: str,
        owner: OwnerContext,
        result: PersistResult,
    ) -> Dict[str, Any]:
        return {
            "id": self._new_id(),
            "program_id": result.program_id,
            "user_id": owner.user_id,
            "workout_id": workout_id,
            "schedule_id": schedule_id,
            "block_id": block_id,
            "workout_section": kind.value,
            "sequence_num": seq,
            "exercise_name": ex.name,
            "exercise_sets": ex.sets,
            "exercise_reps": ex.reps,
            "exercise_weight": ex.weight_kg,
            "exercise_duration_seconds": ex.duration_sec,
            "exercise_speed": ex.speed,
            "exercise_distance_meters": ex.distance_m,
            "exercise_notes": ex.notes,
        }


def _schedule_date(start: date, day: WorkoutDay) -> date:
    return start + timedelta(weeks=day.week_number - 1, days=day.day_number - 1)


def persist(program: NormalizedProgram, owner: OwnerContext, store: DataStore) -> PersistResult:
    return ProgramPersister(store).persist(program, owner)


def read_back(store: DataStore, program_id: str) -> Dict[str, int]:
    """Row counts per table for *program_id*."""
    return {t: len(store.query(t, {"program_id": program_id})) for t in ALL_TABLES}


def purge_program(store: DataStore, program_id: str) -> Dict[str, int]:
    """Delete a (possibly partial) program tree, children first."""
    removed: Dict[str, int] = {}
    for table in reversed(ALL_TABLES):
        removed[table] = store.delete(table, {"program_id": program_id})
    logger.info("Purged program %s: %s", program_id, removed)
    return removed
