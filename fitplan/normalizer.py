"""Canonicalise a validated program.

``normalize`` is total (it only sees validated input) and idempotent:
feeding its own output back in yields an equal program.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from .models import (
    ELLIPSIS,
    QUOTE_MAX_LENGTH,
    WEEKDAYS,
    Exercise,
    ExerciseInput,
    ExerciseKind,
    NormalizedProgram,
    ProgramBlock,
    ProgramWeek,
    StringExercise,
    StructuredExercise,
    WorkoutDay,
)
from .schema import ValidatedProgram

logger = logging.getLogger(__name__)

__all__ = ["REST_KEYWORDS", "normalize", "trim_quote", "is_rest_day"]

DEFAULT_FOCUS = "General"
DEFAULT_STRUCTURE = "training"
REST_KEYWORDS = {"rest", "recovery", "active_recovery", "off", "rest_day"}

_WEEKDAY_INDEX = {name.lower(): i + 1 for i, name in enumerate(WEEKDAYS)}
_WEEKDAY_INDEX.update({name[:3].lower(): i + 1 for i, name in enumerate(WEEKDAYS)})


def trim_quote(quote: str, max_length: int = QUOTE_MAX_LENGTH) -> str:
    if not quote:
        return ""
    if len(quote) <= max_length:
        return quote
    return quote[: max_length - 1] + ELLIPSIS


def is_rest_day(structure_type: str, duration_min: int) -> bool:
    return structure_type in REST_KEYWORDS or duration_min == 0


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def _number(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v) if math.isfinite(v) else None
    if isinstance(v, str):
        try:
            f = float(v.strip())
        except ValueError:
            return None
        return f if math.isfinite(f) else None
    return None


def _positive_int(v: Any) -> Optional[int]:
    f = _number(v)
    if f is None or f < 1 or f != int(f):
        return None
    return int(f)


def _non_negative(v: Any) -> Optional[float]:
    f = _number(v)
    if f is None or f < 0:
        return None
    return f


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if raw.get(k) is not None:
            return raw[k]
    return None


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------


def _parse_exercise(raw: Any) -> Optional[ExerciseInput]:
    if isinstance(raw, str):
        return StringExercise(name=raw)
    if not isinstance(raw, dict):
        return None

    name = _first(raw, "name", "exercise", "exercise_name")
    if not isinstance(name, str) or not name.strip():
        name = "Unnamed"

    reps_raw = raw.get("reps")
    reps = _positive_int(reps_raw)
    notes = raw.get("notes") if isinstance(raw.get("notes"), str) else ""
    if reps is None and isinstance(reps_raw, str) and reps_raw.strip():
        # rep ranges such as "8-10" have no integer form; keep them readable
        notes = f"{notes} (reps: {reps_raw.strip()})".strip()

    seconds = _non_negative(_first(raw, "duration_sec", "duration_seconds"))
    if seconds is None:
        minutes = _non_negative(raw.get("duration_min"))
        seconds = minutes * 60 if minutes is not None else None

    speed = raw.get("speed")
    if isinstance(speed, bool) or not isinstance(speed, (int, float, str)):
        speed = None

    return StructuredExercise(
        name=name.strip(),
        sets=_positive_int(raw.get("sets")),
        reps=reps,
        weight_kg=_non_negative(_first(raw, "weight_kg", "weight")),
        duration_sec=int(round(seconds)) if seconds is not None else None,
        speed=speed,
        distance_m=_non_negative(_first(raw, "distance_m", "distance_meters")),
        notes=notes,
    )


def _exercises(items: Any, where: str, warnings: List[str]) -> List[Exercise]:
    out: List[Exercise] = []
    for i, raw in enumerate(items or []):
        parsed = _parse_exercise(raw)
        if parsed is None:
            warnings.append(f"{where}[{i}] is neither a name nor an object; dropped")
            continue
        out.append(parsed.resolve())
    return out


# ---------------------------------------------------------------------------
# Days
# ---------------------------------------------------------------------------


def _day_number(raw: Dict[str, Any]) -> Optional[int]:
    dn = raw.get("day_number")
    if isinstance(dn, int) and not isinstance(dn, bool) and 1 <= dn <= 7:
        return dn
    label = raw.get("day")
    if isinstance(label, str) and label.strip().lower() in _WEEKDAY_INDEX:
        return _WEEKDAY_INDEX[label.strip().lower()]
    return None


def _day_label(raw: Dict[str, Any], day_number: int) -> str:
    label = raw.get("day")
    if not isinstance(label, str) or not label.strip():
        return WEEKDAYS[day_number - 1]
    key = label.strip().lower()
    if key in _WEEKDAY_INDEX:
        return WEEKDAYS[_WEEKDAY_INDEX[key] - 1]
    return label.strip()


def _normalize_day(raw: Dict[str, Any], week_number: int, day_number: int, warnings: List[str]) -> WorkoutDay:
    focus = raw.get("focus_area")
    focus = focus.strip() if isinstance(focus, str) and focus.strip() else DEFAULT_FOCUS

    structure = raw.get("structure_type")
    structure = structure.strip().lower() if isinstance(structure, str) and structure.strip() else DEFAULT_STRUCTURE

    minutes = _non_negative(raw.get("duration_min"))
    duration = int(round(minutes)) if minutes is not None else 0

    quote = raw.get("quote")
    quote = trim_quote(quote) if isinstance(quote, str) else ""

    where = f"week {week_number} day {day_number}"
    lists = {
        kind.value: _exercises(raw.get(kind.value), f"{where} {kind.value}", warnings)
        for kind in ExerciseKind
    }
    return WorkoutDay(
        day=_day_label(raw, day_number),
        week_number=week_number,
        day_number=day_number,
        focus_area=focus,
        duration_min=duration,
        structure_type=structure,
        quote=quote,
        is_rest_day=is_rest_day(structure, duration),
        **lists,
    )


def _normalize_week(
    raw: Dict[str, Any], seen: Set[Tuple[int, int]], warnings: List[str]
) -> ProgramWeek:
    week_number = raw["week_number"]
    entries = raw.get("days") or []
    numbers = [_day_number(day) for day in entries]
    # unlabelled days take the first slot no labelled day of this week claims
    taken = {dn for dn in numbers if dn is not None}
    taken.update(dn for wk, dn in seen if wk == week_number)
    free = [n for n in range(1, 8) if n not in taken]

    days: List[WorkoutDay] = []
    for position, (day, dn) in enumerate(zip(entries, numbers)):
        if dn is None:
            if not free:
                msg = f"Week {week_number}: more than 7 days, dropping day at position {position + 1}"
                logger.warning(msg)
                warnings.append(msg)
                continue
            dn = free.pop(0)
        key = (week_number, dn)
        if key in seen:
            msg = f"Duplicate day (week {week_number}, day {dn}); keeping the first"
            logger.warning(msg)
            warnings.append(msg)
            continue
        seen.add(key)
        days.append(_normalize_day(day, week_number, dn, warnings))
    days.sort(key=lambda d: d.day_number)
    return ProgramWeek(week_number=week_number, days=days)


# ---------------------------------------------------------------------------
# Blocks / program
# ---------------------------------------------------------------------------


def _raw_ranges(blocks: List[Dict[str, Any]]) -> List[Tuple[int, int]]:
    ranges: List[Tuple[int, int]] = []
    prev_end = 0
    for block in blocks:
        wr = block.get("week_range")
        weeks = [w["week_number"] for w in block.get("weeks") or []]
        if isinstance(wr, list) and len(wr) == 2:
            rng = (wr[0], wr[1])
        elif weeks:
            rng = (min(weeks), max(weeks))
        else:
            rng = (prev_end + 1, prev_end + 1)
        ranges.append(rng)
        prev_end = max(prev_end, rng[1])
    return ranges


def _block_goal(block: Dict[str, Any]) -> str:
    for key in ("block_goal", "summary", "block_summary"):
        if isinstance(block.get(key), str):
            return block[key].strip()
    return ""


def _to_raw(program: NormalizedProgram) -> ValidatedProgram:
    data = {
        "program_title": program.title,
        "goal_summary": program.goal_summary,
        "program_duration_weeks": program.duration_weeks,
        "blocks": [
            {
                "title": b.title,
                "block_goal": b.goal,
                "week_range": [b.week_start, b.week_end],
                "weeks": [
                    {"week_number": w.week_number, "days": [d.model_dump() for d in w.days]}
                    for w in b.weeks
                ],
            }
            for b in program.blocks
        ],
    }
    return ValidatedProgram(data=data, was_truncated=program.was_truncated, warnings=list(program.warnings))


def normalize(program: Union[ValidatedProgram, NormalizedProgram]) -> NormalizedProgram:
    """Fill defaults, dedupe and order days, and resolve exercises."""
    if isinstance(program, NormalizedProgram):
        program = _to_raw(program)

    data = program.data
    warnings: List[str] = []
    blocks_raw: List[Dict[str, Any]] = data.get("blocks") or []
    ranges = _raw_ranges(blocks_raw)

    declared = data.get("program_duration_weeks")
    if isinstance(declared, int) and not isinstance(declared, bool) and declared >= 1:
        duration = declared
    else:
        referenced = [end for _, end in ranges]
        referenced += [
            w["week_number"] for b in blocks_raw for w in b.get("weeks") or []
        ]
        duration = max(referenced) if referenced else 1

    seen: Set[Tuple[int, int]] = set()
    blocks: List[ProgramBlock] = []
    for order, (raw, (start, end)) in enumerate(zip(blocks_raw, ranges), start=1):
        start = min(max(start, 1), duration)
        end = min(max(end, start), duration)
        weeks = [_normalize_week(w, seen, warnings) for w in raw.get("weeks") or []]
        blocks.append(
            ProgramBlock(
                title=raw["title"].strip() or f"Block {order}",
                order=order,
                goal=_block_goal(raw),
                week_start=start,
                week_end=end,
                weeks=weeks,
            )
        )

    goal_summary = data.get("goal_summary")
    merged: List[str] = []
    for w in list(program.warnings) + warnings:
        if w not in merged:
            merged.append(w)

    return NormalizedProgram(
        title=data["program_title"].strip(),
        goal_summary=goal_summary.strip() if isinstance(goal_summary, str) else "",
        duration_weeks=duration,
        blocks=blocks,
        was_truncated=program.was_truncated,
        warnings=merged,
    )
