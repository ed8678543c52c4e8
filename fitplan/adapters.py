"""Map historical program shapes onto the canonical blocks -> weeks -> days shape.

Older prompt revisions produced either a ``workouts`` map keyed by week
number strings, or a flat ``daily_workouts`` array. Both are folded into
``blocks[].weeks[].days[]`` here; the validator only knows the canonical
shape. Inputs that match neither shape pass through untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

__all__ = ["adapt"]

BLOCK_GOAL_ALIASES = ("summary", "block_summary", "description")
DAY_QUOTE_ALIASES = ("quote_text",)


def _week_key(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _rename_day_keys(day: Any) -> Any:
    if not isinstance(day, dict):
        return day
    out = dict(day)
    for alias in DAY_QUOTE_ALIASES:
        if alias in out and "quote" not in out:
            out["quote"] = out.pop(alias)
    return out


def _rename_block_keys(block: Any) -> Any:
    if not isinstance(block, dict):
        return block
    out = dict(block)
    if "block_goal" not in out:
        for alias in BLOCK_GOAL_ALIASES:
            if isinstance(out.get(alias), str):
                out["block_goal"] = out[alias]
                break
    return out


def _owning_block(blocks: List[Dict[str, Any]], week_number: int) -> Dict[str, Any]:
    for block in blocks:
        rng = block.get("week_range")
        if (
            isinstance(rng, list)
            and len(rng) == 2
            and all(isinstance(x, int) and not isinstance(x, bool) for x in rng)
            and rng[0] <= week_number <= rng[1]
        ):
            return block
    logger.warning("Week %d is outside every block range; attaching to last block", week_number)
    return blocks[-1]


def _attach_weeks(blocks: List[Dict[str, Any]], weeks: Dict[int, List[Any]]) -> None:
    for block in blocks:
        block.setdefault("weeks", [])
    for week_number in sorted(weeks):
        block = _owning_block(blocks, week_number)
        block["weeks"].append({"week_number": week_number, "days": weeks[week_number]})


def _from_workouts_map(workouts: Dict[str, Any]) -> Optional[Dict[int, List[Any]]]:
    weeks: Dict[int, List[Any]] = {}
    for key, week in workouts.items():
        n = _week_key(key)
        if n is None or not isinstance(week, dict) or not isinstance(week.get("days"), list):
            return None
        weeks.setdefault(n, []).extend(_rename_day_keys(d) for d in week["days"])
    return weeks


def _from_daily_workouts(daily: List[Any]) -> Optional[Dict[int, List[Any]]]:
    weeks: Dict[int, List[Any]] = {}
    for entry in daily:
        if not isinstance(entry, dict):
            return None
        n = _week_key(entry.get("week_number"))
        if n is None:
            return None
        day = _rename_day_keys(entry)
        if "day" not in day and isinstance(day.get("title"), str):
            day["day"] = day["title"]
        weeks.setdefault(n, []).append(day)
    return weeks


def adapt(obj: Any) -> Any:
    """Return *obj* in canonical shape (a new dict when anything changed)."""
    if not isinstance(obj, dict) or not isinstance(obj.get("blocks"), list):
        return obj
    blocks_in = obj["blocks"]
    if not all(isinstance(b, dict) for b in blocks_in):
        return obj

    data = dict(obj)
    blocks = [_rename_block_keys(b) for b in blocks_in]
    has_weeks = any("weeks" in b for b in blocks)

    weeks: Optional[Dict[int, List[Any]]] = None
    if not has_weeks and blocks:
        if isinstance(data.get("workouts"), dict):
            weeks = _from_workouts_map(data["workouts"])
            if weeks is not None:
                data.pop("workouts")
                logger.info("Adapted 'workouts' map shape (%d weeks)", len(weeks))
        elif isinstance(data.get("daily_workouts"), list):
            weeks = _from_daily_workouts(data["daily_workouts"])
            if weeks is not None:
                data.pop("daily_workouts")
                logger.info("Adapted 'daily_workouts' shape (%d weeks)", len(weeks))

    if weeks is not None:
        _attach_weeks(blocks, weeks)
    else:
        for block in blocks:
            if isinstance(block.get("weeks"), list):
                block["weeks"] = [
                    {**week, "days": [_rename_day_keys(d) for d in week["days"]]}
                    if isinstance(week, dict) and isinstance(week.get("days"), list)
                    else week
                    for week in block["weeks"]
                ]

    data["blocks"] = blocks
    return data
