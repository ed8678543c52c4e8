"""Structural validation of a parsed program object.

The raw object is checked against pydantic input models (``RawProgram`` and
its nested blocks, weeks and days). Only the first error is reported, with
the dotted path of the offending field, e.g.
``blocks[0].weeks[0].days[0].cooldown``. Fields are declared in the order
they should be reported. Block week-range gaps and overlaps are only
warnings: generation is allowed to be partial.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, StrictStr, ValidationError, conint, conlist, constr, field_validator

from .errors import SchemaError

logger = logging.getLogger(__name__)

__all__ = ["DAY_FIELDS", "EXERCISE_KINDS", "RawProgram", "ValidatedProgram", "validate"]

EXERCISE_KINDS = ("warmup", "main_set", "cooldown")

# (field, expected type label) in the order they are checked
DAY_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("day", "a string"),
    ("focus_area", "a string"),
    ("duration_min", "a number"),
    ("structure_type", "a string"),
    ("quote", "a string"),
    ("warmup", "an array"),
    ("main_set", "an array"),
    ("cooldown", "an array"),
)

_EXPECTED: Dict[str, str] = dict(DAY_FIELDS)
_EXPECTED.update({
    "program_title": "a non-empty string",
    "program_duration_weeks": "a positive integer",
    "blocks": "an array",
    "title": "a string",
    "block_goal": "a string",
    "summary": "a string",
    "week_range": "an array of two ascending integers starting at 1 or later",
    "weeks": "an array",
    "week_number": "a positive integer",
    "days": "an array",
    "day_number": "an integer between 1 and 7",
})

StrictPositiveInt = conint(strict=True, ge=1)


def _is_number(v: Any) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return False
    return math.isfinite(v)


class RawDay(BaseModel):
    day: StrictStr
    focus_area: StrictStr
    duration_min: Any
    structure_type: StrictStr
    quote: StrictStr
    warmup: List[Any]
    main_set: List[Any]
    cooldown: List[Any]
    day_number: Optional[conint(strict=True, ge=1, le=7)] = None

    @field_validator("duration_min")
    @classmethod
    def finite_number(cls, v):
        if not _is_number(v):
            raise ValueError("must be a number")
        return v


class RawWeek(BaseModel):
    week_number: StrictPositiveInt
    days: List[RawDay]


class RawBlock(BaseModel):
    title: StrictStr
    block_goal: Optional[StrictStr] = None
    summary: Optional[StrictStr] = None
    week_range: Optional[conlist(StrictPositiveInt, min_length=2, max_length=2)] = None
    weeks: Optional[List[RawWeek]] = None

    @field_validator("week_range")
    @classmethod
    def ascending(cls, v):
        if v is not None and v[0] > v[1]:
            raise ValueError("week_range must be ascending")
        return v


class RawProgram(BaseModel):
    program_title: constr(strict=True, strip_whitespace=True, min_length=1)
    program_duration_weeks: Optional[StrictPositiveInt] = None
    blocks: List[RawBlock]


@dataclass
class ValidatedProgram:
    data: Dict[str, Any]
    was_truncated: bool = False
    warnings: List[str] = field(default_factory=list)


def _trim_loc(loc: Tuple[Any, ...]) -> Tuple[Any, ...]:
    # errors on a single week_range element are reported on the range itself
    if "week_range" in loc:
        return loc[: loc.index("week_range") + 1]
    return loc


def _dotted(loc: Tuple[Any, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def _schema_error(exc: ValidationError) -> SchemaError:
    err = exc.errors()[0]
    loc = _trim_loc(tuple(err["loc"]))
    if err["type"] == "missing":
        reason = "missing"
    elif loc and isinstance(loc[-1], str) and loc[-1] in _EXPECTED:
        reason = f"must be {_EXPECTED[loc[-1]]}"
    elif err["type"] in ("model_type", "model_attributes_type", "dict_type"):
        reason = "must be an object"
    else:
        reason = err["msg"]
    return SchemaError(_dotted(loc), reason)


def _range_warnings(
    ranges: List[Tuple[int, Tuple[int, int]]], duration: Optional[int]
) -> List[str]:
    warnings: List[str] = []
    prev_end = 0
    for idx, (start, end) in sorted(ranges, key=lambda r: r[1]):
        if start <= prev_end:
            warnings.append(f"blocks[{idx}].week_range overlaps weeks {start}-{min(end, prev_end)}")
        elif start > prev_end + 1:
            warnings.append(f"blocks[{idx}].week_range leaves weeks {prev_end + 1}-{start - 1} uncovered")
        if duration is not None and end > duration:
            warnings.append(f"blocks[{idx}].week_range ends after week {duration}")
        prev_end = max(prev_end, end)
    if ranges and duration is not None and prev_end < duration:
        warnings.append(f"weeks {prev_end + 1}-{duration} are not covered by any block")
    return warnings


def validate(obj: Any, *, was_truncated: bool = False) -> ValidatedProgram:
    """Check *obj* against the canonical program shape.

    Raises :class:`SchemaError` on the first violation. The returned
    ``data`` is *obj* itself; normalization works on the raw values.
    """
    try:
        program = RawProgram.model_validate(obj)
    except ValidationError as exc:
        raise _schema_error(exc) from exc

    ranges: List[Tuple[int, Tuple[int, int]]] = []
    warnings: List[str] = []
    for i, block in enumerate(program.blocks):
        if block.week_range is None:
            continue
        rng = (block.week_range[0], block.week_range[1])
        ranges.append((i, rng))
        for j, week in enumerate(block.weeks or []):
            if not rng[0] <= week.week_number <= rng[1]:
                warnings.append(
                    f"blocks[{i}].weeks[{j}].week_number {week.week_number} "
                    f"is outside the block range {rng[0]}-{rng[1]}"
                )

    warnings.extend(_range_warnings(ranges, program.program_duration_weeks))
    for w in warnings:
        logger.warning("Schema warning: %s", w)
    return ValidatedProgram(data=obj, was_truncated=was_truncated, warnings=warnings)
