from datetime import date
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, conint

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
QUOTE_MAX_LENGTH = 100
ELLIPSIS = "…"


class ExerciseKind(str, Enum):
    WARMUP = "warmup"
    MAIN_SET = "main_set"
    COOLDOWN = "cooldown"

    @property
    def label(self) -> str:
        return {"warmup": "Warmup", "main_set": "Main Set", "cooldown": "Cooldown"}[self.value]


class Exercise(BaseModel):
    name: str = "Unnamed"
    sets: Optional[conint(ge=1)] = None
    reps: Optional[conint(ge=1)] = None
    weight_kg: Optional[float] = Field(default=None, ge=0)
    duration_sec: Optional[conint(ge=0)] = None
    speed: Optional[Union[float, str]] = None
    distance_m: Optional[float] = Field(default=None, ge=0)
    notes: str = ""


class StringExercise(BaseModel):
    """Exercise given as a bare name, e.g. ``"Arm Circles"``."""

    kind: Literal["string"] = "string"
    name: str

    def resolve(self) -> Exercise:
        return Exercise(name=self.name.strip() or "Unnamed")


class StructuredExercise(BaseModel):
    """Exercise given as an object; fields are already coerced."""

    kind: Literal["structured"] = "structured"
    name: str = "Unnamed"
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    duration_sec: Optional[int] = None
    speed: Optional[Union[float, str]] = None
    distance_m: Optional[float] = None
    notes: str = ""

    def resolve(self) -> Exercise:
        return Exercise(**self.model_dump(exclude={"kind"}))


ExerciseInput = Union[StringExercise, StructuredExercise]


class WorkoutDay(BaseModel):
    day: str
    week_number: conint(ge=1)
    day_number: conint(ge=1, le=7)
    focus_area: str = "General"
    duration_min: conint(ge=0) = 0
    structure_type: str = "training"
    quote: str = Field(default="", max_length=QUOTE_MAX_LENGTH)
    is_rest_day: bool = False
    warmup: List[Exercise] = Field(default_factory=list)
    main_set: List[Exercise] = Field(default_factory=list)
    cooldown: List[Exercise] = Field(default_factory=list)

    @property
    def day_of_week(self) -> str:
        return WEEKDAYS[self.day_number - 1]

    def exercises(self, kind: ExerciseKind) -> List[Exercise]:
        return getattr(self, kind.value)


class ProgramWeek(BaseModel):
    week_number: conint(ge=1)
    days: List[WorkoutDay] = Field(default_factory=list)


class ProgramBlock(BaseModel):
    title: str
    order: conint(ge=1)
    goal: str = ""
    week_start: conint(ge=1)
    week_end: conint(ge=1)
    weeks: List[ProgramWeek] = Field(default_factory=list)

    def iter_days(self):
        for week in self.weeks:
            yield from week.days


class NormalizedProgram(BaseModel):
    title: str
    goal_summary: str = ""
    duration_weeks: conint(ge=1)
    blocks: List[ProgramBlock] = Field(default_factory=list)
    was_truncated: bool = False
    warnings: List[str] = Field(default_factory=list)

    def iter_days(self):
        for block in self.blocks:
            yield from block.iter_days()

    @property
    def detailed_weeks(self) -> int:
        return len({d.week_number for d in self.iter_days()})


class OwnerContext(BaseModel):
    """Who the program belongs to and how it is dated."""

    user_id: str
    intake_id: Optional[str] = None
    goal_summary: Optional[str] = None
    start_date: date = Field(default_factory=date.today)
    timezone: str = "UTC"
    version_number: Optional[conint(ge=1)] = None
