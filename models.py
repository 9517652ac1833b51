from __future__ import annotations
import datetime
from typing import Annotated, Iterable, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    computed_field,
)

from errors import InvalidInputError

SESSION_TYPES = ("strength", "cycling", "running")


class SetEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    reps: int = Field(ge=1)
    weight: float = Field(ge=0)
    rpe: Optional[int] = Field(default=None, ge=1, le=10)


class ExerciseEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    sets: List[SetEntry] = Field(min_length=1)


class CyclingSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    duration: float = Field(ge=1)
    distance: Optional[float] = Field(default=None, ge=0)
    avg_power: Optional[float] = Field(default=None, ge=0)
    max_power: Optional[float] = Field(default=None, ge=0)
    avg_heart_rate: Optional[float] = Field(default=None, ge=0)
    max_heart_rate: Optional[float] = Field(default=None, ge=0)
    avg_cadence: Optional[float] = Field(default=None, ge=0)
    calories: Optional[float] = Field(default=None, ge=0)


class RunningSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    duration: float = Field(ge=1)
    distance: Optional[float] = Field(default=None, ge=0)
    avg_pace: Optional[float] = Field(default=None, ge=0)
    avg_heart_rate: Optional[float] = Field(default=None, ge=0)
    max_heart_rate: Optional[float] = Field(default=None, ge=0)
    avg_cadence: Optional[float] = Field(default=None, ge=0)
    calories: Optional[float] = Field(default=None, ge=0)
    elevation_gain: Optional[float] = Field(default=None, ge=0)


class _SessionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = 0
    date: datetime.date


class StrengthSession(_SessionBase):
    type: Literal["strength"] = "strength"
    exercises: List[ExerciseEntry] = Field(min_length=1)

    def find_exercise(self, name: str) -> Optional[ExerciseEntry]:
        """Return the first exercise logged under ``name`` (exact match)."""
        for ex in self.exercises:
            if ex.name == name:
                return ex
        return None


class CyclingSession(_SessionBase):
    type: Literal["cycling"] = "cycling"
    cycling: CyclingSummary


class RunningSession(_SessionBase):
    type: Literal["running"] = "running"
    running: RunningSummary


Session = Annotated[
    Union[StrengthSession, CyclingSession, RunningSession],
    Field(discriminator="type"),
]

_session_adapter = TypeAdapter(Session)
_session_list_adapter = TypeAdapter(List[Session])


def parse_session(data: dict) -> Session:
    """Validate a raw record into a session model.

    Records carrying ``exercises`` but no ``type`` are treated as strength
    sessions, matching how older clients submitted workouts.
    """
    if isinstance(data, dict) and "type" not in data and "exercises" in data:
        data = {**data, "type": "strength"}
    try:
        return _session_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidInputError(str(e)) from e


def parse_sessions(records: Iterable[dict]) -> list[Session]:
    return [parse_session(r) for r in records]


def session_summary(session: Session) -> CyclingSummary | RunningSummary | None:
    if isinstance(session, CyclingSession):
        return session.cycling
    if isinstance(session, RunningSession):
        return session.running
    return None


class DerivedMetric(BaseModel):
    """Metrics derived from one exercise within one session."""

    model_config = ConfigDict(frozen=True)

    date: Optional[datetime.date] = None
    session_id: Optional[int] = None
    max_weight: float
    total_volume: float
    estimated_1rm: float
    best_set: SetEntry


class ProgressReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    exercise: str
    series: List[DerivedMetric] = []
    current: Optional[DerivedMetric] = None
    previous: Optional[DerivedMetric] = None
    weight_trend: float = 0.0
    volume_trend: float = 0.0
    one_rm_trend: float = 0.0
    all_time_max_weight: Optional[float] = None
    all_time_1rm: Optional[float] = None
    is_pr: bool = False

    @computed_field
    @property
    def has_data(self) -> bool:
        return bool(self.series)

    @computed_field
    @property
    def total_sessions(self) -> int:
        return len(self.series)


class PersonalRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    exercise: str
    max_weight: float
    max_weight_date: datetime.date
    estimated_1rm: float
    estimated_1rm_date: datetime.date
    sessions: int


class StreakState(BaseModel):
    model_config = ConfigDict(frozen=True)

    length: int = Field(default=0, ge=0)
    record: int = Field(default=0, ge=0)


class WeeklyGoalState(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: int = Field(ge=1)
    achieved: int = Field(ge=0)

    @computed_field
    @property
    def progress_fraction(self) -> float:
        return min(self.achieved / self.target, 1.0)

    @computed_field
    @property
    def is_complete(self) -> bool:
        return self.achieved >= self.target

    @computed_field
    @property
    def remaining(self) -> int:
        return max(self.target - self.achieved, 0)


class Achievement(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    unlocked: bool
    progress: Optional[int] = None
    target: Optional[int] = None


class CalendarBucket(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: datetime.date
    sessions: List[Session] = []

    @computed_field
    @property
    def types(self) -> list[str]:
        present = {s.type for s in self.sessions}
        return [t for t in SESSION_TYPES if t in present]


class CalendarDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: datetime.date
    in_month: bool
    is_today: bool = False
    types: List[str] = []
    session_count: int = 0

    @computed_field
    @property
    def day(self) -> int:
        return self.date.day

    @computed_field
    @property
    def has_session(self) -> bool:
        return self.session_count > 0

    @computed_field
    @property
    def selectable(self) -> bool:
        return self.has_session


class WeekDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: datetime.date
    label: str
    has_session: bool
    is_today: bool
    is_future: bool
