from __future__ import annotations

import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

SET_FIELDS = ("reps", "weight", "distance")


class SetEntry(BaseModel):
    """One row of typed input; empty strings mean "not entered"."""

    model_config = ConfigDict(validate_assignment=True)

    reps: str = ""
    weight: str = ""
    distance: str = ""

    def is_blank(self) -> bool:
        return not (self.reps or self.weight or self.distance)


class ExerciseReference(BaseModel):
    """Read-only exercise definition from the workout library."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str = ""
    category: Optional[str] = None
    equipment: Optional[str] = None
    images: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("id") is not None:
                data["id"] = str(data["id"])
            data["images"] = tuple(data.get("images") or ())
        return data


class CompletedExerciseRecord(BaseModel):
    """Finalized summary of one exercise, keyed by exercise id."""

    model_config = ConfigDict(frozen=True)

    id: str | int
    sets: int = 0
    reps: int = 0
    weight: float = 0.0
    distance: float = 0.0


class WorkoutSession(BaseModel):
    """Submission payload for one finished workout."""

    model_config = ConfigDict(frozen=True)

    name: str
    exercises: tuple[CompletedExerciseRecord, ...]
    date: datetime.date
    duration: int
    points: int
    coins: int

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "exercises": [ex.model_dump() for ex in self.exercises],
            "date": self.date.isoformat(),
            "duration": self.duration,
            "points": self.points,
            "coins": self.coins,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "WorkoutSession":
        return cls.model_validate(payload)


class UserStats(BaseModel):
    strength: int = 0
    endurance: int = 0
    flexibility: int = 0

    def value(self, stat: str) -> int:
        return int(getattr(self, stat, 0) or 0)


class CharacterProfile(BaseModel):
    """Subset of the character profile the session engine relies on.

    The server nests stats under ``class.stats``; a flat ``stats`` key is
    accepted too.
    """

    model_config = ConfigDict(extra="ignore")

    username: str = ""
    level: int = 1
    stats: UserStats = Field(default_factory=UserStats)
    exp_leftover: int = 0
    exp_needed: int = 0
    streak: int = 0
    coins: int = 0

    @model_validator(mode="before")
    @classmethod
    def _flatten_class(cls, data: Any) -> Any:
        if isinstance(data, dict) and "stats" not in data:
            klass = data.get("class")
            if isinstance(klass, dict) and isinstance(klass.get("stats"), dict):
                data = {**data, "stats": klass["stats"]}
        return data


class Quest(BaseModel):
    """Quest as returned by the quests endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    status: str = ""
    difficulty: str = ""
    number_of_workouts_completed: int = 0
    number_of_workouts_needed: int = 0
    workout_duration: Optional[int] = None
    exercise_category: Optional[str] = None
    exercise_muscle: Optional[str] = None

    def description(self) -> str:
        needed = self.number_of_workouts_needed
        text = f"Complete {needed} workout{'s' if needed > 1 else ''}"
        if self.workout_duration:
            text += f" of at least {self.workout_duration} minutes"
        if self.exercise_category:
            text += f" that include {self.exercise_category}"
        if self.exercise_muscle:
            text += f" targeting {self.exercise_muscle}"
        return text
