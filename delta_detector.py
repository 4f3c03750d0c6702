"""Classify the outcome of a submitted workout.

Two snapshots of the character's level and quests are compared: one taken
before the workout is persisted and one built from the data fetched after the
server accepted it. A level gain wins over quest completions.
"""

from __future__ import annotations

from typing import Iterable, Union

from pydantic import BaseModel, ConfigDict

from algorithms import RewardMath
from models import CharacterProfile, Quest

COMPLETE_STATUSES = frozenset({"complete", "completed"})

LEVEL_UP = "level_up"
QUEST_COMPLETE = "quest_complete"
WORKOUT_COMPLETE = "workout_complete"


def is_complete(status: str | None) -> bool:
    return (status or "").strip().lower() in COMPLETE_STATUSES


class QuestSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    status: str = ""
    workouts_completed: int = 0
    workouts_needed: int = 0

    @classmethod
    def from_quest(cls, quest: Quest | dict) -> "QuestSummary":
        if isinstance(quest, dict):
            quest = Quest.model_validate(quest)
        return cls(
            id=quest.id,
            name=quest.name,
            status=quest.status,
            workouts_completed=quest.number_of_workouts_completed,
            workouts_needed=quest.number_of_workouts_needed,
        )

    @property
    def complete(self) -> bool:
        return is_complete(self.status)

    def progress(self) -> float:
        return RewardMath.percent(self.workouts_completed, self.workouts_needed)


class Snapshot(BaseModel):
    """Immutable copy of the level and quests at one point of the flow."""

    model_config = ConfigDict(frozen=True)

    level: int
    quests: tuple[QuestSummary, ...] = ()

    @classmethod
    def capture(
        cls, profile: CharacterProfile | int, quests: Iterable[Quest | dict | QuestSummary]
    ) -> "Snapshot":
        level = profile if isinstance(profile, int) else profile.level
        summaries = tuple(
            q if isinstance(q, QuestSummary) else QuestSummary.from_quest(q) for q in quests
        )
        return cls(level=level, quests=summaries)


class LevelUp(BaseModel):
    model_config = ConfigDict(frozen=True)

    old_level: int
    new_level: int
    levels_gained: int
    next_screen: str = LEVEL_UP


class QuestComplete(BaseModel):
    model_config = ConfigDict(frozen=True)

    quests: tuple[QuestSummary, ...]
    next_screen: str = QUEST_COMPLETE


class PlainComplete(BaseModel):
    model_config = ConfigDict(frozen=True)

    next_screen: str = WORKOUT_COMPLETE


Outcome = Union[LevelUp, QuestComplete, PlainComplete]


def newly_completed(old: Snapshot, new: Snapshot) -> list[QuestSummary]:
    """Quests incomplete in ``old`` whose counterpart is complete in ``new``.

    Quests missing from ``new`` are ignored. The old copies are returned.
    """
    current = {q.id: q for q in new.quests}
    completed = []
    for quest in old.quests:
        counterpart = current.get(quest.id)
        if counterpart is None:
            continue
        if not quest.complete and counterpart.complete:
            completed.append(quest)
    return completed


def detect(old: Snapshot, new: Snapshot) -> Outcome:
    if new.level > old.level:
        return LevelUp(
            old_level=old.level,
            new_level=new.level,
            levels_gained=new.level - old.level,
        )
    completed = newly_completed(old, new)
    if completed:
        return QuestComplete(quests=tuple(completed))
    return PlainComplete()
