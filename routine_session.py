from __future__ import annotations

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from algorithms import ExerciseClassifier
from library_service import ExerciseLibrary
from models import CompletedExerciseRecord, ExerciseReference
from progress_store import ExerciseProgressStore
from session_finalizer import SessionFinalizer

logger = logging.getLogger(__name__)


class RoutineExercise(BaseModel):
    """An entry of the routine being performed."""

    model_config = ConfigDict(frozen=True)

    id: str | int
    name: str = ""


def parse_routine_exercises(raw: Any, library: Optional[ExerciseLibrary] = None) -> list[RoutineExercise]:
    """Read the routine's exercise list.

    ``raw`` is a JSON string or a list holding either exercise objects with an
    ``id`` or plain exercise names looked up in ``library``. Anything that
    cannot be read yields an empty list.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Could not parse routine exercises")
            return []
    if not isinstance(raw, list) or not raw:
        return []

    first = raw[0]
    if isinstance(first, dict) and first.get("id") is not None:
        exercises = []
        for item in raw:
            if not isinstance(item, dict) or item.get("id") is None:
                logger.warning("Skipping routine entry without id: %r", item)
                continue
            exercises.append(RoutineExercise(id=item["id"], name=str(item.get("name") or "")))
        return exercises
    if isinstance(first, str):
        exercises = []
        for name in raw:
            match = library.find_by_name(str(name)) if library is not None else None
            exercises.append(RoutineExercise(id=match.id if match else str(name), name=str(name)))
        return exercises
    return []


class RoutineSession:
    """Walks through a routine, finalizing each exercise when it is left."""

    def __init__(
        self,
        exercises: list[RoutineExercise],
        library: Optional[ExerciseLibrary] = None,
        start_index: int = 0,
    ) -> None:
        self.exercises = list(exercises)
        self.library = library or ExerciseLibrary()
        self.store = ExerciseProgressStore()
        self.finalizer = SessionFinalizer(self.store)
        self.position = self._clamp(start_index)
        self.finished = False

    def _clamp(self, index: int) -> int:
        if not self.exercises:
            return 0
        return max(0, min(index, len(self.exercises) - 1))

    @property
    def current(self) -> Optional[RoutineExercise]:
        if not self.exercises:
            return None
        return self.exercises[self.position]

    def reference(self, position: int) -> ExerciseReference:
        """Library entry for ``position``; unknown exercises classify as other."""
        entry = self.exercises[position]
        found = self.library.resolve(entry.id, entry.name)
        if found is not None:
            return found
        return ExerciseReference(id=str(entry.id), name=entry.name)

    def current_kind(self) -> Optional[str]:
        if self.current is None:
            return None
        return ExerciseClassifier.classify(self.reference(self.position))

    def _save_current(self) -> Optional[CompletedExerciseRecord]:
        entry = self.current
        if entry is None:
            return None
        ref = self.reference(self.position)
        kind = ExerciseClassifier.classify(ref)
        record = self.finalizer.finalize(
            self.position,
            {"id": entry.id, "category": ref.category, "equipment": ref.equipment},
        )
        counted = self.finalizer.completed_sets(self.store.get_sets(self.position), kind)
        self.store.compact(self.position, counted)
        return record

    def next(self) -> Optional[list[CompletedExerciseRecord]]:
        """Move forward; on the last exercise this ends the workout."""
        if self.position >= len(self.exercises) - 1:
            return self.end()
        self._save_current()
        self.position += 1
        return None

    def previous(self) -> None:
        if self.position <= 0:
            return
        self._save_current()
        self.position -= 1

    def end(self) -> list[CompletedExerciseRecord]:
        self._save_current()
        self.finished = True
        return self.finalizer.completed_exercises()

    def cancel(self) -> None:
        self.store.clear()
        self.finalizer.clear()
        self.finished = True
