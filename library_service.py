from __future__ import annotations

import logging
from typing import Iterable, Optional

import requests

from models import ExerciseReference

logger = logging.getLogger(__name__)


class ExerciseLibrary:
    """In-memory exercise lookup used for classification."""

    def __init__(self, exercises: Iterable[ExerciseReference | dict] = ()) -> None:
        self._by_id: dict[str, ExerciseReference] = {}
        self._by_name: dict[str, ExerciseReference] = {}
        for ex in exercises:
            self.add(ex)

    def add(self, exercise: ExerciseReference | dict) -> ExerciseReference:
        if isinstance(exercise, dict):
            exercise = ExerciseReference.model_validate(exercise)
        self._by_id[exercise.id] = exercise
        if exercise.name:
            self._by_name.setdefault(exercise.name.lower(), exercise)
        return exercise

    def get(self, exercise_id: str | int | None) -> Optional[ExerciseReference]:
        if exercise_id is None:
            return None
        return self._by_id.get(str(exercise_id))

    def find_by_name(self, name: str | None) -> Optional[ExerciseReference]:
        if not name:
            return None
        return self._by_name.get(str(name).lower())

    def resolve(
        self, exercise_id: str | int | None = None, name: str | None = None
    ) -> Optional[ExerciseReference]:
        """Look up by id first, then by case-insensitive name."""
        return self.get(exercise_id) or self.find_by_name(name)

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self):
        return iter(self._by_id.values())


def load_library(client, repo) -> ExerciseLibrary:
    """Fetch the library from the API and refresh ``repo``.

    When the API is unreachable the cached copy is used instead.
    """
    try:
        exercises = client.get_workout_library()
    except requests.exceptions.RequestException as exc:
        logger.warning("Falling back to cached exercise library: %s", exc)
        return ExerciseLibrary(repo.fetch_all_exercises())
    repo.replace_all(exercises)
    return ExerciseLibrary(exercises)
