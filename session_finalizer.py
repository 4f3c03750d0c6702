from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from algorithms import SetSanitizer, ExerciseClassifier, RewardMath, STRENGTH, CARDIO
from models import CompletedExerciseRecord, SetEntry
from progress_store import ExerciseProgressStore

logger = logging.getLogger(__name__)


class SessionFinalizer:
    """Turn the typed sets of an exercise position into a completed record."""

    def __init__(self, store: ExerciseProgressStore) -> None:
        self.store = store
        self._records: dict[int, CompletedExerciseRecord] = {}

    @staticmethod
    def completed_sets(sets: Sequence[SetEntry], kind: str) -> list[SetEntry]:
        """Return the sets that count for an exercise of ``kind``."""
        if kind == STRENGTH:
            return [s for s in sets if s.reps or s.weight]
        if kind == CARDIO:
            return [s for s in sets if s.distance]
        return [s for s in sets if not s.is_blank()]

    @staticmethod
    def total_sets(sets: Sequence[SetEntry]) -> int:
        return len(sets)

    @staticmethod
    def total_reps(sets: Sequence[SetEntry]) -> int:
        total = sum(SetSanitizer.to_number(s.reps) for s in sets)
        return int(RewardMath.round_half_up(total))

    @staticmethod
    def average_weight(sets: Sequence[SetEntry]) -> float:
        """Mean weight per counted set, one decimal.

        This is an average even though the record field is called ``weight``.
        """
        if not sets:
            return 0.0
        total = sum(SetSanitizer.to_number(s.weight) for s in sets)
        return RewardMath.round_half_up(total / len(sets), 1)

    @staticmethod
    def total_distance(sets: Sequence[SetEntry]) -> float:
        """Summed distance over counted sets, one decimal."""
        total = sum(SetSanitizer.to_number(s.distance) for s in sets)
        return RewardMath.round_half_up(total, 1)

    def summarize(
        self, exercise_id: str | int, sets: Sequence[SetEntry], kind: str
    ) -> CompletedExerciseRecord:
        counted = self.completed_sets(sets, kind)
        reps = 0
        weight = 0.0
        distance = 0.0
        if kind != CARDIO:
            reps = self.total_reps(counted)
            weight = self.average_weight(counted)
        if kind != STRENGTH:
            distance = self.total_distance(counted)
        return CompletedExerciseRecord(
            id=exercise_id,
            sets=self.total_sets(counted),
            reps=reps,
            weight=weight,
            distance=distance,
        )

    def finalize(self, position: int, exercise: Any) -> CompletedExerciseRecord:
        """Finalize ``position``; re-finalizing overwrites the earlier record."""
        kind = ExerciseClassifier.classify(exercise)
        sets = self.store.get_sets(position)
        exercise_id = exercise["id"] if isinstance(exercise, Mapping) else exercise.id
        record = self.summarize(exercise_id, sets, kind)
        self._records[position] = record
        logger.debug("Finalized position %s (%s): %s", position, kind, record)
        return record

    def record(self, position: int) -> CompletedExerciseRecord | None:
        return self._records.get(position)

    def completed_exercises(self) -> list[CompletedExerciseRecord]:
        return [self._records[pos] for pos in sorted(self._records)]

    def clear(self) -> None:
        self._records.clear()
