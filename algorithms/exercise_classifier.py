from typing import Any, Mapping

STRENGTH = "strength"
CARDIO = "cardio"
OTHER = "other"


class ExerciseClassifier:
    """Map exercise library metadata to a workout kind."""

    STRENGTH_CATEGORIES = frozenset({"strength", "powerlifting", "olympic weightlifting"})
    STRENGTH_EQUIPMENT = frozenset({"barbell", "dumbbell"})
    CARDIO_CATEGORIES = frozenset({"cardio", "running", "plyometrics"})
    CARDIO_EQUIPMENT = frozenset({"body only"})

    REWARD_STATS = {
        STRENGTH: "strength",
        CARDIO: "endurance",
        OTHER: "flexibility",
    }

    @staticmethod
    def _field(exercise: Any, name: str) -> str:
        if exercise is None:
            return ""
        if isinstance(exercise, Mapping):
            value = exercise.get(name)
        else:
            value = getattr(exercise, name, None)
        return str(value).strip().lower() if value else ""

    @classmethod
    def classify(cls, exercise: Any) -> str:
        """Return ``strength``, ``cardio`` or ``other`` for ``exercise``.

        ``exercise`` may be a mapping or any object exposing ``category`` and
        ``equipment``. Strength wins when both rules match.
        """
        category = cls._field(exercise, "category")
        equipment = cls._field(exercise, "equipment")
        if category in cls.STRENGTH_CATEGORIES or equipment in cls.STRENGTH_EQUIPMENT:
            return STRENGTH
        if category in cls.CARDIO_CATEGORIES or equipment in cls.CARDIO_EQUIPMENT:
            return CARDIO
        return OTHER

    @classmethod
    def reward_stat(cls, kind: str) -> str:
        """Return the character stat trained by exercises of ``kind``."""
        return cls.REWARD_STATS.get(kind, cls.REWARD_STATS[OTHER])
