import logging
from typing import Iterable, NamedTuple

from algorithms import ExerciseClassifier, RewardMath, STRENGTH, CARDIO, OTHER
from library_service import ExerciseLibrary
from models import CharacterProfile, CompletedExerciseRecord, UserStats

logger = logging.getLogger(__name__)

# Placeholder: no streak tracking exists yet, every workout uses this value.
DEFAULT_STREAK = 10


class Rewards(NamedTuple):
    stat: str
    stat_value: int
    points: int
    coins: int


class RewardCalculator:
    """Compute the points and coins earned by a workout."""

    def __init__(self, library: ExerciseLibrary, streak: int = DEFAULT_STREAK) -> None:
        self.library = library
        self.streak = streak

    def kind_counts(self, records: Iterable[CompletedExerciseRecord]) -> dict[str, int]:
        counts = {STRENGTH: 0, CARDIO: 0, OTHER: 0}
        for record in records:
            exercise = self.library.get(record.id)
            if exercise is None:
                continue
            counts[ExerciseClassifier.classify(exercise)] += 1
        return counts

    def workout_stat(self, records: Iterable[CompletedExerciseRecord]) -> str:
        """Return the stat trained by the dominant exercise kind.

        Ties go to strength, then cardio.
        """
        counts = self.kind_counts(records)
        if counts[STRENGTH] >= counts[CARDIO] and counts[STRENGTH] >= counts[OTHER]:
            kind = STRENGTH
        elif counts[CARDIO] >= counts[OTHER]:
            kind = CARDIO
        else:
            kind = OTHER
        return ExerciseClassifier.reward_stat(kind)

    def points(
        self,
        records: Iterable[CompletedExerciseRecord],
        duration_minutes: int,
        stats: UserStats,
    ) -> int:
        stat = self.workout_stat(records)
        return RewardMath.points(duration_minutes, stats.value(stat), self.streak)

    def coins(self, duration_minutes: int) -> int:
        return RewardMath.coins(duration_minutes)

    def calculate(
        self,
        records: Iterable[CompletedExerciseRecord],
        duration_minutes: int,
        stats: UserStats,
    ) -> Rewards:
        stat = self.workout_stat(list(records))
        stat_value = stats.value(stat)
        points = RewardMath.points(duration_minutes, stat_value, self.streak)
        coins = RewardMath.coins(duration_minutes)
        logger.info(
            "Using %s stat (%s) for point calculation: %s points, %s coins for %s minutes",
            stat,
            stat_value,
            points,
            coins,
            duration_minutes,
        )
        return Rewards(stat, stat_value, points, coins)


def level_progress(profile: CharacterProfile) -> dict[str, float]:
    """Return experience progress towards the profile's next level."""
    needed = profile.exp_needed or RewardMath.exp_needed_for_level(profile.level)
    return {
        "level": profile.level,
        "exp": profile.exp_leftover,
        "exp_needed": needed,
        "percent": round(RewardMath.percent(profile.exp_leftover, needed), 1),
    }
