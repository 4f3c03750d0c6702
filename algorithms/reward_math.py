import math


class RewardMath:
    """Formulas behind workout points, coins and level thresholds."""

    BASE_POINTS: int = 50
    STAT_DIVISOR: float = 50.0
    STREAK_DIVISOR: float = 50.0
    BASE_COINS: int = 25
    LEVEL_BASE_EXP: float = 200.0
    LEVEL_GROWTH: float = 1.07

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def round_half_up(value: float, digits: int = 0) -> float:
        """Round halves away from zero for positives (``2.5 -> 3``)."""
        factor = 10**digits
        return math.floor(value * factor + 0.5) / factor

    @classmethod
    def points(cls, duration_minutes: float, stat_value: float, streak: float) -> int:
        """Return ``(50 + duration) * (1 + stat/50 + streak/50)`` rounded."""
        if duration_minutes < 0:
            raise ValueError("duration_minutes must be non-negative")
        multiplier = 1 + (stat_value / cls.STAT_DIVISOR + streak / cls.STREAK_DIVISOR)
        return int(cls.round_half_up((cls.BASE_POINTS + duration_minutes) * multiplier))

    @classmethod
    def coins(cls, duration_minutes: float) -> int:
        """Return ``25 + duration / 2`` rounded."""
        if duration_minutes < 0:
            raise ValueError("duration_minutes must be non-negative")
        return int(cls.round_half_up(cls.BASE_COINS + duration_minutes / 2))

    @classmethod
    def exp_needed_for_level(cls, level: int) -> int:
        """Experience required to clear ``level``."""
        if level < 0:
            raise ValueError("level must be non-negative")
        return math.floor(cls.LEVEL_BASE_EXP * cls.LEVEL_GROWTH**level)

    @classmethod
    def percent(cls, done: float, needed: float) -> float:
        """Return ``done / needed`` as a percentage capped at 100."""
        if needed <= 0:
            return 0.0
        return cls.clamp(done / needed * 100, 0.0, 100.0)
