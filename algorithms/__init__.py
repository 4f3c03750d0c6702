from .set_sanitizer import SetSanitizer
from .exercise_classifier import ExerciseClassifier, STRENGTH, CARDIO, OTHER
from .reward_math import RewardMath

__all__ = [
    "SetSanitizer",
    "ExerciseClassifier",
    "RewardMath",
    "STRENGTH",
    "CARDIO",
    "OTHER",
]
