"""Exercise and training-goal enumerations shared by the analysis stages."""

from enum import Enum


class ExerciseType(str, Enum):
    """Supported exercise types."""
    SQUAT = "squat"
    DEADLIFT = "deadlift"
    BENCH_PRESS = "bench_press"
    SHOULDER_PRESS = "shoulder_press"
    PULL_UP = "pull_up"
    ROW = "row"
    LUNGE = "lunge"
    OTHER = "other"


class TrainingMode(str, Enum):
    """Training goal: changes activation weighting and quality scoring."""
    STRENGTH = "strength"
    HYPERTROPHY = "hypertrophy"
