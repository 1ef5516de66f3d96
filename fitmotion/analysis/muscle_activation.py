"""
Muscle activation estimation.

Heuristic, parametric model of per-muscle engagement in [0, 1]. It is NOT an
EMG measurement: each exercise maps normalized joint angles (angle / 180)
through tent functions peaking at a muscle-specific center, applies phase
multipliers, then a training-goal adjustment.

MODELS:
- Squat: quadriceps (knee, peak 90 deg), gluteus and hamstrings (hip), core baseline
- Deadlift: hamstrings and gluteus (hip), lower back / trapezius / core baselines
- Bench press: chest (elbow, peak 90 deg), triceps (elbow extension), anterior deltoid baseline

Exercises without a model return an empty map.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Mapping, Optional

from fitmotion.analysis.exercise import ExerciseType, TrainingMode
from fitmotion.analysis.phase_classifier import MovementPhase
from fitmotion.analysis.pose_geometry import BodyPose, JointAngleType

logger = logging.getLogger(__name__)


class MuscleGroup(str, Enum):
    """Muscle groups tracked by the activation model."""
    QUADRICEPS = "quadriceps"
    HAMSTRINGS = "hamstrings"
    GLUTEUS = "gluteus"
    CALVES = "calves"
    CHEST = "chest"
    UPPER_BACK = "upper_back"
    LOWER_BACK = "lower_back"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"
    TRICEPS = "triceps"
    FOREARMS = "forearms"
    CORE = "core"
    ANTERIOR_DELTOID = "anterior_deltoid"
    LATERAL_DELTOID = "lateral_deltoid"
    POSTERIOR_DELTOID = "posterior_deltoid"
    TRAPEZIUS = "trapezius"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


ActivationMap = Dict[MuscleGroup, float]


def clamp_unit(value: float) -> float:
    """Clamp a value to [0, 1]."""
    return min(max(value, 0.0), 1.0)


def tent(x: float, center: float, slope: float) -> float:
    """Triangular activation peaking at `center`: 1 - slope * |x - center|, clamped."""
    return clamp_unit(1.0 - abs(x - center) * slope)


# =============================================================================
# Per-exercise models
# =============================================================================

def estimate_squat(pose: BodyPose, phase: MovementPhase) -> ActivationMap:
    knee = pose.normalized_angle(JointAngleType.RIGHT_KNEE)
    hip = pose.normalized_angle(JointAngleType.RIGHT_HIP)
    if knee is None or hip is None:
        return {}

    gluteus = tent(hip, 0.5, 2.0)
    if phase == MovementPhase.CONCENTRIC:
        gluteus *= 1.2

    return {
        # Peaks with the knee at ~90 deg
        MuscleGroup.QUADRICEPS: tent(knee, 0.5, 2.0),
        MuscleGroup.GLUTEUS: clamp_unit(gluteus),
        MuscleGroup.HAMSTRINGS: tent(hip, 0.4, 1.5),
        MuscleGroup.CORE: 0.7,
    }


def estimate_deadlift(pose: BodyPose, phase: MovementPhase) -> ActivationMap:
    knee = pose.normalized_angle(JointAngleType.RIGHT_KNEE)
    hip = pose.normalized_angle(JointAngleType.RIGHT_HIP)
    if knee is None or hip is None:
        return {}

    hamstrings = tent(hip, 0.3, 1.2)
    if phase == MovementPhase.ECCENTRIC:
        hamstrings *= 1.1

    gluteus = tent(hip, 0.4, 1.5)
    if phase == MovementPhase.CONCENTRIC:
        gluteus *= 1.2

    return {
        MuscleGroup.HAMSTRINGS: clamp_unit(hamstrings),
        MuscleGroup.GLUTEUS: clamp_unit(gluteus),
        MuscleGroup.LOWER_BACK: 0.9,
        MuscleGroup.TRAPEZIUS: 0.7,
        MuscleGroup.CORE: 0.8,
    }


def estimate_bench_press(pose: BodyPose, phase: MovementPhase) -> ActivationMap:
    elbow = pose.normalized_angle(JointAngleType.RIGHT_ELBOW)
    shoulder = pose.normalized_angle(JointAngleType.RIGHT_SHOULDER)
    if elbow is None or shoulder is None:
        return {}

    chest = tent(elbow, 0.5, 2.0)
    if phase == MovementPhase.CONCENTRIC:
        chest *= 1.1

    # Rises with elbow extension; lockout end of the press gets a boost
    triceps = elbow * 1.5
    if phase == MovementPhase.CONCENTRIC and elbow > 0.7:
        triceps *= 1.2

    return {
        MuscleGroup.CHEST: clamp_unit(chest),
        MuscleGroup.TRICEPS: clamp_unit(triceps),
        MuscleGroup.ANTERIOR_DELTOID: 0.8,
    }


ACTIVATION_MODELS: Dict[ExerciseType, Callable[[BodyPose, MovementPhase], ActivationMap]] = {
    ExerciseType.SQUAT: estimate_squat,
    ExerciseType.DEADLIFT: estimate_deadlift,
    ExerciseType.BENCH_PRESS: estimate_bench_press,
}


# Training-goal multipliers per phase; phases not listed are left unchanged
TRAINING_MODE_MULTIPLIERS: Dict[TrainingMode, Dict[MovementPhase, float]] = {
    TrainingMode.STRENGTH: {
        MovementPhase.CONCENTRIC: 1.2,
    },
    TrainingMode.HYPERTROPHY: {
        MovementPhase.ECCENTRIC: 1.15,
        MovementPhase.ISOMETRIC: 1.1,
    },
}


def adjust_for_training_mode(
    activation: Mapping[MuscleGroup, float],
    phase: MovementPhase,
    training_mode: TrainingMode
) -> ActivationMap:
    """Scale every activation by the goal's phase multiplier and re-clamp."""
    multiplier = TRAINING_MODE_MULTIPLIERS[training_mode].get(phase, 1.0)
    return {muscle: clamp_unit(value * multiplier) for muscle, value in activation.items()}


class MuscleActivationEstimator:
    """Estimates per-muscle activation for the active exercise."""

    def estimate(
        self,
        pose: BodyPose,
        exercise_type: ExerciseType,
        phase: MovementPhase,
        training_mode: TrainingMode
    ) -> ActivationMap:
        """
        Estimate activation for one pose.

        Returns:
            Mapping of muscle group to activation in [0, 1]; empty when the
            exercise has no model or its required angles are missing
        """
        model: Optional[Callable] = ACTIVATION_MODELS.get(exercise_type)
        if model is None:
            return {}

        activation = model(pose, phase)
        if not activation:
            logger.debug(f"No activation for {exercise_type.value}: required angles missing")
            return {}

        return adjust_for_training_mode(activation, phase, training_mode)
