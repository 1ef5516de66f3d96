"""
Movement phase classification.

Stateless rule over the two most recent buffered poses: the change in the
exercise's pivot joint angle decides concentric, eccentric or isometric.

PIVOT JOINTS:
- squat: right knee (extension while standing up = concentric)
- deadlift: right hip (hip extension = concentric)
- bench press: right elbow (elbow extension = concentric)

Other exercises have no pivot joint and always report UNKNOWN.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from fitmotion.analysis.exercise import ExerciseType
from fitmotion.analysis.pose_buffer import PoseBuffer
from fitmotion.analysis.pose_geometry import JointAngleType
from fitmotion.config import Settings, get_settings

logger = logging.getLogger(__name__)


class MovementPhase(str, Enum):
    """Phase of the current repetition."""
    CONCENTRIC = "concentric"   # Muscle shortening (standing up in a squat)
    ECCENTRIC = "eccentric"     # Muscle lengthening (descending in a squat)
    ISOMETRIC = "isometric"     # Holding position
    UNKNOWN = "unknown"


# For every mapped exercise an increasing pivot angle is the concentric direction
PIVOT_JOINTS: Dict[ExerciseType, JointAngleType] = {
    ExerciseType.SQUAT: JointAngleType.RIGHT_KNEE,
    ExerciseType.DEADLIFT: JointAngleType.RIGHT_HIP,
    ExerciseType.BENCH_PRESS: JointAngleType.RIGHT_ELBOW,
}


def pivot_joint_for(exercise_type: ExerciseType) -> Optional[JointAngleType]:
    """Pivot joint angle for an exercise, or None when unmapped."""
    return PIVOT_JOINTS.get(exercise_type)


def phase_from_delta(delta: float, isometric_threshold: float = 2.0) -> MovementPhase:
    """Map a pivot angle change (degrees) to a movement phase."""
    if abs(delta) < isometric_threshold:
        return MovementPhase.ISOMETRIC
    if delta > 0:
        return MovementPhase.CONCENTRIC
    return MovementPhase.ECCENTRIC


class PhaseClassifier:
    """Classifies the movement phase from the buffer's last two poses."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def classify(self, buffer: PoseBuffer, exercise_type: ExerciseType) -> MovementPhase:
        """
        Classify the phase of the most recent buffered pose.

        Args:
            buffer: Pose history, newest last
            exercise_type: Active exercise

        Returns:
            UNKNOWN until enough history exists, when the exercise has no
            pivot joint, or when either pivot angle is missing
        """
        if len(buffer) < self.settings.min_phase_history:
            return MovementPhase.UNKNOWN

        pivot = pivot_joint_for(exercise_type)
        if pivot is None:
            return MovementPhase.UNKNOWN

        current = buffer.latest.angle(pivot)
        previous = buffer.previous.angle(pivot)
        if current is None or previous is None:
            return MovementPhase.UNKNOWN

        delta = current - previous
        phase = phase_from_delta(delta, self.settings.isometric_threshold_degrees)
        logger.debug(f"{exercise_type.value}: {pivot.value} {previous:.1f} -> {current:.1f} = {phase.value}")
        return phase
