"""
Technique error detection.

Rule-based checks per exercise. Every check is independent and all that
fire are reported, in rule order. Each error carries a fixed remediation
string looked up by code.

NOT YET MODELED:
Knee valgus and lumbar flexion never fire; bar path and arch always fire.
They are explicit placeholders kept for output compatibility until real
heuristics (hip-knee-ankle alignment, spine curvature, bar tracking,
lumbar arch estimation) replace them.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fitmotion.analysis.exercise import ExerciseType
from fitmotion.analysis.pose_geometry import BodyPose, JointAngleType, normalize_angle
from fitmotion.config import Settings, get_settings

logger = logging.getLogger(__name__)


class ExerciseError(str, Enum):
    """Detectable technique errors."""
    KNEE_VALGUS = "knee_valgus"
    INSUFFICIENT_DEPTH = "insufficient_depth"
    EXCESSIVE_TORSO_LEAN = "excessive_torso_lean"
    LUMBAR_FLEXION = "lumbar_flexion"
    SUBOPTIMAL_BAR_PATH = "suboptimal_bar_path"
    ASYMMETRIC_MOVEMENT = "asymmetric_movement"
    EXCESSIVE_ARCH = "excessive_arch"

    @property
    def label(self) -> str:
        return ERROR_LABELS[self]

    @property
    def description(self) -> str:
        """Remediation advice shown to the athlete."""
        return ERROR_DESCRIPTIONS[self]


ERROR_LABELS: Dict[ExerciseError, str] = {
    ExerciseError.KNEE_VALGUS: "Knee valgus",
    ExerciseError.INSUFFICIENT_DEPTH: "Insufficient depth",
    ExerciseError.EXCESSIVE_TORSO_LEAN: "Excessive torso lean",
    ExerciseError.LUMBAR_FLEXION: "Lumbar flexion",
    ExerciseError.SUBOPTIMAL_BAR_PATH: "Suboptimal bar path",
    ExerciseError.ASYMMETRIC_MOVEMENT: "Asymmetric movement",
    ExerciseError.EXCESSIVE_ARCH: "Excessive arch",
}

ERROR_DESCRIPTIONS: Dict[ExerciseError, str] = {
    ExerciseError.KNEE_VALGUS: "Keep your knees in line with your feet and don't let them cave inward.",
    ExerciseError.INSUFFICIENT_DEPTH: "Try to descend deeper to maximize muscle activation.",
    ExerciseError.EXCESSIVE_TORSO_LEAN: "Keep your torso more upright to protect your lower back.",
    ExerciseError.LUMBAR_FLEXION: "Keep a neutral spine and avoid rounding your lower back.",
    ExerciseError.SUBOPTIMAL_BAR_PATH: "Keep the bar close to your body throughout the movement.",
    ExerciseError.ASYMMETRIC_MOVEMENT: "Keep the movement symmetric on both sides of your body.",
    ExerciseError.EXCESSIVE_ARCH: "Reduce the arch in your lower back to protect your spine.",
}


class TechniqueCheck:
    """Base class for technique checks."""

    name: str = "base_check"
    error: Optional[ExerciseError] = None

    def fires(self, pose: BodyPose, settings: Settings) -> bool:
        """Return True when the error is present. Missing angles never fire."""
        raise NotImplementedError


class KneeValgusCheck(TechniqueCheck):
    """Hip-knee-ankle alignment; placeholder that never fires."""

    name = "knee_valgus_not_modeled"
    error = ExerciseError.KNEE_VALGUS

    def fires(self, pose: BodyPose, settings: Settings) -> bool:
        return False


class SquatDepthCheck(TechniqueCheck):
    """Depth = 1 - normalized right knee angle; too shallow below min_squat_depth."""

    name = "squat_depth"
    error = ExerciseError.INSUFFICIENT_DEPTH

    def fires(self, pose: BodyPose, settings: Settings) -> bool:
        knee = pose.angle(JointAngleType.RIGHT_KNEE)
        if knee is None:
            return False
        depth = 1.0 - normalize_angle(knee)
        return depth < settings.min_squat_depth


class TorsoLeanCheck(TechniqueCheck):

    name = "torso_lean"
    error = ExerciseError.EXCESSIVE_TORSO_LEAN

    def fires(self, pose: BodyPose, settings: Settings) -> bool:
        spine = pose.angle(JointAngleType.SPINE)
        return spine is not None and spine < settings.torso_lean_threshold_degrees


class LumbarFlexionCheck(TechniqueCheck):
    """Spine curvature; placeholder that never fires."""

    name = "lumbar_flexion_not_modeled"
    error = ExerciseError.LUMBAR_FLEXION

    def fires(self, pose: BodyPose, settings: Settings) -> bool:
        return False


class BarPathCheck(TechniqueCheck):
    """Bar tracking; placeholder that always fires."""

    name = "bar_path_not_modeled"
    error = ExerciseError.SUBOPTIMAL_BAR_PATH

    def fires(self, pose: BodyPose, settings: Settings) -> bool:
        return True


class ArmAsymmetryCheck(TechniqueCheck):

    name = "arm_asymmetry"
    error = ExerciseError.ASYMMETRIC_MOVEMENT

    def fires(self, pose: BodyPose, settings: Settings) -> bool:
        right = pose.angle(JointAngleType.RIGHT_ELBOW)
        left = pose.angle(JointAngleType.LEFT_ELBOW)
        if right is None or left is None:
            return False
        return abs(right - left) > settings.max_arm_asymmetry_degrees


class ArchCheck(TechniqueCheck):
    """Lumbar arch on the bench; placeholder that always fires."""

    name = "arch_not_modeled"
    error = ExerciseError.EXCESSIVE_ARCH

    def fires(self, pose: BodyPose, settings: Settings) -> bool:
        return True


TECHNIQUE_RULES: Dict[ExerciseType, List[TechniqueCheck]] = {
    ExerciseType.SQUAT: [KneeValgusCheck(), SquatDepthCheck(), TorsoLeanCheck()],
    ExerciseType.DEADLIFT: [LumbarFlexionCheck(), BarPathCheck()],
    ExerciseType.BENCH_PRESS: [ArmAsymmetryCheck(), ArchCheck()],
}


class ErrorDetector:
    """Runs the technique rules of the active exercise."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def detect(self, pose: BodyPose, exercise_type: ExerciseType) -> Tuple[ExerciseError, ...]:
        """
        Detect technique errors in one pose.

        Returns:
            Errors in rule order; empty for exercises without rules
        """
        detected = []
        for check in TECHNIQUE_RULES.get(exercise_type, []):
            if check.fires(pose, self.settings) and check.error not in detected:
                detected.append(check.error)

        if detected:
            logger.debug(f"{exercise_type.value}: detected {[e.value for e in detected]}")
        return tuple(detected)
