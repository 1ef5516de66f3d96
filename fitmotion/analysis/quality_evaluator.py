"""
Exercise quality evaluation.

Scores execution quality per training goal from the current pose and the
pose history. Eight sub-metrics are always computed so results have a
uniform shape; the overall score is the mean of the four that matter for
the active goal:

- strength: core stability, trajectory efficiency, concentric velocity, joint stiffness
- hypertrophy: time under tension, eccentric control, range of motion, muscle isolation

INSUFFICIENT DATA POLICY:
Metrics that need history report exactly the neutral score (0.5) below their
required depth (3 frames for concentric velocity and eccentric control,
5 for trajectory efficiency, 10 for range of motion). Metrics driven by the
pivot joint also report 0.5 for exercises without one.
"""

import logging
from dataclasses import asdict, dataclass, fields
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np
from scipy.signal import savgol_filter

from fitmotion.analysis.exercise import ExerciseType, TrainingMode
from fitmotion.analysis.muscle_activation import MuscleGroup, clamp_unit
from fitmotion.analysis.phase_classifier import MovementPhase, pivot_joint_for
from fitmotion.analysis.pose_buffer import PoseBuffer
from fitmotion.analysis.pose_geometry import BodyPose, JointAngleType, normalize_angle
from fitmotion.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExerciseQuality:
    """Quality sub-metrics, each in [0, 1]."""
    # Strength metrics
    core_stability: float = 0.5
    trajectory_efficiency: float = 0.5
    concentric_velocity: float = 0.5
    joint_stiffness: float = 0.5

    # Hypertrophy metrics
    time_under_tension: float = 0.5
    eccentric_control: float = 0.5
    range_of_motion: float = 0.5
    muscle_isolation: float = 0.5

    def overall_score(self, training_mode: TrainingMode) -> float:
        """Mean of the four metrics relevant to the training goal."""
        if training_mode == TrainingMode.STRENGTH:
            metrics = (
                self.core_stability, self.trajectory_efficiency,
                self.concentric_velocity, self.joint_stiffness
            )
        else:
            metrics = (
                self.time_under_tension, self.eccentric_control,
                self.range_of_motion, self.muscle_isolation
            )
        return sum(metrics) / 4.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def uniform(cls, score: float = 0.5) -> "ExerciseQuality":
        """Quality with every metric set to the same score."""
        return cls(**{f.name: score for f in fields(cls)})


# Pivot angle span (degrees) that counts as a full range of motion
TARGET_RANGE_OF_MOTION: Dict[ExerciseType, float] = {
    ExerciseType.SQUAT: 90.0,
    ExerciseType.DEADLIFT: 80.0,
    ExerciseType.BENCH_PRESS: 90.0,
}

# Bilateral joint pairs compared for joint stiffness
BILATERAL_PAIRS: List[Tuple[JointAngleType, JointAngleType]] = [
    (JointAngleType.RIGHT_KNEE, JointAngleType.LEFT_KNEE),
    (JointAngleType.RIGHT_HIP, JointAngleType.LEFT_HIP),
    (JointAngleType.RIGHT_ELBOW, JointAngleType.LEFT_ELBOW),
    (JointAngleType.RIGHT_SHOULDER, JointAngleType.LEFT_SHOULDER),
]
MAX_BILATERAL_DIFFERENCE = 45.0  # degrees at which stiffness bottoms out

SG_MAX_WINDOW = 11
SG_POLY_ORDER = 2


class QualityEvaluator:
    """Computes ExerciseQuality for one analyzed pose."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def neutral(self) -> float:
        return self.settings.neutral_score

    def evaluate(
        self,
        pose: BodyPose,
        buffer: PoseBuffer,
        exercise_type: ExerciseType,
        phase: MovementPhase,
        activation: Mapping[MuscleGroup, float]
    ) -> ExerciseQuality:
        """
        Evaluate all eight quality metrics.

        Args:
            pose: Pose being analyzed
            buffer: Pose history (normally already containing `pose`)
            exercise_type: Active exercise
            phase: Phase classified for `pose`
            activation: Activation map estimated for `pose`
        """
        samples = self._pivot_samples(buffer, exercise_type)

        return ExerciseQuality(
            core_stability=self.core_stability(pose),
            trajectory_efficiency=self.trajectory_efficiency(buffer, samples),
            concentric_velocity=self.concentric_velocity(buffer, exercise_type, phase),
            joint_stiffness=self.joint_stiffness(pose),
            time_under_tension=self.time_under_tension(samples),
            eccentric_control=self.eccentric_control(buffer, samples, phase),
            range_of_motion=self.range_of_motion(buffer, samples, exercise_type),
            muscle_isolation=self.muscle_isolation(activation),
        )

    def _pivot_samples(
        self,
        buffer: PoseBuffer,
        exercise_type: ExerciseType
    ) -> Optional[List[Tuple[float, float]]]:
        """(timestamp, pivot angle) pairs, or None for exercises without a pivot joint."""
        pivot = pivot_joint_for(exercise_type)
        if pivot is None:
            return None
        return [(p.timestamp, p.joint_angles[pivot]) for p in buffer.angle_series(pivot)]

    # =========================================================================
    # Strength metrics
    # =========================================================================

    def core_stability(self, pose: BodyPose) -> float:
        """Penalize spine deviation from the near-vertical reference (0.9 = 162 deg)."""
        spine = pose.normalized_angle(JointAngleType.SPINE)
        if spine is None:
            return self.neutral
        return clamp_unit(1.0 - abs(spine - 0.9) * 2)

    def trajectory_efficiency(
        self,
        buffer: PoseBuffer,
        samples: Optional[List[Tuple[float, float]]]
    ) -> float:
        """
        Smoothness of the pivot trajectory.

        Ratio of the Savitzky-Golay smoothed path length to the raw path
        length: frame-to-frame jitter inflates the raw path and lowers the score.
        """
        min_history = self.settings.trajectory_min_history
        if len(buffer) < min_history or not samples or len(samples) < min_history:
            return self.neutral

        angles = np.array([angle for _, angle in samples], dtype=float)
        raw_path = float(np.sum(np.abs(np.diff(angles))))
        if raw_path < 1e-6:
            return 1.0

        window = min(len(angles), SG_MAX_WINDOW)
        if window % 2 == 0:
            window -= 1
        if window <= SG_POLY_ORDER:
            return self.neutral

        smoothed = savgol_filter(angles, window, SG_POLY_ORDER)
        smoothed_path = float(np.sum(np.abs(np.diff(smoothed))))
        return clamp_unit(smoothed_path / raw_path)

    def concentric_velocity(
        self,
        buffer: PoseBuffer,
        exercise_type: ExerciseType,
        phase: MovementPhase
    ) -> float:
        """Pivot angular speed during the concentric phase relative to the target speed."""
        if len(buffer) < self.settings.velocity_min_history or phase != MovementPhase.CONCENTRIC:
            return self.neutral

        pivot = pivot_joint_for(exercise_type)
        if pivot is None:
            return self.neutral

        current, previous = buffer.latest, buffer.previous
        current_angle, previous_angle = current.angle(pivot), previous.angle(pivot)
        dt = current.timestamp - previous.timestamp
        if current_angle is None or previous_angle is None or dt <= 0:
            return self.neutral

        speed = abs(current_angle - previous_angle) / dt
        return clamp_unit(speed / self.settings.target_concentric_velocity)

    def joint_stiffness(self, pose: BodyPose) -> float:
        """Left/right agreement of paired joints; locked-in joints move together."""
        scores = []
        for right, left in BILATERAL_PAIRS:
            right_angle, left_angle = pose.angle(right), pose.angle(left)
            if right_angle is None or left_angle is None:
                continue
            scores.append(clamp_unit(1.0 - abs(right_angle - left_angle) / MAX_BILATERAL_DIFFERENCE))

        if not scores:
            return self.neutral
        return float(np.mean(scores))

    # =========================================================================
    # Hypertrophy metrics
    # =========================================================================

    def time_under_tension(self, samples: Optional[List[Tuple[float, float]]]) -> float:
        """Fraction of buffered frames spent out of lockout (loaded)."""
        if not samples:
            return self.neutral
        loaded = [normalize_angle(angle) < self.settings.lockout_ratio for _, angle in samples]
        return float(np.mean(loaded))

    def eccentric_control(
        self,
        buffer: PoseBuffer,
        samples: Optional[List[Tuple[float, float]]],
        phase: MovementPhase
    ) -> float:
        """Consistency of angular speed over the trailing eccentric run (1 - CV)."""
        if (
            len(buffer) < self.settings.eccentric_control_min_history
            or phase != MovementPhase.ECCENTRIC
            or not samples
        ):
            return self.neutral

        speeds = []
        threshold = self.settings.isometric_threshold_degrees
        for (t0, a0), (t1, a1) in zip(reversed(samples[:-1]), reversed(samples[1:])):
            delta = a1 - a0
            dt = t1 - t0
            if delta > -threshold or dt <= 0:
                break
            speeds.append(abs(delta) / dt)

        if len(speeds) < 2:
            return self.neutral

        mean_speed = float(np.mean(speeds))
        if mean_speed <= 0:
            return self.neutral
        return clamp_unit(1.0 - float(np.std(speeds)) / mean_speed)

    def range_of_motion(
        self,
        buffer: PoseBuffer,
        samples: Optional[List[Tuple[float, float]]],
        exercise_type: ExerciseType
    ) -> float:
        """Pivot angle span over the buffer relative to the exercise's full range."""
        if len(buffer) < self.settings.range_of_motion_min_history or not samples or len(samples) < 2:
            return self.neutral

        target = TARGET_RANGE_OF_MOTION.get(exercise_type)
        if not target:
            return self.neutral

        angles = [angle for _, angle in samples]
        return clamp_unit((max(angles) - min(angles)) / target)

    def muscle_isolation(self, activation: Mapping[MuscleGroup, float]) -> float:
        """How concentrated activation is on the dominant muscle (0 = uniform, 1 = single)."""
        if not activation:
            return self.neutral

        values = np.array(list(activation.values()), dtype=float)
        total = float(values.sum())
        if total <= 0:
            return self.neutral
        if len(values) == 1:
            return 1.0

        uniform_share = 1.0 / len(values)
        share = float(values.max()) / total
        return clamp_unit((share - uniform_share) / (1.0 - uniform_share))
