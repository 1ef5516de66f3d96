"""
Auto-identification of the exercise being performed.

KEY INSIGHT: each supported lift is driven by a different joint.

1. SQUAT: knee angle sweeps the widest range (hip follows along)
2. DEADLIFT: hip hinges through a wide range while the knees stay fairly fixed
3. BENCH PRESS: elbows flex and extend while the legs are still

The joint series with the largest range decides the exercise. Movement too
small to tell yields OTHER with zero confidence.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

import numpy as np

from fitmotion.analysis.exercise import ExerciseType
from fitmotion.analysis.pose_geometry import BodyPose, JointAngleType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExerciseIdentification:
    """Result of exercise identification."""
    exercise_type: ExerciseType
    confidence: float
    reasoning: str


class ExerciseIdentifier:
    """
    Identifies squat / deadlift / bench press from a short window of poses.

    Detection Strategy:
    1. Track the right knee, right hip and right elbow angle series
    2. Compare their ranges of motion (max - min)
    3. Knee-dominant = squat; hip-dominant with quiet knees = deadlift;
       elbow-dominant = bench press
    """

    ANALYSIS_FRAMES = 90  # ~3 seconds at 30fps
    MIN_FRAMES = 15
    MIN_RANGE_DEGREES = 15.0  # Below this nothing is really moving
    HINGE_KNEE_RATIO = 0.5    # Knee range must stay under half the hip range for a hinge

    TRACKED_JOINTS = (
        JointAngleType.RIGHT_KNEE,
        JointAngleType.RIGHT_HIP,
        JointAngleType.RIGHT_ELBOW,
    )

    def __init__(self):
        self.pose_count = 0
        self.series: Dict[JointAngleType, List[float]] = {joint: [] for joint in self.TRACKED_JOINTS}

    def add_pose(self, pose: BodyPose):
        """Add a pose observation."""
        if self.pose_count >= self.ANALYSIS_FRAMES:
            return

        self.pose_count += 1
        for joint in self.TRACKED_JOINTS:
            angle = pose.angle(joint)
            if angle is not None:
                self.series[joint].append(angle)

    def has_enough_data(self) -> bool:
        """Check if we have enough data to identify."""
        return any(len(values) >= self.MIN_FRAMES for values in self.series.values())

    def reset(self):
        self.pose_count = 0
        for values in self.series.values():
            values.clear()

    def identify(self) -> ExerciseIdentification:
        """Identify the exercise from the collected poses."""
        if not self.has_enough_data():
            return ExerciseIdentification(
                exercise_type=ExerciseType.OTHER,
                confidence=0.0,
                reasoning="Insufficient pose data"
            )

        ranges = {
            joint: float(np.ptp(values)) if len(values) >= self.MIN_FRAMES else 0.0
            for joint, values in self.series.items()
        }
        knee_range = ranges[JointAngleType.RIGHT_KNEE]
        hip_range = ranges[JointAngleType.RIGHT_HIP]
        elbow_range = ranges[JointAngleType.RIGHT_ELBOW]

        logger.info(f"Ranges - knee: {knee_range:.1f}, hip: {hip_range:.1f}, elbow: {elbow_range:.1f}")

        dominant = max(ranges, key=ranges.get)
        dominant_range = ranges[dominant]
        if dominant_range < self.MIN_RANGE_DEGREES:
            return ExerciseIdentification(
                exercise_type=ExerciseType.OTHER,
                confidence=0.0,
                reasoning=f"No significant joint movement (max range {dominant_range:.1f} deg)"
            )

        confidence = min(1.0, dominant_range / sum(ranges.values()))

        if dominant == JointAngleType.RIGHT_ELBOW:
            return ExerciseIdentification(
                exercise_type=ExerciseType.BENCH_PRESS,
                confidence=confidence,
                reasoning=f"Elbow-driven movement. Elbow range: {elbow_range:.1f} deg"
            )

        if dominant == JointAngleType.RIGHT_HIP and knee_range < hip_range * self.HINGE_KNEE_RATIO:
            return ExerciseIdentification(
                exercise_type=ExerciseType.DEADLIFT,
                confidence=confidence,
                reasoning=f"Hip hinge. Hip range: {hip_range:.1f} deg, "
                          f"knee range: {knee_range:.1f} deg (<{self.HINGE_KNEE_RATIO:.0%} of hip)"
            )

        return ExerciseIdentification(
            exercise_type=ExerciseType.SQUAT,
            confidence=confidence,
            reasoning=f"Knee-hip flexion. Knee range: {knee_range:.1f} deg, hip range: {hip_range:.1f} deg"
        )


def identify_exercise(poses: Iterable[BodyPose]) -> ExerciseIdentification:
    """Convenience function to identify the exercise from a pose sequence."""
    identifier = ExerciseIdentifier()
    for pose in poses:
        identifier.add_pose(pose)
    return identifier.identify()
