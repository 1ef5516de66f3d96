"""
Pose geometry for exercise analysis.

Turns the keypoints delivered by an external pose detector into a BodyPose:
joint angles (degrees) and limb displacement vectors in normalized image space.
Coordinates follow the image convention: x grows to the right, y grows
downward, so an upright torso has the neck above (smaller y than) the hips.

Missing keypoints never raise. Any angle or vector that needs an absent
keypoint is simply left out of the result, so callers must treat a missing
entry as "unknown" rather than as zero.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from fitmotion.config import Settings, get_settings

logger = logging.getLogger(__name__)


class JointType(str, Enum):
    """Anatomical keypoints produced by the pose detector."""
    NOSE = "nose"
    NECK = "neck"
    RIGHT_SHOULDER = "right_shoulder"
    RIGHT_ELBOW = "right_elbow"
    RIGHT_WRIST = "right_wrist"
    LEFT_SHOULDER = "left_shoulder"
    LEFT_ELBOW = "left_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_HIP = "right_hip"
    RIGHT_KNEE = "right_knee"
    RIGHT_ANKLE = "right_ankle"
    LEFT_HIP = "left_hip"
    LEFT_KNEE = "left_knee"
    LEFT_ANKLE = "left_ankle"


class JointAngleType(str, Enum):
    """Joint angles derived from keypoints."""
    RIGHT_KNEE = "right_knee"
    LEFT_KNEE = "left_knee"
    RIGHT_HIP = "right_hip"
    LEFT_HIP = "left_hip"
    RIGHT_ELBOW = "right_elbow"
    LEFT_ELBOW = "left_elbow"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_SHOULDER = "left_shoulder"
    SPINE = "spine"


class VectorType(str, Enum):
    """Limb segments derived from keypoints."""
    SPINE = "spine"
    RIGHT_THIGH = "right_thigh"
    LEFT_THIGH = "left_thigh"
    RIGHT_LEG = "right_leg"
    LEFT_LEG = "left_leg"
    RIGHT_UPPER_ARM = "right_upper_arm"
    LEFT_UPPER_ARM = "left_upper_arm"
    RIGHT_FOREARM = "right_forearm"
    LEFT_FOREARM = "left_forearm"


# Angle at the middle joint formed by (first, vertex, last)
ANGLE_DEFINITIONS: Dict[JointAngleType, Tuple[JointType, JointType, JointType]] = {
    JointAngleType.RIGHT_KNEE: (JointType.RIGHT_HIP, JointType.RIGHT_KNEE, JointType.RIGHT_ANKLE),
    JointAngleType.LEFT_KNEE: (JointType.LEFT_HIP, JointType.LEFT_KNEE, JointType.LEFT_ANKLE),
    JointAngleType.RIGHT_HIP: (JointType.RIGHT_SHOULDER, JointType.RIGHT_HIP, JointType.RIGHT_KNEE),
    JointAngleType.LEFT_HIP: (JointType.LEFT_SHOULDER, JointType.LEFT_HIP, JointType.LEFT_KNEE),
    JointAngleType.RIGHT_ELBOW: (JointType.RIGHT_SHOULDER, JointType.RIGHT_ELBOW, JointType.RIGHT_WRIST),
    JointAngleType.LEFT_ELBOW: (JointType.LEFT_SHOULDER, JointType.LEFT_ELBOW, JointType.LEFT_WRIST),
    JointAngleType.RIGHT_SHOULDER: (JointType.RIGHT_HIP, JointType.RIGHT_SHOULDER, JointType.RIGHT_ELBOW),
    JointAngleType.LEFT_SHOULDER: (JointType.LEFT_HIP, JointType.LEFT_SHOULDER, JointType.LEFT_ELBOW),
}

# Displacement from start keypoint to end keypoint
VECTOR_DEFINITIONS: Dict[VectorType, Tuple[JointType, JointType]] = {
    VectorType.RIGHT_THIGH: (JointType.RIGHT_HIP, JointType.RIGHT_KNEE),
    VectorType.LEFT_THIGH: (JointType.LEFT_HIP, JointType.LEFT_KNEE),
    VectorType.RIGHT_LEG: (JointType.RIGHT_KNEE, JointType.RIGHT_ANKLE),
    VectorType.LEFT_LEG: (JointType.LEFT_KNEE, JointType.LEFT_ANKLE),
    VectorType.RIGHT_UPPER_ARM: (JointType.RIGHT_SHOULDER, JointType.RIGHT_ELBOW),
    VectorType.LEFT_UPPER_ARM: (JointType.LEFT_SHOULDER, JointType.LEFT_ELBOW),
    VectorType.RIGHT_FOREARM: (JointType.RIGHT_ELBOW, JointType.RIGHT_WRIST),
    VectorType.LEFT_FOREARM: (JointType.LEFT_ELBOW, JointType.LEFT_WRIST),
}


@dataclass(frozen=True)
class Keypoint:
    """Single keypoint in normalized image coordinates (0-1)."""
    x: float
    y: float

    def to_array(self) -> np.ndarray:
        """Convert to numpy array [x, y]."""
        return np.array([self.x, self.y], dtype=float)


@dataclass(frozen=True)
class LimbVector:
    """Endpoint-to-endpoint displacement in normalized image space."""
    dx: float
    dy: float

    @property
    def length(self) -> float:
        return float(np.hypot(self.dx, self.dy))


@dataclass(frozen=True)
class PoseFrame:
    """Raw detector output for one frame, as delivered by the pose source."""
    keypoints: Mapping[JointType, Keypoint]
    confidences: Mapping[JointType, float] = field(default_factory=dict)
    timestamp: float = 0.0


@dataclass(frozen=True)
class BodyPose:
    """
    Keypoints plus the joint angles and limb vectors derived from them.

    Invariants: every angle lies in [0, 180]; an angle is present only when
    all three of its keypoints were present.
    """
    keypoints: Mapping[JointType, Keypoint]
    confidences: Mapping[JointType, float]
    joint_angles: Mapping[JointAngleType, float]
    vectors: Mapping[VectorType, LimbVector]
    timestamp: float

    def angle(self, angle_type: JointAngleType) -> Optional[float]:
        """Get a joint angle in degrees, or None when unknown."""
        return self.joint_angles.get(angle_type)

    def normalized_angle(self, angle_type: JointAngleType) -> Optional[float]:
        """Get a joint angle clamped to [0, 180] and scaled to [0, 1]."""
        angle = self.joint_angles.get(angle_type)
        if angle is None:
            return None
        return normalize_angle(angle)

    @property
    def overall_confidence(self) -> float:
        """Mean confidence of the detected keypoints."""
        if not self.confidences:
            return 0.0
        return float(np.mean(list(self.confidences.values())))


def normalize_angle(angle: float) -> float:
    """Clamp an angle to [0, 180] degrees and scale it to [0, 1]."""
    return min(max(angle, 0.0), 180.0) / 180.0


def calculate_angle(point_a: Keypoint, point_b: Keypoint, point_c: Keypoint) -> float:
    """
    Calculate the unsigned interior angle at point_b formed by points a, b, c.

    Uses atan2(cross, dot) of BA and BC and takes the absolute value, so the
    result is always in [0, 180] and symmetric under swapping a and c.
    """
    ba = point_a.to_array() - point_b.to_array()
    bc = point_c.to_array() - point_b.to_array()

    cross = ba[0] * bc[1] - ba[1] * bc[0]
    dot = np.dot(ba, bc)

    return float(abs(np.degrees(np.arctan2(cross, dot))))


def midpoint(point_a: Optional[Keypoint], point_b: Optional[Keypoint]) -> Optional[Keypoint]:
    """Midpoint of two keypoints, or None when either is missing."""
    if point_a is None or point_b is None:
        return None
    return Keypoint(x=(point_a.x + point_b.x) / 2, y=(point_a.y + point_b.y) / 2)


def _usable_keypoints(
    frame: PoseFrame,
    min_confidence: float
) -> Dict[JointType, Keypoint]:
    """Drop keypoints with non-finite coordinates or low confidence."""
    usable = {}
    for joint, point in frame.keypoints.items():
        if not (np.isfinite(point.x) and np.isfinite(point.y)):
            continue
        confidence = frame.confidences.get(joint, 1.0)
        if confidence < min_confidence:
            continue
        usable[joint] = point
    return usable


def compute_joint_angles(
    keypoints: Mapping[JointType, Keypoint],
    spine_reference_offset: float = 0.1
) -> Dict[JointAngleType, float]:
    """Compute every joint angle whose three keypoints are present."""
    angles: Dict[JointAngleType, float] = {}

    for angle_type, (first, vertex, last) in ANGLE_DEFINITIONS.items():
        if first in keypoints and vertex in keypoints and last in keypoints:
            angles[angle_type] = calculate_angle(keypoints[first], keypoints[vertex], keypoints[last])

    # Spine: virtual point above the neck (image y grows downward), the neck, and the hip midpoint
    neck = keypoints.get(JointType.NECK)
    mid_hip = midpoint(keypoints.get(JointType.RIGHT_HIP), keypoints.get(JointType.LEFT_HIP))
    if neck is not None and mid_hip is not None:
        top_spine = Keypoint(x=neck.x, y=neck.y - spine_reference_offset)
        angles[JointAngleType.SPINE] = calculate_angle(top_spine, neck, mid_hip)

    return angles


def compute_vectors(keypoints: Mapping[JointType, Keypoint]) -> Dict[VectorType, LimbVector]:
    """Compute every limb vector whose endpoints are present."""
    vectors: Dict[VectorType, LimbVector] = {}

    neck = keypoints.get(JointType.NECK)
    mid_hip = midpoint(keypoints.get(JointType.RIGHT_HIP), keypoints.get(JointType.LEFT_HIP))
    if neck is not None and mid_hip is not None:
        vectors[VectorType.SPINE] = LimbVector(dx=mid_hip.x - neck.x, dy=mid_hip.y - neck.y)

    for vector_type, (start, end) in VECTOR_DEFINITIONS.items():
        if start in keypoints and end in keypoints:
            vectors[vector_type] = LimbVector(
                dx=keypoints[end].x - keypoints[start].x,
                dy=keypoints[end].y - keypoints[start].y
            )

    return vectors


def compute_body_pose(frame: PoseFrame, settings: Optional[Settings] = None) -> BodyPose:
    """
    Build a BodyPose from one frame of detector output.

    Args:
        frame: Keypoints, confidences and timestamp from the pose source
        settings: Optional settings (confidence floor, spine reference offset)

    Returns:
        BodyPose with joint angles and vectors populated where possible
    """
    settings = settings or get_settings()
    keypoints = _usable_keypoints(frame, settings.min_keypoint_confidence)

    dropped = len(frame.keypoints) - len(keypoints)
    if dropped:
        logger.debug(f"Dropped {dropped} unusable keypoints at t={frame.timestamp:.3f}")

    confidences = {
        joint: float(frame.confidences[joint])
        for joint in keypoints if joint in frame.confidences
    }

    return BodyPose(
        keypoints=MappingProxyType(keypoints),
        confidences=MappingProxyType(confidences),
        joint_angles=MappingProxyType(compute_joint_angles(keypoints, settings.spine_reference_offset)),
        vectors=MappingProxyType(compute_vectors(keypoints)),
        timestamp=frame.timestamp
    )


def keypoints_from_array(array: np.ndarray, timestamp: float) -> PoseFrame:
    """
    Create a PoseFrame from an (N, 3) array of (x, y, confidence) rows.

    Rows follow JointType declaration order. Rows containing NaN are
    treated as undetected keypoints.
    """
    array = np.asarray(array, dtype=float)
    keypoints: Dict[JointType, Keypoint] = {}
    confidences: Dict[JointType, float] = {}

    for joint, row in zip(JointType, array):
        if np.isnan(row[:3]).any():
            continue
        keypoints[joint] = Keypoint(x=float(row[0]), y=float(row[1]))
        confidences[joint] = float(row[2])

    return PoseFrame(keypoints=keypoints, confidences=confidences, timestamp=timestamp)
