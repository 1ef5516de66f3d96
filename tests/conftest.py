"""
Shared fixtures for the analysis tests.

Poses are usually built straight from joint angles so each test states the
angles it cares about instead of deriving them from keypoints.
"""

from types import MappingProxyType

import pytest

from fitmotion.analysis.pose_geometry import BodyPose, JointAngleType, JointType, Keypoint, PoseFrame
from fitmotion.config import Settings


def build_pose(timestamp=0.0, **angles):
    """BodyPose with the given joint angles, e.g. build_pose(1.0, right_knee=120)."""
    joint_angles = {JointAngleType(name): float(value) for name, value in angles.items()}
    return BodyPose(
        keypoints=MappingProxyType({}),
        confidences=MappingProxyType({}),
        joint_angles=MappingProxyType(joint_angles),
        vectors=MappingProxyType({}),
        timestamp=timestamp
    )


# Upright figure in normalized image coordinates (y grows downward)
STANDING_KEYPOINTS = {
    JointType.NOSE: (0.50, 0.10),
    JointType.NECK: (0.50, 0.20),
    JointType.RIGHT_SHOULDER: (0.45, 0.20),
    JointType.RIGHT_ELBOW: (0.45, 0.35),
    JointType.RIGHT_WRIST: (0.45, 0.50),
    JointType.LEFT_SHOULDER: (0.55, 0.20),
    JointType.LEFT_ELBOW: (0.55, 0.35),
    JointType.LEFT_WRIST: (0.55, 0.50),
    JointType.RIGHT_HIP: (0.45, 0.50),
    JointType.RIGHT_KNEE: (0.45, 0.70),
    JointType.RIGHT_ANKLE: (0.45, 0.90),
    JointType.LEFT_HIP: (0.55, 0.50),
    JointType.LEFT_KNEE: (0.55, 0.70),
    JointType.LEFT_ANKLE: (0.55, 0.90),
}


def build_frame(timestamp=0.0, overrides=None, missing=(), confidence=0.9):
    """PoseFrame of the standing figure with optional moved or missing joints."""
    points = dict(STANDING_KEYPOINTS)
    points.update(overrides or {})
    keypoints = {
        joint: Keypoint(x=x, y=y)
        for joint, (x, y) in points.items() if joint not in missing
    }
    confidences = {joint: confidence for joint in keypoints}
    return PoseFrame(keypoints=keypoints, confidences=confidences, timestamp=timestamp)


@pytest.fixture
def settings():
    """Fresh default settings, independent of the cached instance."""
    return Settings()


@pytest.fixture
def make_pose():
    return build_pose


@pytest.fixture
def make_frame():
    return build_frame
