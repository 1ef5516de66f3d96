"""
Temporal pose buffer.

Fixed-capacity window of the most recent BodyPoses, oldest first. The phase
classifier and the multi-frame quality metrics read from it; it is cleared
whenever the active exercise changes.
"""

import logging
from collections import deque
from typing import Deque, Iterator, List, Optional

from fitmotion.analysis.pose_geometry import BodyPose, JointAngleType

logger = logging.getLogger(__name__)


class PoseBuffer:
    """
    Insertion-ordered FIFO of BodyPoses with non-decreasing timestamps.

    Not thread-safe: callers serialize access (see ExerciseAnalyzer / PoseStream).
    """

    DEFAULT_CAPACITY = 30

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._poses: Deque[BodyPose] = deque(maxlen=capacity)

    def push(self, pose: BodyPose) -> bool:
        """
        Append a pose, evicting the oldest entry when full.

        Returns:
            False (and leaves the buffer untouched) when the pose is older
            than the newest buffered pose
        """
        if self._poses and pose.timestamp < self._poses[-1].timestamp:
            logger.warning(
                f"Rejected out-of-order pose: t={pose.timestamp:.3f} < "
                f"latest t={self._poses[-1].timestamp:.3f}"
            )
            return False

        if len(self._poses) == self.capacity:
            logger.debug(f"Buffer full ({self.capacity}), evicting t={self._poses[0].timestamp:.3f}")

        self._poses.append(pose)
        return True

    def clear(self):
        self._poses.clear()

    def last(self, n: int) -> List[BodyPose]:
        """The n most recent poses in chronological order (fewer if not available)."""
        if n <= 0:
            return []
        return list(self._poses)[-n:]

    @property
    def latest(self) -> Optional[BodyPose]:
        return self._poses[-1] if self._poses else None

    @property
    def previous(self) -> Optional[BodyPose]:
        """Second-most-recent pose."""
        return self._poses[-2] if len(self._poses) >= 2 else None

    def angle_series(self, angle_type: JointAngleType) -> List[BodyPose]:
        """Buffered poses that carry the given angle, oldest first."""
        return [pose for pose in self._poses if angle_type in pose.joint_angles]

    def __len__(self) -> int:
        return len(self._poses)

    def __iter__(self) -> Iterator[BodyPose]:
        return iter(list(self._poses))
