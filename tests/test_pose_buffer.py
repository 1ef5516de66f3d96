"""
Tests for the temporal pose buffer.
"""

import pytest

from fitmotion.analysis.pose_buffer import PoseBuffer
from fitmotion.analysis.pose_geometry import JointAngleType


class TestPoseBuffer:

    def test_capacity_evicts_oldest(self, make_pose):
        buffer = PoseBuffer(capacity=3)
        for i in range(5):
            assert buffer.push(make_pose(float(i), right_knee=100 + i))

        assert len(buffer) == 3
        assert [p.timestamp for p in buffer] == [2.0, 3.0, 4.0]

    def test_default_capacity(self):
        assert PoseBuffer().capacity == 30

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            PoseBuffer(capacity=0)

    def test_rejects_older_timestamp(self, make_pose):
        """Test that an out-of-order pose leaves the buffer untouched."""
        buffer = PoseBuffer()
        buffer.push(make_pose(1.0))
        buffer.push(make_pose(2.0))

        assert buffer.push(make_pose(1.5)) is False
        assert len(buffer) == 2
        assert buffer.latest.timestamp == 2.0

    def test_accepts_equal_timestamp(self, make_pose):
        buffer = PoseBuffer()
        buffer.push(make_pose(1.0))
        assert buffer.push(make_pose(1.0)) is True

    def test_latest_and_previous(self, make_pose):
        buffer = PoseBuffer()
        assert buffer.latest is None
        assert buffer.previous is None

        buffer.push(make_pose(1.0))
        assert buffer.previous is None

        buffer.push(make_pose(2.0))
        assert buffer.latest.timestamp == 2.0
        assert buffer.previous.timestamp == 1.0

    def test_last(self, make_pose):
        buffer = PoseBuffer()
        for i in range(4):
            buffer.push(make_pose(float(i)))

        assert [p.timestamp for p in buffer.last(2)] == [2.0, 3.0]
        assert len(buffer.last(10)) == 4
        assert buffer.last(0) == []

    def test_angle_series_skips_missing(self, make_pose):
        buffer = PoseBuffer()
        buffer.push(make_pose(0.0, right_knee=170))
        buffer.push(make_pose(1.0))
        buffer.push(make_pose(2.0, right_knee=150))

        series = buffer.angle_series(JointAngleType.RIGHT_KNEE)
        assert [p.timestamp for p in series] == [0.0, 2.0]

    def test_clear(self, make_pose):
        buffer = PoseBuffer()
        buffer.push(make_pose(1.0))
        buffer.clear()

        assert len(buffer) == 0
        # Ordering restarts after a clear
        assert buffer.push(make_pose(0.5))
