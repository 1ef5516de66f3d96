"""
Tests for the heuristic muscle activation model.
"""

import pytest

from fitmotion.analysis.exercise import ExerciseType, TrainingMode
from fitmotion.analysis.muscle_activation import (
    MuscleActivationEstimator,
    MuscleGroup,
    adjust_for_training_mode,
    tent,
)
from fitmotion.analysis.phase_classifier import MovementPhase


@pytest.fixture
def estimator():
    return MuscleActivationEstimator()


class TestHelpers:

    def test_tent_peak_and_clamp(self):
        assert tent(0.5, 0.5, 2.0) == pytest.approx(1.0)
        assert tent(0.75, 0.5, 2.0) == pytest.approx(0.5)
        assert tent(0.0, 0.5, 3.0) == 0.0

    def test_adjust_for_training_mode(self):
        activation = {MuscleGroup.CORE: 0.5, MuscleGroup.CHEST: 0.9}

        adjusted = adjust_for_training_mode(activation, MovementPhase.CONCENTRIC, TrainingMode.STRENGTH)
        assert adjusted[MuscleGroup.CORE] == pytest.approx(0.6)
        assert adjusted[MuscleGroup.CHEST] == 1.0

        unchanged = adjust_for_training_mode(activation, MovementPhase.ECCENTRIC, TrainingMode.STRENGTH)
        assert unchanged == activation

    def test_display_name(self):
        assert MuscleGroup.ANTERIOR_DELTOID.display_name == "Anterior Deltoid"
        assert MuscleGroup.CORE.display_name == "Core"


class TestSquatModel:

    def test_peak_at_ninety_degrees(self, estimator, make_pose):
        pose = make_pose(0.0, right_knee=90, right_hip=90)
        activation = estimator.estimate(pose, ExerciseType.SQUAT, MovementPhase.ISOMETRIC, TrainingMode.STRENGTH)

        assert activation[MuscleGroup.QUADRICEPS] == pytest.approx(1.0)
        assert activation[MuscleGroup.GLUTEUS] == pytest.approx(1.0)
        assert activation[MuscleGroup.HAMSTRINGS] == pytest.approx(0.85)
        assert activation[MuscleGroup.CORE] == pytest.approx(0.7)

    def test_concentric_boosts_gluteus(self, estimator, make_pose):
        pose = make_pose(0.0, right_knee=90, right_hip=126)
        activation = estimator.estimate(pose, ExerciseType.SQUAT, MovementPhase.CONCENTRIC, TrainingMode.STRENGTH)

        # tent = 0.6, x1.2 concentric, x1.2 strength
        assert activation[MuscleGroup.GLUTEUS] == pytest.approx(0.864)
        assert activation[MuscleGroup.QUADRICEPS] == 1.0

    def test_hypertrophy_eccentric_multiplier(self, estimator, make_pose):
        pose = make_pose(0.0, right_knee=90, right_hip=90)
        activation = estimator.estimate(pose, ExerciseType.SQUAT, MovementPhase.ECCENTRIC, TrainingMode.HYPERTROPHY)
        assert activation[MuscleGroup.CORE] == pytest.approx(0.805)

    def test_missing_angle_gives_empty_map(self, estimator, make_pose):
        pose = make_pose(0.0, right_hip=90)
        assert estimator.estimate(pose, ExerciseType.SQUAT, MovementPhase.UNKNOWN, TrainingMode.STRENGTH) == {}


class TestDeadliftModel:

    def test_hinged_eccentric(self, estimator, make_pose):
        pose = make_pose(0.0, right_knee=150, right_hip=54)
        activation = estimator.estimate(
            pose, ExerciseType.DEADLIFT, MovementPhase.ECCENTRIC, TrainingMode.HYPERTROPHY
        )

        assert activation[MuscleGroup.HAMSTRINGS] == 1.0
        assert activation[MuscleGroup.GLUTEUS] == pytest.approx(0.85 * 1.15)
        assert activation[MuscleGroup.LOWER_BACK] == 1.0
        assert activation[MuscleGroup.TRAPEZIUS] == pytest.approx(0.805)
        assert activation[MuscleGroup.CORE] == pytest.approx(0.92)


class TestBenchPressModel:

    def test_mid_press(self, estimator, make_pose):
        pose = make_pose(0.0, right_elbow=90, right_shoulder=45)
        activation = estimator.estimate(
            pose, ExerciseType.BENCH_PRESS, MovementPhase.ISOMETRIC, TrainingMode.HYPERTROPHY
        )

        assert activation[MuscleGroup.CHEST] == 1.0
        assert activation[MuscleGroup.TRICEPS] == pytest.approx(0.825)
        assert activation[MuscleGroup.ANTERIOR_DELTOID] == pytest.approx(0.88)

    def test_requires_shoulder(self, estimator, make_pose):
        pose = make_pose(0.0, right_elbow=90)
        assert estimator.estimate(pose, ExerciseType.BENCH_PRESS, MovementPhase.UNKNOWN, TrainingMode.STRENGTH) == {}


class TestUnmodeledExercises:

    @pytest.mark.parametrize("exercise_type", [
        ExerciseType.SHOULDER_PRESS, ExerciseType.PULL_UP, ExerciseType.ROW,
        ExerciseType.LUNGE, ExerciseType.OTHER,
    ])
    def test_empty_map(self, estimator, make_pose, exercise_type):
        pose = make_pose(0.0, right_knee=90, right_hip=90, right_elbow=90, right_shoulder=45)
        assert estimator.estimate(pose, exercise_type, MovementPhase.CONCENTRIC, TrainingMode.STRENGTH) == {}

    def test_values_always_in_unit_range(self, estimator, make_pose):
        for angle in range(0, 181, 15):
            pose = make_pose(0.0, right_knee=angle, right_hip=angle, right_elbow=angle, right_shoulder=angle)
            for exercise_type in (ExerciseType.SQUAT, ExerciseType.DEADLIFT, ExerciseType.BENCH_PRESS):
                for phase in MovementPhase:
                    for mode in TrainingMode:
                        values = estimator.estimate(pose, exercise_type, phase, mode).values()
                        assert all(0.0 <= v <= 1.0 for v in values)
