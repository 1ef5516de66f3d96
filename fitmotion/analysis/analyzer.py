"""
Exercise analysis orchestrator.

PIPELINE STAGES (per incoming pose, strictly sequential):
1. Pose geometry (joint angles, limb vectors)
2. Pose buffer push
3. Movement phase classification
4. Muscle activation estimation
5. Exercise quality evaluation
6. Technique error detection

Each call to ingest() produces exactly one immutable AnalysisResult. ingest()
never raises: a failing stage is logged and replaced by its neutral default.
Calls to ingest() and configure() are serialized by an internal lock so the
buffer is never read mid-mutation.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Tuple, Union

from fitmotion.analysis.error_detector import ErrorDetector, ExerciseError
from fitmotion.analysis.exercise import ExerciseType, TrainingMode
from fitmotion.analysis.muscle_activation import MuscleActivationEstimator, MuscleGroup
from fitmotion.analysis.phase_classifier import MovementPhase, PhaseClassifier
from fitmotion.analysis.pose_buffer import PoseBuffer
from fitmotion.analysis.pose_geometry import BodyPose, PoseFrame, compute_body_pose
from fitmotion.analysis.quality_evaluator import ExerciseQuality, QualityEvaluator
from fitmotion.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AnalyzerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class AnalysisResult:
    """Complete, immutable analysis of a single pose."""
    pose: BodyPose
    muscle_activation: Mapping[MuscleGroup, float]
    movement_phase: MovementPhase
    exercise_quality: ExerciseQuality
    detected_errors: Tuple[ExerciseError, ...]
    timestamp: float
    exercise_type: ExerciseType
    training_mode: TrainingMode
    buffered: bool = True  # False when the pose was rejected as out of order

    @property
    def overall_score(self) -> float:
        """Quality score for the training mode active when the pose was analyzed."""
        return self.exercise_quality.overall_score(self.training_mode)

    @property
    def error_descriptions(self) -> List[str]:
        return [error.description for error in self.detected_errors]


ResultListener = Callable[[AnalysisResult], None]

# Order used by cycle_exercise_type()
EXERCISE_CYCLE: List[ExerciseType] = [
    ExerciseType.SQUAT,
    ExerciseType.DEADLIFT,
    ExerciseType.BENCH_PRESS,
    ExerciseType.SHOULDER_PRESS,
]


class ExerciseAnalyzer:
    """
    Owns the exercise configuration and the pose buffer.

    Usage:
        analyzer = ExerciseAnalyzer()
        analyzer.configure("squat", "hypertrophy")
        for frame in frames:
            result = analyzer.ingest(frame)
            print(result.movement_phase.value, result.overall_score)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        exercise_type: Optional[Union[ExerciseType, str]] = None,
        training_mode: Optional[Union[TrainingMode, str]] = None
    ):
        self.settings = settings or get_settings()

        self.buffer = PoseBuffer(self.settings.history_capacity)
        self.phase_classifier = PhaseClassifier(self.settings)
        self.activation_estimator = MuscleActivationEstimator()
        self.quality_evaluator = QualityEvaluator(self.settings)
        self.error_detector = ErrorDetector(self.settings)

        self._lock = threading.RLock()
        self._listeners: List[ResultListener] = []
        self._state = AnalyzerState.IDLE
        self._exercise_type = ExerciseType(self.settings.default_exercise_type)
        self._training_mode = TrainingMode(self.settings.default_training_mode)

        if exercise_type is not None:
            self.configure(exercise_type, training_mode)

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def state(self) -> AnalyzerState:
        return self._state

    @property
    def exercise_type(self) -> ExerciseType:
        return self._exercise_type

    @property
    def training_mode(self) -> TrainingMode:
        return self._training_mode

    def configure(
        self,
        exercise_type: Union[ExerciseType, str],
        training_mode: Optional[Union[TrainingMode, str]] = None
    ):
        """
        Set the active exercise and training goal.

        Changing the exercise type clears the pose buffer.

        Raises:
            ValueError: Unknown exercise type or training mode
        """
        exercise_type = ExerciseType(exercise_type)
        training_mode = TrainingMode(training_mode) if training_mode is not None else self._training_mode

        with self._lock:
            if exercise_type != self._exercise_type:
                self.buffer.clear()
                logger.info(f"Exercise changed {self._exercise_type.value} -> {exercise_type.value}, history cleared")

            self._exercise_type = exercise_type
            self._training_mode = training_mode
            self._state = AnalyzerState.ACTIVE

        logger.info(f"Analyzer configured: exercise={exercise_type.value}, mode={training_mode.value}")

    def toggle_training_mode(self) -> TrainingMode:
        """Switch between strength and hypertrophy."""
        with self._lock:
            if self._training_mode == TrainingMode.STRENGTH:
                new_mode = TrainingMode.HYPERTROPHY
            else:
                new_mode = TrainingMode.STRENGTH
            self.configure(self._exercise_type, new_mode)
        return new_mode

    def cycle_exercise_type(self) -> ExerciseType:
        """Advance to the next exercise in EXERCISE_CYCLE (anything else goes to squat)."""
        with self._lock:
            if self._exercise_type in EXERCISE_CYCLE:
                index = EXERCISE_CYCLE.index(self._exercise_type)
                next_type = EXERCISE_CYCLE[(index + 1) % len(EXERCISE_CYCLE)]
            else:
                next_type = ExerciseType.SQUAT
            self.configure(next_type)
        return next_type

    def reset(self):
        """Clear history and return to idle."""
        with self._lock:
            self.buffer.clear()
            self._state = AnalyzerState.IDLE
        logger.info("Analyzer reset")

    # =========================================================================
    # Result listeners
    # =========================================================================

    def add_listener(self, listener: ResultListener):
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: ResultListener):
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, result: AnalysisResult):
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception as e:
                logger.exception(f"Result listener {listener!r} failed: {e}")

    # =========================================================================
    # Analysis
    # =========================================================================

    def ingest(self, pose: Union[PoseFrame, BodyPose]) -> AnalysisResult:
        """
        Analyze one pose.

        Args:
            pose: Raw detector frame or an already computed BodyPose

        Returns:
            AnalysisResult for this pose
        """
        with self._lock:
            if self._state == AnalyzerState.IDLE:
                logger.info(
                    f"ingest() before configure(); using defaults "
                    f"{self._exercise_type.value}/{self._training_mode.value}"
                )
                self._state = AnalyzerState.ACTIVE

            body_pose = self._to_body_pose(pose)
            exercise_type = self._exercise_type
            training_mode = self._training_mode

            buffered = self.buffer.push(body_pose)

            if buffered:
                phase = self._run_stage(
                    "phase", MovementPhase.UNKNOWN,
                    self.phase_classifier.classify, self.buffer, exercise_type
                )
            else:
                phase = MovementPhase.UNKNOWN

            activation = self._run_stage(
                "activation", {},
                self.activation_estimator.estimate, body_pose, exercise_type, phase, training_mode
            )
            quality = self._run_stage(
                "quality", ExerciseQuality.uniform(self.settings.neutral_score),
                self.quality_evaluator.evaluate, body_pose, self.buffer, exercise_type, phase, activation
            )
            errors = self._run_stage(
                "errors", (),
                self.error_detector.detect, body_pose, exercise_type
            )

            result = AnalysisResult(
                pose=body_pose,
                muscle_activation=MappingProxyType(dict(activation)),
                movement_phase=phase,
                exercise_quality=quality,
                detected_errors=tuple(errors),
                timestamp=body_pose.timestamp,
                exercise_type=exercise_type,
                training_mode=training_mode,
                buffered=buffered,
            )

            self._notify(result)
            return result

    def _to_body_pose(self, pose: Union[PoseFrame, BodyPose]) -> BodyPose:
        if isinstance(pose, BodyPose):
            return pose
        try:
            return compute_body_pose(pose, self.settings)
        except Exception as e:
            logger.exception(f"Pose geometry failed, analyzing an empty pose: {e}")
            return BodyPose(
                keypoints=MappingProxyType({}),
                confidences=MappingProxyType({}),
                joint_angles=MappingProxyType({}),
                vectors=MappingProxyType({}),
                timestamp=getattr(pose, "timestamp", 0.0)
            )

    def _run_stage(self, name: str, default, func, *args):
        """Run a pipeline stage, falling back to its default on failure."""
        try:
            return func(*args)
        except Exception as e:
            logger.exception(f"Analysis stage '{name}' failed, using default: {e}")
            return default
