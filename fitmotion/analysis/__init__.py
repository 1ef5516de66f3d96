"""
Exercise analysis pipeline for strength training.

PIPELINE COMPONENTS:
1. Pose geometry: joint angles and limb vectors from detector keypoints
2. PoseBuffer: fixed-capacity history of recent poses
3. PhaseClassifier: concentric / eccentric / isometric from the pivot joint
4. MuscleActivationEstimator: heuristic per-muscle engagement
5. QualityEvaluator: strength and hypertrophy quality metrics
6. ErrorDetector: rule-based technique errors with remediation text
7. ExerciseAnalyzer: orchestrates the stages, one result per pose
8. ExerciseIdentifier: guesses the exercise from joint ranges of motion
9. PoseStream: bounded queue feeding the analyzer from producer threads

Usage:
    from fitmotion.analysis import ExerciseAnalyzer, PoseStream

    analyzer = ExerciseAnalyzer(exercise_type="squat", training_mode="strength")
    with PoseStream(analyzer, result_callback=print) as stream:
        for frame in frames:
            stream.submit(frame)
"""

from fitmotion.analysis.exercise import ExerciseType, TrainingMode
from fitmotion.analysis.pose_geometry import (
    JointType, JointAngleType, VectorType, Keypoint, LimbVector,
    PoseFrame, BodyPose, calculate_angle, compute_body_pose, keypoints_from_array
)
from fitmotion.analysis.pose_buffer import PoseBuffer
from fitmotion.analysis.phase_classifier import MovementPhase, PhaseClassifier
from fitmotion.analysis.muscle_activation import MuscleGroup, MuscleActivationEstimator
from fitmotion.analysis.quality_evaluator import ExerciseQuality, QualityEvaluator
from fitmotion.analysis.error_detector import ExerciseError, ErrorDetector
from fitmotion.analysis.analyzer import AnalysisResult, AnalyzerState, ExerciseAnalyzer
from fitmotion.analysis.exercise_identifier import (
    ExerciseIdentifier, ExerciseIdentification, identify_exercise
)
from fitmotion.analysis.pose_stream import PoseStream

__all__ = [
    # Configuration enums
    "ExerciseType",
    "TrainingMode",

    # Pose geometry
    "JointType",
    "JointAngleType",
    "VectorType",
    "Keypoint",
    "LimbVector",
    "PoseFrame",
    "BodyPose",
    "calculate_angle",
    "compute_body_pose",
    "keypoints_from_array",

    # History
    "PoseBuffer",

    # Phase
    "MovementPhase",
    "PhaseClassifier",

    # Muscle activation
    "MuscleGroup",
    "MuscleActivationEstimator",

    # Quality
    "ExerciseQuality",
    "QualityEvaluator",

    # Technique errors
    "ExerciseError",
    "ErrorDetector",

    # Orchestration
    "AnalysisResult",
    "AnalyzerState",
    "ExerciseAnalyzer",

    # Exercise identification
    "ExerciseIdentifier",
    "ExerciseIdentification",
    "identify_exercise",

    # Streaming
    "PoseStream",
]
