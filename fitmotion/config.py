"""Analysis configuration."""

import logging
from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Analysis settings loaded from environment variables."""
    
    # Application
    app_name: str = "FitMotion Analysis"
    debug: bool = False
    
    # Pose geometry
    min_keypoint_confidence: float = 0.0  # 0.0 keeps every detected keypoint
    spine_reference_offset: float = 0.1  # Virtual point above the neck for the spine angle
    
    # Pose history
    history_capacity: int = Field(30, ge=1)
    min_phase_history: int = Field(3, ge=2)  # Phase compares the two newest poses
    isometric_threshold_degrees: float = 2.0
    
    # Defaults applied when ingest() runs before configure()
    default_exercise_type: str = "squat"
    default_training_mode: str = "hypertrophy"
    
    # Quality scoring
    neutral_score: float = 0.5  # Reported when a metric lacks data
    trajectory_min_history: int = 5
    velocity_min_history: int = 3
    eccentric_control_min_history: int = 3
    range_of_motion_min_history: int = 10
    target_concentric_velocity: float = 120.0  # deg/s that scores 1.0
    lockout_ratio: float = 0.85  # Normalized pivot angle above which a frame is unloaded
    
    # Technique error thresholds
    torso_lean_threshold_degrees: float = 160.0
    min_squat_depth: float = 0.7
    max_arm_asymmetry_degrees: float = 10.0
    
    # Pose stream
    stream_queue_size: int = Field(8, ge=1)
    stream_frame_interval: int = Field(1, ge=1)  # Keep every Nth submitted frame

    @field_validator("default_exercise_type")
    @classmethod
    def validate_exercise_type(cls, v: str) -> str:
        from fitmotion.analysis.exercise import ExerciseType
        valid_types = [e.value for e in ExerciseType]
        if v not in valid_types:
            raise ValueError(f"default_exercise_type must be one of: {valid_types}")
        return v

    @field_validator("default_training_mode")
    @classmethod
    def validate_training_mode(cls, v: str) -> str:
        from fitmotion.analysis.exercise import TrainingMode
        valid_modes = [m.value for m in TrainingMode]
        if v not in valid_modes:
            raise ValueError(f"default_training_mode must be one of: {valid_modes}")
        return v

    class Config:
        env_prefix = "FITMOTION_"
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging for applications embedding the analysis core."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
