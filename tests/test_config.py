"""
Tests for settings loading.
"""

import pytest
from pydantic import ValidationError

from fitmotion.config import Settings, configure_logging, get_settings


class TestSettings:

    def test_defaults(self):
        settings = Settings()

        assert settings.history_capacity == 30
        assert settings.min_phase_history == 3
        assert settings.neutral_score == 0.5
        assert settings.default_exercise_type == "squat"
        assert settings.default_training_mode == "hypertrophy"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("FITMOTION_HISTORY_CAPACITY", "10")
        monkeypatch.setenv("FITMOTION_MIN_SQUAT_DEPTH", "0.5")

        settings = Settings()
        assert settings.history_capacity == 10
        assert settings.min_squat_depth == 0.5

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_rejects_unknown_default_exercise(self):
        with pytest.raises(ValidationError):
            Settings(default_exercise_type="curl")

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValidationError):
            Settings(history_capacity=0)

    def test_configure_logging_defaults_to_cached_settings(self):
        configure_logging()
        configure_logging(Settings(debug=True))
