"""
Tests for Settings - provider resolution and planner tuning values.
"""

import os
from datetime import timedelta
from unittest.mock import patch

import pytest

from taskplanner.core import FakeModelName, GroqModelName, OpenAIModelName
from taskplanner.settings import Settings


class TestProviderResolution:
    """Default model follows whichever provider is configured."""

    def build(self, **env) -> Settings:
        with patch.dict(os.environ, env, clear=True):
            return Settings(_env_file=None)

    def test_no_provider_raises(self):
        with pytest.raises(ValueError, match="At least one LLM API key"):
            self.build()

    def test_fake_model(self):
        settings = self.build(USE_FAKE_MODEL="true")
        assert settings.DEFAULT_MODEL == FakeModelName.FAKE
        assert FakeModelName.FAKE in settings.AVAILABLE_MODELS

    def test_openai_takes_precedence(self):
        settings = self.build(OPENAI_API_KEY="sk-test", GROQ_API_KEY="gsk-test")
        assert settings.DEFAULT_MODEL == OpenAIModelName.GPT_4O_MINI
        assert GroqModelName.LLAMA_31_8B in settings.AVAILABLE_MODELS

    def test_explicit_default_model(self):
        settings = self.build(GROQ_API_KEY="gsk-test", DEFAULT_MODEL="groq-llama-3.3-70b")
        assert settings.DEFAULT_MODEL == GroqModelName.LLAMA_33_70B


class TestPlannerTuning:
    """Planner knobs read from the environment."""

    def test_defaults(self):
        with patch.dict(os.environ, {"USE_FAKE_MODEL": "true"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.MAX_HISTORY_LENGTH == 50
        assert settings.context_retention == timedelta(hours=24)
        assert settings.HOURLY_RATE == 150.0
        assert settings.AUTO_GENERATE_SOW is True
        assert settings.LOG_FILE is None

    def test_overrides(self):
        env = {
            "USE_FAKE_MODEL": "true",
            "CONTEXT_RETENTION_HOURS": "0.5",
            "AUTO_GENERATE_SOW": "false",
            "CURRENCY": "EUR",
            "MODE": "dev",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.context_retention == timedelta(minutes=30)
        assert settings.AUTO_GENERATE_SOW is False
        assert settings.CURRENCY == "EUR"
        assert settings.is_dev()

    def test_only_planner_fields_are_exposed(self):
        for name in ("TITLE", "VERSION", "ROOT_PATH"):
            assert name not in Settings.model_fields
            assert name not in Settings.model_computed_fields
