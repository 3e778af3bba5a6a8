"""Tests for configuration."""

import pytest

from life_assistant.config import AppSettings, Settings, validate_all_settings
from life_assistant.models.command import Rejected
from life_assistant.orchestrator import create_assistant


@pytest.fixture
def no_gemini_key(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


class TestValidateAllSettings:
    """Tests for validate_all_settings()."""

    def test_missing_gemini_key_reported(self, no_gemini_key):
        """Test that only the failing section is marked invalid."""
        status = validate_all_settings(Settings())

        assert status["insights"] is True
        assert status["commands"] is True
        assert status["app"] is True
        assert status["gemini"] is False
        assert "api_key" in status["gemini_error"]

    def test_all_sections_valid(self, monkeypatch, tmp_path):
        """Test a fully configured environment."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")

        status = validate_all_settings(Settings())

        assert all(status[name] for name in ("insights", "commands", "gemini", "app"))
        assert not any(key.endswith("_error") for key in status)


class TestAppSettings:
    """Tests for AppSettings."""

    def test_debug_mode_overrides_log_level(self):
        """Test that debug mode always logs at DEBUG."""
        assert AppSettings(log_level="warning").effective_log_level == "WARNING"
        assert AppSettings(log_level="warning", debug_mode=True).effective_log_level == "DEBUG"


class TestCreateAssistant:
    """Tests for how the factory uses validated settings."""

    @pytest.mark.asyncio
    async def test_unconfigured_gemini_disables_commands(self, no_gemini_key, clock):
        """Test that a missing key degrades to no voice commands."""
        assistant = create_assistant(settings=Settings(), clock=clock, use_gemini=True)

        outcome = await assistant.submit_utterance("spent 45 on lunch")

        assert isinstance(outcome, Rejected)
        assert outcome.reason == "unavailable"
