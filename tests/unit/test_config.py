"""Tests for configuration module."""

import os

import pytest
from pydantic import ValidationError


def test_settings_defaults():
    """Settings have sensible defaults."""
    from discovery.core.config import Settings

    s = Settings(_env_file=None)

    assert s.llm_matching_provider is None
    assert s.ai_extraction_enabled is True
    assert s.port == 8000


def test_settings_from_env():
    """Settings can be overridden via environment variables."""
    os.environ["AI_EXTRACTION_ENABLED"] = "false"
    os.environ["LLM_MATCHING_PROVIDER"] = "deepseek"

    try:
        from discovery.core.config import Settings

        s = Settings(_env_file=None)

        assert s.ai_extraction_enabled is False
        assert s.llm_matching_provider == "deepseek"
    finally:
        del os.environ["AI_EXTRACTION_ENABLED"]
        del os.environ["LLM_MATCHING_PROVIDER"]


def test_settings_validation():
    from discovery.core.config import Settings

    with pytest.raises(ValidationError):
        Settings(_env_file=None, port=0)


class TestDiscoveryConfig:
    def test_defaults(self):
        from discovery.core.config import DiscoveryConfig

        config = DiscoveryConfig()

        assert config.buffer.debounce_seconds == 2.0
        assert config.buffer.min_chunk_chars == 10
        assert config.correction.window_ms == 120_000
        assert config.matching.match_threshold == 0.3
        assert config.matching.auto_answer_threshold == 0.3
        assert config.matching.fallback_confidence == 0.5
        assert config.logs.transcript_limit == 15
        assert config.logs.extraction_limit == 20
        assert config.logs.uncertainty_limit == 10
        assert config.logs.suggestion_limit == 10
        assert config.recognizer.restart_delay_seconds == 0.1

    def test_partial_yaml_keeps_other_defaults(self, tmp_path):
        from discovery.core.config import load_discovery_config

        path = tmp_path / "discovery_config.yaml"
        path.write_text("buffer:\n  debounce_seconds: 0.5\n")

        config = load_discovery_config(path)

        assert config.buffer.debounce_seconds == 0.5
        assert config.buffer.min_chunk_chars == 10
        assert config.correction.window_ms == 120_000

    def test_missing_file_uses_defaults(self, tmp_path):
        from discovery.core.config import DiscoveryConfig, load_discovery_config

        assert load_discovery_config(tmp_path / "absent.yaml") == DiscoveryConfig()

    def test_empty_file_uses_defaults(self, tmp_path):
        from discovery.core.config import DiscoveryConfig, load_discovery_config

        path = tmp_path / "discovery_config.yaml"
        path.write_text("")

        assert load_discovery_config(path) == DiscoveryConfig()

    @pytest.mark.parametrize(
        "yaml_text",
        [
            "matching:\n  match_threshold: 1.5\n",
            "logs:\n  suggestion_limit: 0\n",
            "correction:\n  window_ms: -1\n",
        ],
    )
    def test_invalid_values_rejected(self, tmp_path, yaml_text):
        from discovery.core.config import load_discovery_config

        path = tmp_path / "discovery_config.yaml"
        path.write_text(yaml_text)

        with pytest.raises(ValidationError):
            load_discovery_config(path)

    def test_shipped_config_loads(self):
        from discovery.core.config import load_discovery_config

        config = load_discovery_config()

        assert config.correction.window_ms == 120_000
