"""
Application settings management.

Settings are loaded from environment variables with .env file support.
Pipeline tuning (debounce, correction window, thresholds, log bounds) lives
in config/discovery_config.yaml and is validated using Pydantic.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory containing YAML configuration files",
    )
    data_dir: Path = Field(
        default=Path("data"), description="Directory for database and other data files"
    )

    # ==========================================================================
    # Database
    # ==========================================================================

    database_path: Path = Field(
        default=Path("data/discovery.db"), description="Path to SQLite database file"
    )

    # ==========================================================================
    # LLM Configuration
    # ==========================================================================
    #
    # A single "matching" client maps transcript chunks to open questions.
    # Defaults are defined in discovery/llm/client.py. Set LLM_MATCHING_PROVIDER
    # only to override the default provider.

    llm_matching_provider: Optional[str] = Field(
        default=None,
        description="Override matching LLM provider (default: anthropic)",
    )
    anthropic_api_key: Optional[str] = Field(
        default=None, description="Anthropic API key"
    )
    deepseek_api_key: Optional[str] = Field(
        default=None, description="DeepSeek API key"
    )
    ai_extraction_enabled: bool = Field(
        default=True,
        description="Use the LLM for question matching (falls back to keyword matching)",
    )

    # ==========================================================================
    # Logging
    # ==========================================================================

    log_dir: Optional[Path] = Field(
        default=Path("logs"),
        description="Directory for per-process log files (unset for console only)",
    )
    log_files_to_keep: int = Field(
        default=5, ge=1, le=100, description="Per-process log files retained"
    )
    log_level: str = Field(default="INFO", description="Minimum log level")

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")


# ============================================================================
# Discovery Pipeline Configuration (from YAML)
# ============================================================================


class BufferConfig(BaseModel):
    """Transcript buffering and debounce."""

    debounce_seconds: float = Field(
        default=2.0, gt=0, le=30, description="Silence before the buffer is flushed"
    )
    min_chunk_chars: int = Field(
        default=10, ge=1, le=200, description="Chunks shorter than this are noise"
    )


class CorrectionConfig(BaseModel):
    """Correction eligibility after an answer."""

    window_ms: int = Field(
        default=120_000,
        gt=0,
        description="Milliseconds after an answer during which corrections apply",
    )


class MatchingConfig(BaseModel):
    """Question matching thresholds."""

    match_threshold: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Minimum keyword match score"
    )
    auto_answer_threshold: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum extraction confidence to record an answer",
    )
    fallback_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Confidence assigned to a keyword-matcher hit",
    )


class LogLimitsConfig(BaseModel):
    """Bounds for the in-session display logs."""

    transcript_limit: int = Field(default=15, ge=1, le=500)
    extraction_limit: int = Field(default=20, ge=1, le=500)
    uncertainty_limit: int = Field(default=10, ge=1, le=500)
    suggestion_limit: int = Field(default=10, ge=1, le=500)


class RecognizerConfig(BaseModel):
    """Speech recognizer boundary behaviour."""

    restart_delay_seconds: float = Field(
        default=0.1, ge=0, le=10, description="Delay before restarting the recognizer"
    )


class DiscoveryConfig(BaseModel):
    """
    Complete pipeline configuration loaded from discovery_config.yaml.

    Missing sections fall back to their defaults.
    """

    buffer: BufferConfig = Field(default_factory=BufferConfig)
    correction: CorrectionConfig = Field(default_factory=CorrectionConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    logs: LogLimitsConfig = Field(default_factory=LogLimitsConfig)
    recognizer: RecognizerConfig = Field(default_factory=RecognizerConfig)


def load_discovery_config(config_path: Optional[Path] = None) -> DiscoveryConfig:
    """
    Load discovery configuration from YAML file.

    Args:
        config_path: Path to discovery_config.yaml. If None, uses default path.

    Returns:
        DiscoveryConfig with validated settings

    Raises:
        pydantic.ValidationError: If config validation fails
    """
    if config_path is None:
        project_config = (
            Path(__file__).resolve().parent.parent.parent
            / "config"
            / "discovery_config.yaml"
        )
        cwd_config = Path.cwd() / "config" / "discovery_config.yaml"
        if project_config.exists():
            config_path = project_config
        elif cwd_config.exists():
            config_path = cwd_config
        else:
            return DiscoveryConfig()

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return DiscoveryConfig()

    with open(str(config_path)) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return DiscoveryConfig()

    return DiscoveryConfig(**config_data)


# Global settings instance
settings = Settings()

# Global discovery config instance
discovery_config = load_discovery_config()
