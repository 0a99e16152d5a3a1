"""Env var config loading with pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from csp_header.logging_config import get_logger

logger = get_logger(__name__)

_PRESETS_PATH = Path(__file__).parent / "policy_presets.yaml"


class CSPSettings(BaseSettings):
    """Library configuration, overridable through ``CSP_*`` env vars."""

    model_config = SettingsConfigDict(
        env_prefix="CSP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "info"
    log_json: bool = True

    # Random bytes per generated nonce (before base64)
    nonce_bytes: int = 16

    # Policy presets
    default_preset: str = "strict"
    presets_file: str = str(_PRESETS_PATH)

    @field_validator("nonce_bytes")
    @classmethod
    def _nonce_at_least_128_bits(cls, value: int) -> int:
        if value < 16:
            raise ValueError("nonce_bytes must be at least 16 (128 bits)")
        return value


_settings: CSPSettings | None = None


def get_settings() -> CSPSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def load_settings() -> CSPSettings:
    """Load settings from env vars (env vars override model defaults)."""
    global _settings
    _settings = CSPSettings()
    logger.debug("config_loaded", default_preset=_settings.default_preset, nonce_bytes=_settings.nonce_bytes)
    return _settings
