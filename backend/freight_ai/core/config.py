"""
Process-wide configuration.

Settings are read from the environment once, on first access, and are
immutable afterwards. Components receive the Settings instance explicitly
(the executor, orchestrator and verification service take it at construction)
instead of reading os.environ themselves.

Environment configuration:
- GEMINI_API_KEY: Provider credential (no default; calls fail without it)
- GEMINI_API_BASE: REST base URL (default: https://generativelanguage.googleapis.com/v1beta)
- FREIGHT_AI_MODEL: Model used for extraction and rate sheets
- FREIGHT_AI_VERIFY_MODEL: Model used for maps-grounded verification
- FREIGHT_AI_REASONING_BUDGET: Thinking budget for the extraction model
- FREIGHT_AI_TIMEOUT_SECONDS: Transport timeout per model call
- FREIGHT_AI_MAX_ATTEMPTS: Attempts per call on rate-limit errors
- FREIGHT_AI_BACKOFF_BASE_SECONDS / FREIGHT_AI_BACKOFF_JITTER_SECONDS
- FREIGHT_AI_SLICE_PACING_SECONDS: Pause between consecutive fan-out slices
- LOG_LEVEL / LOG_JSON: Logging setup (see app startup)
"""
import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class Settings(BaseModel):
    """Immutable runtime settings."""

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    api_base: str = DEFAULT_API_BASE
    model: str = "gemini-3-pro-preview"
    verify_model: str = "gemini-2.5-flash"
    reasoning_budget: int = Field(32768, ge=0)
    timeout_seconds: float = Field(120.0, gt=0.0)
    max_attempts: int = Field(3, ge=1)
    backoff_base_seconds: float = Field(2.0, ge=0.0)
    backoff_jitter_seconds: float = Field(1.0, ge=0.0)
    slice_pacing_seconds: float = Field(0.5, ge=0.0)
    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        values = {
            "api_key": (env.get("GEMINI_API_KEY") or "").strip() or None,
            "api_base": env.get("GEMINI_API_BASE"),
            "model": env.get("FREIGHT_AI_MODEL"),
            "verify_model": env.get("FREIGHT_AI_VERIFY_MODEL"),
            "reasoning_budget": env.get("FREIGHT_AI_REASONING_BUDGET"),
            "timeout_seconds": env.get("FREIGHT_AI_TIMEOUT_SECONDS"),
            "max_attempts": env.get("FREIGHT_AI_MAX_ATTEMPTS"),
            "backoff_base_seconds": env.get("FREIGHT_AI_BACKOFF_BASE_SECONDS"),
            "backoff_jitter_seconds": env.get("FREIGHT_AI_BACKOFF_JITTER_SECONDS"),
            "slice_pacing_seconds": env.get("FREIGHT_AI_SLICE_PACING_SECONDS"),
            "log_level": env.get("LOG_LEVEL"),
        }
        if env.get("LOG_JSON") is not None:
            values["log_json"] = env["LOG_JSON"].lower() == "true"

        # Unset / empty variables keep the model defaults.
        return cls(**{k: v for k, v in values.items() if v not in (None, "")})


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Global settings accessor (read once at first use)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment (tests only)."""
    global _settings
    _settings = None
