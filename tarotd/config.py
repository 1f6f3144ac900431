"""
Service configuration, read from environment variables.
"""
import os
import re
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field

from tarotd.errors import ConfigError

LOG_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s)?\s*$")


class Settings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    llm_provider: str = "openrouter"
    llm_model: str = "qwen/qwen3-4b:free"
    llm_fallback_models: List[str] = Field(default_factory=list)
    llm_timeout: float = 10.0  # seconds, per remote call

    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"


def parse_list(raw: Optional[str]) -> List[str]:
    """Split a comma separated value, dropping blanks."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def parse_duration(raw: str) -> float:
    """'10', '10s', '2.5s' or '500ms' -> seconds."""
    m = _DURATION_RE.match(raw)
    if not m:
        raise ConfigError(f"invalid LLM_TIMEOUT {raw!r}")
    value = float(m.group(1))
    if m.group(2) == "ms":
        value /= 1000.0
    if value <= 0:
        raise ConfigError(f"invalid LLM_TIMEOUT {raw!r}")
    return value


def parse_log_level(raw: str) -> str:
    level = LOG_LEVELS.get(raw.strip().lower())
    if level is None:
        raise ConfigError(f"invalid LOG_LEVEL {raw!r}")
    return level


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    def env_or(key: str, fallback: str) -> str:
        return env.get(key) or fallback

    try:
        port = int(env_or("PORT", "8080"))
    except ValueError as e:
        raise ConfigError(f"invalid PORT {env.get('PORT')!r}") from e

    settings = Settings(
        host=env_or("HOST", "0.0.0.0"),
        port=port,
        log_level=parse_log_level(env_or("LOG_LEVEL", "info")),
        cors_origins=parse_list(env_or("CORS_ORIGINS", "*")),
        llm_provider=env_or("LLM_PROVIDER", "openrouter"),
        llm_model=env_or("LLM_MODEL", "qwen/qwen3-4b:free"),
        llm_fallback_models=parse_list(env.get("LLM_FALLBACK_MODELS")),
        llm_timeout=parse_duration(env_or("LLM_TIMEOUT", "10s")),
        openrouter_api_key=env.get("OPENROUTER_API_KEY", ""),
        openrouter_base_url=env_or("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
    )

    if settings.llm_provider != "openrouter":
        raise ConfigError(f"unsupported LLM_PROVIDER {settings.llm_provider!r}")
    if not settings.openrouter_api_key:
        raise ConfigError("OPENROUTER_API_KEY is required when LLM_PROVIDER=openrouter")

    return settings
