from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

_LOGGER = logging.getLogger("moodnav.settings")
_ENV_PREFIX = "MOODNAV_"


def _env_str(name: str, default: str) -> str:
    value = os.environ.get(f"{_ENV_PREFIX}{name}", "").strip()
    return value or default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(f"{_ENV_PREFIX}{name}")
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _LOGGER.warning("Ignoring invalid %s%s=%r", _ENV_PREFIX, name, value)
        return default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(f"{_ENV_PREFIX}{name}")
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _LOGGER.warning("Ignoring invalid %s%s=%r", _ENV_PREFIX, name, value)
        return default


class EngineSettings(BaseModel):
    """Runtime knobs for the mood engine and its local model server."""

    ollama_url: str = "http://localhost:11434"
    llm_model: str = "llama3.2:3b"
    embed_model: str = "nomic-embed-text"
    probe_timeout: float = Field(default=2.0, gt=0)
    request_timeout: float = Field(default=60.0, gt=0)
    embed_threshold: float = Field(default=0.75, ge=0, le=1)
    cache_size: int = Field(default=100, ge=1)
    embed_cache_size: int = Field(default=500, ge=1)
    presets_path: Path | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")


def load_settings() -> EngineSettings:
    defaults = EngineSettings()
    presets = os.environ.get(f"{_ENV_PREFIX}PRESETS", "").strip()
    cache_size = _env_int("CACHE_SIZE", defaults.cache_size)
    embed_cache_size = _env_int("EMBED_CACHE_SIZE", defaults.embed_cache_size)
    threshold = _env_float("EMBED_THRESHOLD", defaults.embed_threshold)
    return EngineSettings(
        ollama_url=_env_str("OLLAMA_URL", defaults.ollama_url).rstrip("/"),
        llm_model=_env_str("LLM_MODEL", defaults.llm_model),
        embed_model=_env_str("EMBED_MODEL", defaults.embed_model),
        probe_timeout=max(0.1, _env_float("PROBE_TIMEOUT", defaults.probe_timeout)),
        request_timeout=max(1.0, _env_float("REQUEST_TIMEOUT", defaults.request_timeout)),
        embed_threshold=min(1.0, max(0.0, threshold)),
        cache_size=max(1, cache_size),
        embed_cache_size=max(1, embed_cache_size),
        presets_path=Path(presets).expanduser() if presets else None,
    )
