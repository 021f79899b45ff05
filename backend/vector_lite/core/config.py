"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

ENV_PREFIX = "VLA_"
DEFAULT_CONFIG_PATH = Path("~/.config/vector-lite/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("chunking", "chunk_size"): "chunk_size",
    ("chunking", "chunk_overlap"): "chunk_overlap",
    ("embeddings", "default_provider"): "default_provider",
    ("embeddings", "connect_timeout"): "connect_timeout",
    ("embeddings", "request_timeout"): "request_timeout",
    ("search", "limit"): "search_limit",
    ("search", "threshold"): "search_threshold",
    ("queue", "batch_size"): "queue_batch_size",
    ("queue", "recover_on_startup"): "recover_on_startup",
}


class ProviderConfig(BaseModel):
    """Uniform provider configuration: where to call, with what key, for which model."""

    endpoint: str = ""
    api_key: str | None = None
    model: str = ""
    dimensions: int | None = None

    model_config = {"extra": "ignore"}


class OpenAIConfig(ProviderConfig):
    endpoint: str = "https://api.openai.com/v1/embeddings"
    model: str = "text-embedding-3-small"
    dimensions: int | None = 1536


class GeminiConfig(ProviderConfig):
    endpoint: str = (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-embedding-001:embedContent"
    )
    model: str = "gemini-embedding-001"
    dimensions: int | None = 3072


class OllamaConfig(ProviderConfig):
    endpoint: str = "http://localhost:11434/api/embeddings"
    model: str = "nomic-embed-text"
    dimensions: int | None = 768


class LMStudioConfig(ProviderConfig):
    endpoint: str = "http://localhost:1234/v1/embeddings"
    model: str = "text-embedding-model"
    dimensions: int | None = 1536


class HashedConfig(ProviderConfig):
    model: str = "hashed-bow"
    dimensions: int | None = 384


class ProvidersConfig(BaseModel):
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    lmstudio: LMStudioConfig = Field(default_factory=LMStudioConfig)
    hashed: HashedConfig = Field(default_factory=HashedConfig)

    model_config = {"extra": "ignore"}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".vector-lite" / "vector-lite.db")
    chunk_size: int = 1000
    chunk_overlap: int = 200
    default_provider: str = "gemini"
    connect_timeout: float = 30.0
    request_timeout: float = 60.0
    search_limit: int = 10
    search_threshold: float = 0.6
    queue_batch_size: int = 10
    recover_on_startup: bool = True
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @model_validator(mode="after")
    def _check_chunking(self) -> "Settings":
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError("chunk_overlap must be >= 0 and smaller than chunk_size")
        return self

    def provider_config(self, name: str) -> ProviderConfig | None:
        return getattr(self.providers, name, None) if name in ProvidersConfig.model_fields else None

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        _merge(data, _load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names.

    The ``providers`` section is kept nested since it maps onto ProvidersConfig.
    """
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if next_prefix == ("providers",) and isinstance(value, Mapping):
            flat["providers"] = {name: dict(section or {}) for name, section in value.items()}
        elif isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map VLA_ environment variables into Settings fields.

    ``VLA_<PROVIDER>_<FIELD>`` (e.g. ``VLA_OPENAI_API_KEY``) targets a provider section.
    """
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields and field_name != "providers":
            overrides[field_name] = value
            continue
        provider, _, provider_field = field_name.partition("_")
        if provider in ProvidersConfig.model_fields and provider_field in ProviderConfig.model_fields:
            overrides.setdefault("providers", {}).setdefault(provider, {})[provider_field] = value
    return overrides


def _merge(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = [
    "Settings",
    "ProviderConfig",
    "ProvidersConfig",
    "OpenAIConfig",
    "GeminiConfig",
    "OllamaConfig",
    "LMStudioConfig",
    "HashedConfig",
    "get_settings",
]
