"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import orjson
import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator

ENV_PREFIX = "HOVERLOOKUP_"
DEFAULT_CONFIG_PATH = Path("~/.config/hover-lookup/config.yaml")
DEFAULT_SOURCE_NAME = "lookup-database.json"

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("workspace", "root"): "workspace_root",
    ("local", "enabled"): "enable_local_source",
    ("local", "paths"): "local_source_paths",
    ("local", "id_field"): "id_field_override",
    ("local", "watch"): "watch_sources",
    ("remote", "enabled"): "enable_remote_source",
    ("remote", "url"): "remote_url",
    ("remote", "databases"): "remote_databases",
    ("remote", "collections"): "remote_collections",
    ("remote", "timeout_ms"): "remote_timeout_ms",
    ("cache", "max_size"): "cache_max_size",
    ("cache", "ttl_minutes"): "cache_ttl_minutes",
    ("hover", "max_size"): "max_hover_size",
}


class CollectionSpec(BaseModel):
    """One searchable MongoDB collection."""

    collection: str = Field(default="", validation_alias=AliasChoices("collection", "name"))
    search_fields: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("search_fields", "searchFields"),
    )
    projection: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("projection", "project"),
    )

    model_config = {"extra": "ignore"}

    @property
    def searchable(self) -> bool:
        return bool(self.collection) and bool(self.search_fields)


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    workspace_root: Path = Field(default_factory=Path.cwd)
    enable_local_source: bool = True
    local_source_paths: list[Path] = Field(default_factory=list)
    id_field_override: list[str] | None = None
    watch_sources: bool = True
    enable_remote_source: bool = True
    remote_url: str = ""
    remote_databases: list[str] = Field(default_factory=list)
    remote_collections: list[CollectionSpec] = Field(default_factory=list)
    remote_timeout_ms: int = Field(default=5000, ge=1)
    cache_max_size: int = Field(default=1000, ge=1)
    cache_ttl_minutes: float = Field(default=1, gt=0)
    max_hover_size: int = Field(default=5000, ge=1)

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("workspace_root", mode="before")
    @classmethod
    def _expand_root(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("workspace_root must be a path or string")

    @field_validator("local_source_paths", "remote_databases", "id_field_override", mode="before")
    @classmethod
    def _split_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("remote_collections", mode="before")
    @classmethod
    def _parse_collections(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            return orjson.loads(value) if value.strip() else []
        return value

    @field_validator("remote_url", mode="before")
    @classmethod
    def _strip_url(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @property
    def remote_configured(self) -> bool:
        return bool(self.remote_url)

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_minutes * 60.0

    def resolved_source_paths(self) -> list[Path]:
        """Absolute source file paths, in configured order."""
        paths = self.local_source_paths or [Path(DEFAULT_SOURCE_NAME)]
        resolved: list[Path] = []
        for path in paths:
            path = path.expanduser()
            resolved.append(path if path.is_absolute() else self.workspace_root / path)
        return resolved

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
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


def remote_settings_changed(old: Settings, new: Settings) -> bool:
    """Whether a settings change invalidates the remote connection and cache."""
    return (
        old.remote_url != new.remote_url
        or old.remote_databases != new.remote_databases
        or old.remote_collections != new.remote_collections
        or old.enable_remote_source != new.enable_remote_source
    )


def local_settings_changed(old: Settings, new: Settings) -> bool:
    """Whether a settings change requires the local index to be reloaded."""
    return (
        old.resolved_source_paths() != new.resolved_source_paths()
        or old.id_field_override != new.id_field_override
        or old.enable_local_source != new.enable_local_source
    )


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping) and next_prefix not in _YAML_KEY_MAP:
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with HOVERLOOKUP_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = [
    "CollectionSpec",
    "Settings",
    "get_settings",
    "local_settings_changed",
    "remote_settings_changed",
]
