"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (BZLQ__BAZEL__EXECUTABLE=bazelisk)
  3. bzlq.yaml              (searched in cwd, then platform config dir)
  4. Hardcoded defaults

The config file is optional. All fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

APP_NAME = "bzlq"
APP_AUTHOR = "zaucy"

_DEFAULT_CACHE_DIR = platformdirs.user_cache_dir(APP_NAME, APP_AUTHOR)


def _find_config_file() -> str | None:
    """Return the path of the first bzlq.yaml found, or None."""
    candidates = [
        Path("bzlq.yaml"),
        Path(platformdirs.user_config_dir(APP_NAME, APP_AUTHOR)) / "bzlq.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class CacheSettings(BaseModel):
    root_dir: str = _DEFAULT_CACHE_DIR


class BazelSettings(BaseModel):
    executable: str = "bazel"
    query_verb: Literal["query", "cquery"] = "query"
    # Appended after --output=proto on every invocation
    extra_args: list[str] = []


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: BZLQ__CACHE__ROOT_DIR=/tmp/bzlq
        env_prefix="BZLQ__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    cache: CacheSettings = CacheSettings()
    bazel: BazelSettings = BazelSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def cache_root(self) -> Path:
        return Path(self.cache.root_dir).expanduser()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
