#!filepath: autoperf/config/app_config.py
import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from autoperf.utils.errors import ConfigError
from .connector_config import ConnectorConfig
from .engine_config import EngineConfig
from .log_config import LogConfig
from .plugin_config import PluginConfig
from .scheduler_config import SchedulerConfig

ENV_PREFIX = "AUTOPERF_"


def package_root() -> str:
    """
    autoperf/config/app_config.py -> autoperf/config -> autoperf
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def default_config_path() -> str:
    return os.path.join(package_root(), "config", "base.yml")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return raw


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    connector: ConnectorConfig = Field(default_factory=ConnectorConfig)
    plugins: PluginConfig = Field(default_factory=PluginConfig)

    # per-name settings handed to gatherer / extension factories
    gatherers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    extensions: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @classmethod
    def load(cls, path: Optional[str] = None, env_file: Optional[str] = ".env") -> "AppConfig":
        """
        Load YAML config + .env
        - always starts from autoperf/config/base.yml
        - `path` (if given) is deep-merged over it
        - .env is read from the working directory when present
        """
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file)

        raw = _read_yaml(default_config_path())
        if path is not None:
            raw = _deep_merge(raw, _read_yaml(path))

        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @staticmethod
    def env_vars() -> Dict[str, str]:
        """
        AUTOPERF_PSI_API_KEY=xxx -> {"PSI_API_KEY": "xxx"}
        """
        return {
            key[len(ENV_PREFIX):]: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX) and len(key) > len(ENV_PREFIX)
        }
