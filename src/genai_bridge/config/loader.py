"""
Configuration Loader
====================

Builds a validated ``BridgeConfig`` from, in increasing precedence:

1. model defaults
2. an optional YAML file (explicit path or ``CUSTOM_LLM_CONFIG``)
3. ``CUSTOM_LLM_*`` environment variables (``.env`` files are loaded first
   and never override variables already set)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from genai_bridge.core import ConfigurationError

from .models import BridgeConfig

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "CUSTOM_LLM_CONFIG"

# environment variable -> BridgeConfig field
ENV_FIELDS = {
    "CUSTOM_LLM_API_KEY": "api_key",
    "CUSTOM_LLM_ENDPOINT": "base_url",
    "CUSTOM_LLM_MODEL_NAME": "model",
    "CUSTOM_LLM_TEMPERATURE": "temperature",
    "CUSTOM_LLM_MAX_TOKENS": "max_tokens",
    "CUSTOM_LLM_TOP_P": "top_p",
    "CUSTOM_LLM_TIMEOUT": "timeout",
    "CUSTOM_LLM_USER_AGENT": "user_agent",
    "CUSTOM_LLM_LOG_LEVEL": "log_level",
}


class ConfigLoader:
    """
    Configuration loader with Pydantic validation.

    Loads .env files, an optional YAML file and the environment, then
    validates the merged result.
    """

    def __init__(self, config_path: str | Path | None = None, load_env_files: bool = True):
        """
        Initialize config loader.

        Args:
            config_path: Optional YAML config file. Falls back to
                ``CUSTOM_LLM_CONFIG`` when not given.
            load_env_files: Whether to read ``.env`` / ``.env.local``
        """
        self.config_path = Path(config_path) if config_path else None
        self._config: BridgeConfig | None = None
        if load_env_files:
            self._load_env()

    def _load_env(self) -> None:
        """Load environment variables from the first .env file found."""
        env_candidates: list[Path] = [
            Path(".env"),
            Path(".env.local"),
            Path.home() / ".genai_bridge" / ".env",
        ]

        for env_path in env_candidates:
            if env_path.exists():
                logger.info(f"Loading environment from {env_path}")
                load_dotenv(env_path, override=False)
                break

    def _find_config_file(self) -> Path | None:
        if self.config_path:
            if not self.config_path.exists():
                raise ConfigurationError(f"Config file not found: {self.config_path}")
            return self.config_path

        env_path_str = os.getenv(CONFIG_PATH_ENV)
        if env_path_str:
            path = Path(env_path_str)
            if path.exists():
                return path
            logger.warning(f"{CONFIG_PATH_ENV} points to a missing file: {path}")

        return None

    def _read_file(self) -> dict[str, Any]:
        config_file = self._find_config_file()
        if config_file is None:
            return {}

        logger.info(f"Loading configuration from {config_file}")
        with open(config_file) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

        if not data:
            logger.warning(f"Empty config file: {config_file}, using defaults")
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_file} must contain a mapping")
        return data

    @staticmethod
    def _read_environment() -> dict[str, str]:
        values = {}
        for env_name, field_name in ENV_FIELDS.items():
            value = os.getenv(env_name)
            if value is not None and value != "":
                values[field_name] = value

        # Generic LOGLEVEL is the fallback
        if "log_level" not in values and os.getenv("LOGLEVEL"):
            values["log_level"] = os.environ["LOGLEVEL"]
        return values

    def load(self) -> BridgeConfig:
        """
        Load and validate configuration.

        Raises:
            ConfigurationError: If a source is unreadable or a value invalid
        """
        if self._config is not None:
            return self._config

        merged = {**self._read_file(), **self._read_environment()}

        try:
            self._config = BridgeConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        logger.info(
            f"Configuration loaded: model={self._config.model or '<unset>'}, "
            f"base_url={self._config.base_url or '<default>'}"
        )
        return self._config

    def reload(self) -> BridgeConfig:
        """Reload configuration from its sources."""
        self._config = None
        return self.load()


def load_config(config_path: str | Path | None = None) -> BridgeConfig:
    """Load a configuration from the environment and optional YAML file."""
    return ConfigLoader(config_path).load()
