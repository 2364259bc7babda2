"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..exceptions import ConfigError
from .models import ExporterConfig

ENV_VAR_PATTERN = re.compile(r'\$\{(\w+)(?::-([^}]*))?\}')


class ConfigLoader:
    """Load and validate exporter configuration."""

    @staticmethod
    def load_from_file(config_path: str) -> ExporterConfig:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ExporterConfig: Validated configuration object

        Raises:
            ConfigError: If the file is missing, is not valid YAML, or
                fails validation (e.g. a target without id or password)
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigError(f"Error reading config file {config_path}: file not found")

        try:
            with open(config_file, 'r') as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Error parsing config file {config_path}: {e}") from e

        return ConfigLoader.load_from_dict(raw_config or {}, source=config_path)

    @staticmethod
    def load_from_dict(raw_config: Any, source: str = "<dict>") -> ExporterConfig:
        """
        Validate an already parsed configuration mapping.

        Raises:
            ConfigError: If validation fails
        """
        raw_config = ConfigLoader._substitute_env_vars(raw_config)
        try:
            return ExporterConfig(**raw_config)
        except (ValidationError, TypeError) as e:
            raise ConfigError(f"Error parsing config file {source}: {e}") from e

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} and ${ENV_VAR:-default} placeholders.

        An unset variable without a default becomes an empty string, which
        then fails the id/password checks for a target.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            return ENV_VAR_PATTERN.sub(lambda m: os.getenv(m.group(1), m.group(2) or ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
