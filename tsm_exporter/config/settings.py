"""Environment settings."""

import os
from typing import Optional


class Settings:
    """Application settings from environment variables."""

    @staticmethod
    def get(key: str, default: Optional[str] = None) -> str:
        """
        Get environment variable value.

        Args:
            key: Environment variable name
            default: Default value if not set

        Returns:
            str: Environment variable value
        """
        return os.getenv(key, default) or ""

    # Convenience accessors
    LOG_LEVEL = property(lambda self: Settings.get("LOG_LEVEL", "INFO"))
    CONFIG_FILE = property(lambda self: Settings.get("TSM_EXPORTER_CONFIG", "tsm_exporter.yaml"))
    DSM_LOG_DIR = property(lambda self: Settings.get("DSM_LOG", "/tmp"))
