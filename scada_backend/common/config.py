"""
Application Settings

Settings are loaded from environment variables (prefix SCADA_), an
optional .env file, and optionally a YAML file passed on the command line.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class Settings(BaseSettings):
    """
    Backend settings.

    Create a .env file with e.g.:
    - SCADA_MQTT_HOST=broker.local
    - SCADA_ALLOWED_ORIGINS=http://localhost:5173,https://scada.example.com
    """
    model_config = SettingsConfigDict(
        env_prefix="SCADA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "development"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080
    # Comma separated; "*" allows every origin
    allowed_origins: str = "*"

    # Shared MQTT broker connection
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_client_id: str = "nwc-scada-backend"
    mqtt_keepalive: int = 60
    mqtt_publish_timeout: float = 5.0

    # Modbus TCP probe
    modbus_timeout: float = 10.0
    modbus_unit_id: int = 1
    modbus_default_port: int = 502
    # Drop a cached connection after a failed read so the next test reconnects
    modbus_evict_on_error: bool = False

    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()


def load_settings_file(config_path: str) -> Settings:
    """
    Build settings from a YAML file.

    Keys in the file override environment values. Unknown keys are ignored.

    Raises:
        ConfigError: file missing, unreadable, or holding invalid values
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path, "r") as f:
            data: Any = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping at top level")

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {config_path}: {e}") from e
