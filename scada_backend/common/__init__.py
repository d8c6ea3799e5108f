"""
Common Utilities

Shared modules used across the API and device services:
- config.py - Settings loaded from env, .env and YAML
- exceptions.py - Custom exception classes
- locks.py - asyncio reader/writer lock
- logging_setup.py - JSON logging under the "scada" logger
- models.py - Device data model
"""

from .config import Settings, get_settings, load_settings_file
from .exceptions import (
    ScadaError,
    ConfigError,
    DeviceError,
    DeviceNotFoundError,
    CommunicationError,
)
from .locks import ReadWriteLock
from .logging_setup import get_service_logger, log_probe_result
from .models import (
    Device,
    DeviceCreate,
    DeviceUpdate,
    DeviceStatus,
    ConnectivityResult,
    Protocol,
    utc_now,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "load_settings_file",
    # Exceptions
    "ScadaError",
    "ConfigError",
    "DeviceError",
    "DeviceNotFoundError",
    "CommunicationError",
    # Locks
    "ReadWriteLock",
    # Logging
    "get_service_logger",
    "log_probe_result",
    # Models
    "Device",
    "DeviceCreate",
    "DeviceUpdate",
    "DeviceStatus",
    "ConnectivityResult",
    "Protocol",
    "utc_now",
]
