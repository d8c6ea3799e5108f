"""
Device Data Model

Pydantic models shared by the registry, the connectivity tester and
the HTTP layer. JSON field names follow the frontend contract
(camelCase ``lastSeen``).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DeviceStatus(str, Enum):
    """Reachability status of a device"""
    OFFLINE = "offline"
    ONLINE = "online"


class Protocol(str, Enum):
    """Device protocols the connectivity tester dispatches on"""
    MQTT = "mqtt"
    MODBUS = "modbus"
    OPCUA = "opcua"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "Protocol":
        """Map a stored protocol string to a variant; anything else is UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class Device(BaseModel):
    """One managed endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    type: str = ""
    protocol: str = ""
    # MQTT topic prefix, Modbus host:port, or OPC UA endpoint URL
    address: str = ""
    status: DeviceStatus = DeviceStatus.OFFLINE
    last_seen: datetime = Field(default_factory=utc_now, alias="lastSeen")
    readings: dict[str, float] = Field(default_factory=dict)


class DeviceCreate(BaseModel):
    """
    Create device request.

    All fields are expected by the frontend but not enforced; status,
    lastSeen and readings in the body are ignored.
    """
    id: str = ""
    name: str = ""
    type: str = ""
    protocol: str = ""
    address: str = ""


class DeviceUpdate(BaseModel):
    """Update device request (fields left out are unchanged)."""
    name: Optional[str] = None
    type: Optional[str] = None
    protocol: Optional[str] = None
    address: Optional[str] = None


class ConnectivityResult(BaseModel):
    """Outcome of a connectivity test; error is empty on success."""
    success: bool
    error: str = ""
