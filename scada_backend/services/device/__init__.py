"""
Device Service - Registry and Connectivity Testing

Responsibilities:
- Hold the authoritative set of devices and their status
- Probe devices over MQTT or Modbus TCP
- Cache Modbus connections per address
- Mark devices online after a successful test
"""

from .connection_pool import ConnectionPool
from .modbus_client import ModbusClient
from .mqtt_client import MqttPublisher
from .probes import Probe, ProbeResult, build_probes
from .registry import DeviceRegistry
from .tester import ConnectivityTester

__all__ = [
    "ConnectionPool",
    "ConnectivityTester",
    "DeviceRegistry",
    "ModbusClient",
    "MqttPublisher",
    "Probe",
    "ProbeResult",
    "build_probes",
]
