"""
Connectivity Probes

One probe per protocol behind a common interface. The tester picks the
probe from the device's protocol and never needs to know how it works.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from scada_backend.common.config import Settings
from scada_backend.common.exceptions import CommunicationError
from scada_backend.common.logging_setup import get_service_logger
from scada_backend.common.models import Device, Protocol
from .connection_pool import ConnectionPool
from .mqtt_client import MqttPublisher

logger = get_service_logger("device.probes")

MQTT_TEST_PAYLOAD = "test"
MQTT_TEST_TOPIC_SUFFIX = "/test"

# Holding register read by the Modbus probe
MODBUS_TEST_REGISTER = 0
MODBUS_TEST_COUNT = 1


@dataclass
class ProbeResult:
    """Outcome of a single probe attempt"""
    success: bool
    error: str = ""


class Probe(ABC):
    """Reachability check for one protocol"""

    protocol: Protocol = Protocol.UNKNOWN

    @abstractmethod
    async def probe(self, device: Device) -> ProbeResult:
        """Run one probe attempt against the device"""

    async def release(self, address: str) -> None:
        """Drop resources held for an address no device uses any more"""


class MqttProbe(Probe):
    """
    Publishes a test message under the device's topic prefix.

    This only proves the broker accepted the message; it says nothing
    about whether the device itself is alive.
    """

    protocol = Protocol.MQTT

    def __init__(self, publisher: MqttPublisher):
        self._publisher = publisher

    async def probe(self, device: Device) -> ProbeResult:
        topic = f"{device.address}{MQTT_TEST_TOPIC_SUFFIX}"
        result = await self._publisher.publish(topic, MQTT_TEST_PAYLOAD, qos=0, retain=False)
        if result.success:
            return ProbeResult(success=True)
        return ProbeResult(success=False, error=result.error or f"MQTT publish to {topic} failed")


class ModbusProbe(Probe):
    """Reads one holding register through the pooled client for the address."""

    protocol = Protocol.MODBUS

    def __init__(self, pool: ConnectionPool, evict_on_error: bool = False):
        self._pool = pool
        self._evict_on_error = evict_on_error

    async def probe(self, device: Device) -> ProbeResult:
        try:
            client = await self._pool.get_client(device.address)
        except CommunicationError as e:
            return ProbeResult(success=False, error=e.message)

        result = await client.read_holding_registers(MODBUS_TEST_REGISTER, MODBUS_TEST_COUNT)
        if result.success:
            return ProbeResult(success=True)

        if self._evict_on_error:
            await self._pool.evict(device.address)
        return ProbeResult(success=False, error=result.error or "Modbus read failed")

    async def release(self, address: str) -> None:
        await self._pool.evict(address)


class UnsupportedProbe(Probe):
    """Placeholder for a protocol without a real connectivity test."""

    def __init__(self, protocol: Protocol, reason: str):
        self.protocol = protocol
        self._reason = reason

    async def probe(self, device: Device) -> ProbeResult:
        return ProbeResult(success=False, error=self._reason)


def build_probes(
    settings: Settings,
    pool: ConnectionPool,
    publisher: MqttPublisher,
) -> dict[Protocol, Probe]:
    """Probe table used by the connectivity tester"""
    probes: list[Probe] = [
        MqttProbe(publisher),
        ModbusProbe(pool, evict_on_error=settings.modbus_evict_on_error),
        UnsupportedProbe(Protocol.OPCUA, "OPC UA connectivity test is not supported"),
    ]
    return {probe.protocol: probe for probe in probes}
