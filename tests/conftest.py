"""Shared fixtures for the SCADA backend tests."""

from __future__ import annotations

import pytest

from scada_backend.common.config import Settings
from scada_backend.common.exceptions import CommunicationError
from scada_backend.services.device.connection_pool import ConnectionPool
from scada_backend.services.device.modbus_client import ReadResult
from scada_backend.services.device.mqtt_client import PublishResult
from scada_backend.services.device.registry import DeviceRegistry


class FakeModbusNetwork:
    """Simulated Modbus TCP network shared by every fake client."""

    def __init__(self) -> None:
        self.reachable: set[str] = set()
        self.connect_attempts: list[str] = []
        self.reads: list[tuple[str, int, int]] = []
        self.read_error: str | None = None
        self.clients: list[FakeModbusClient] = []

    def factory(self, host: str, port: int, timeout: float, unit_id: int) -> FakeModbusClient:
        client = FakeModbusClient(self, host, port, timeout, unit_id)
        self.clients.append(client)
        return client


class FakeModbusClient:
    """Stand-in for ModbusClient with the same async surface."""

    def __init__(self, network: FakeModbusNetwork, host: str, port: int, timeout: float, unit_id: int) -> None:
        self.network = network
        self.host = host
        self.port = port
        self.timeout = timeout
        self.unit_id = unit_id
        self.connected = False
        self.disconnects = 0

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def connect(self) -> None:
        self.network.connect_attempts.append(self.address)
        if self.address not in self.network.reachable:
            raise CommunicationError(
                f"Failed to connect to Modbus device at {self.address}",
                address=self.address,
            )
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnects += 1

    async def read_holding_registers(self, address: int, count: int = 1) -> ReadResult:
        self.network.reads.append((self.address, address, count))
        if self.network.read_error:
            return ReadResult(success=False, error=self.network.read_error)
        return ReadResult(success=True, registers=[0] * count)


class FakePublisher:
    """Stand-in for MqttPublisher recording every publish."""

    def __init__(self, result: PublishResult | None = None) -> None:
        self.result = result or PublishResult(success=True)
        self.published: list[tuple[str, str | bytes, int, bool]] = []
        self.started = False
        self.stopped = False

    @property
    def broker(self) -> str:
        return "localhost:1883"

    @property
    def is_connected(self) -> bool:
        return self.result.success

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    async def publish(self, topic, payload=b"", qos=0, retain=False) -> PublishResult:
        self.published.append((topic, payload, qos, retain))
        return self.result


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def registry() -> DeviceRegistry:
    return DeviceRegistry()


@pytest.fixture
def modbus_network() -> FakeModbusNetwork:
    return FakeModbusNetwork()


@pytest.fixture
def pool(modbus_network: FakeModbusNetwork) -> ConnectionPool:
    return ConnectionPool(client_factory=modbus_network.factory)


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()
