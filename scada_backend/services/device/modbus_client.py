"""
Async Modbus Client

Wrapper around pymodbus for Modbus TCP connectivity probes.
"""

import asyncio
from dataclasses import dataclass

from pymodbus.client import AsyncModbusTcpClient
from pymodbus.exceptions import ModbusException

from scada_backend.common.exceptions import CommunicationError
from scada_backend.common.logging_setup import get_service_logger

logger = get_service_logger("device.modbus")


@dataclass
class ReadResult:
    """Result of a register read operation"""
    success: bool
    registers: list[int] | None = None
    error: str | None = None


class ModbusClient:
    """
    Async Modbus TCP client bound to one host:port and unit id.

    Does not reconnect on its own: once the link drops, reads fail until
    the owner replaces the client. pymodbus retries are disabled, so a
    read is sent once and bounded by a single timeout.
    """

    def __init__(
        self,
        host: str,
        port: int = 502,
        timeout: float = 10.0,
        unit_id: int = 1,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.unit_id = unit_id

        self._client: AsyncModbusTcpClient | None = None
        self._lock = asyncio.Lock()
        self._connected = False

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_connected(self) -> bool:
        return self._connected and self._client is not None and self._client.connected

    async def connect(self) -> None:
        """
        Establish connection to the Modbus device.

        Raises:
            CommunicationError: connection refused, timed out or failed
        """
        async with self._lock:
            if self._connected:
                return

            try:
                self._client = AsyncModbusTcpClient(
                    host=self.host,
                    port=self.port,
                    timeout=self.timeout,
                    retries=0,
                )
                await self._client.connect()
                self._connected = self._client.connected
            except (ModbusException, OSError, asyncio.TimeoutError) as e:
                self._close_client()
                raise CommunicationError(
                    f"Connection error to {self.address}: {e}",
                    address=self.address,
                ) from e

            if not self._connected:
                self._close_client()
                raise CommunicationError(
                    f"Failed to connect to Modbus device at {self.address}",
                    address=self.address,
                )

            logger.debug(f"Connected to Modbus device at {self.address}")

    async def disconnect(self) -> None:
        """Close connection"""
        async with self._lock:
            self._close_client()
            logger.debug(f"Disconnected from {self.address}")

    def _close_client(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
        self._connected = False

    async def read_holding_registers(self, address: int, count: int = 1) -> ReadResult:
        """
        Read raw holding registers.

        Args:
            address: Starting register address
            count: Number of registers to read

        Returns:
            ReadResult with the raw register values or an error string
        """
        if not self.is_connected:
            return ReadResult(success=False, error=f"Not connected to {self.address}")

        try:
            response = await self._client.read_holding_registers(
                address=address,
                count=count,
                device_id=self.unit_id,
            )

            if response.isError():
                return ReadResult(success=False, error=f"Modbus error: {response}")

            return ReadResult(success=True, registers=list(response.registers))

        except ModbusException as e:
            return ReadResult(success=False, error=f"Modbus exception: {e}")
        except asyncio.TimeoutError:
            return ReadResult(success=False, error="Read timeout")
        except Exception as e:
            return ReadResult(success=False, error=str(e))
