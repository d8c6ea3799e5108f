"""
Modbus Connection Pool

Caches one connected Modbus TCP client per device address so repeated
connectivity tests reuse the same socket instead of reconnecting.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from scada_backend.common.exceptions import CommunicationError
from scada_backend.common.locks import ReadWriteLock
from scada_backend.common.logging_setup import get_service_logger
from .modbus_client import ModbusClient

logger = get_service_logger("device.pool")


@dataclass
class PooledConnection:
    """A pooled Modbus TCP connection"""
    client: ModbusClient
    last_used: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    use_count: int = 0


def parse_address(address: str, default_port: int = 502) -> tuple[str, int]:
    """
    Split "host:port" into its parts.

    A bare host gets the default port. IPv6 hosts must be bracketed
    ("[::1]:502"); an unbracketed one such as "::1" is rejected.

    Raises:
        CommunicationError: empty or unbracketed IPv6 host, non-numeric port
    """
    address = address.strip()
    host, port = address, str(default_port)

    if address.startswith("["):
        bracket_end = address.find("]")
        if bracket_end == -1:
            raise CommunicationError(f"Invalid Modbus address: {address!r}", address=address)
        host = address[1:bracket_end]
        rest = address[bracket_end + 1:]
        if rest.startswith(":"):
            port = rest[1:]
        elif rest:
            raise CommunicationError(f"Invalid Modbus address: {address!r}", address=address)
    elif ":" in address:
        host, _, port = address.rpartition(":")
        if ":" in host:
            raise CommunicationError(f"Invalid Modbus address: {address!r}", address=address)

    if not host:
        raise CommunicationError(f"Invalid Modbus address: {address!r}", address=address)

    try:
        port_number = int(port)
    except ValueError:
        raise CommunicationError(
            f"Invalid Modbus port in address: {address!r}", address=address
        ) from None

    if not 0 < port_number < 65536:
        raise CommunicationError(f"Modbus port out of range: {address!r}", address=address)

    return host, port_number


class ConnectionPool:
    """
    Modbus connection cache keyed by device address.

    - Lazily connects on first use of an address
    - Caches only clients whose connect() succeeded
    - Never expires or health-checks cached clients
    """

    def __init__(
        self,
        connection_timeout: float = 10.0,
        unit_id: int = 1,
        default_port: int = 502,
        client_factory: Callable[..., ModbusClient] = ModbusClient,
    ):
        self._connections: dict[str, PooledConnection] = {}
        self._lock = ReadWriteLock()
        self._connection_timeout = connection_timeout
        self._unit_id = unit_id
        self._default_port = default_port
        self._client_factory = client_factory

    def __contains__(self, address: str) -> bool:
        return address in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    async def get_client(self, address: str) -> ModbusClient:
        """
        Get the cached client for an address, connecting on a miss.

        Raises:
            CommunicationError: invalid address or connection failure;
                nothing is cached in that case
        """
        async with self._lock.read():
            pooled = self._connections.get(address)
            if pooled:
                pooled.last_used = datetime.now(timezone.utc)
                pooled.use_count += 1
                return pooled.client

        host, port = parse_address(address, self._default_port)
        client = self._client_factory(
            host=host,
            port=port,
            timeout=self._connection_timeout,
            unit_id=self._unit_id,
        )

        # Connect outside the lock so a slow device does not stall other addresses
        await client.connect()

        async with self._lock.write():
            pooled = self._connections.get(address)
            if pooled is None:
                self._connections[address] = PooledConnection(client=client, use_count=1)
                logger.debug(f"Created new connection: {address}")
                return client

            # Another task connected the same address first; keep its client
            pooled.last_used = datetime.now(timezone.utc)
            pooled.use_count += 1
            existing = pooled.client

        await client.disconnect()
        return existing

    async def evict(self, address: str) -> bool:
        """
        Close and drop the cached client for an address.

        Returns:
            True if a client was cached
        """
        async with self._lock.write():
            pooled = self._connections.pop(address, None)

        if pooled is None:
            return False

        await pooled.client.disconnect()
        logger.info(f"Evicted connection: {address}")
        return True

    async def close_all(self) -> None:
        """Close every cached connection"""
        async with self._lock.write():
            pooled_connections = list(self._connections.values())
            self._connections.clear()

        for pooled in pooled_connections:
            await pooled.client.disconnect()

        if pooled_connections:
            logger.info(f"Closed {len(pooled_connections)} Modbus connections")

    def get_stats(self) -> dict:
        """Get connection pool statistics"""
        return {
            "total_connections": len(self._connections),
            "tcp_connections": {
                address: {
                    "use_count": pooled.use_count,
                    "connected": pooled.client.is_connected,
                    "last_used": pooled.last_used.isoformat(),
                }
                for address, pooled in self._connections.items()
            },
        }
