"""
Device Registry

Authoritative in-memory store of devices keyed by id.

A single registry-wide reader/writer lock guards the map: reads take
shared access, every mutation takes exclusive access. Callers always
receive copies, never live references into the store.
"""

from datetime import datetime

from scada_backend.common.locks import ReadWriteLock
from scada_backend.common.logging_setup import get_service_logger
from scada_backend.common.models import (
    Device,
    DeviceCreate,
    DeviceStatus,
    DeviceUpdate,
    Protocol,
    utc_now,
)

logger = get_service_logger("device.registry")


class DeviceRegistry:
    """
    Thread-safe device store.

    Status and lastSeen are owned by the registry: create() resets them
    and only mark_online() changes them afterwards.
    """

    def __init__(self):
        self._devices: dict[str, Device] = {}
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        return len(self._devices)

    async def list_devices(self) -> list[Device]:
        """Snapshot of every device"""
        async with self._lock.read():
            return [device.model_copy(deep=True) for device in self._devices.values()]

    async def get(self, device_id: str) -> Device | None:
        """Copy of one device, or None if absent"""
        async with self._lock.read():
            device = self._devices.get(device_id)
            return device.model_copy(deep=True) if device else None

    async def create(self, request: DeviceCreate) -> Device:
        """
        Store a new device as offline with an empty readings map.

        An existing device with the same id is replaced.
        """
        device = Device(
            id=request.id,
            name=request.name,
            type=request.type,
            protocol=request.protocol,
            address=request.address,
            status=DeviceStatus.OFFLINE,
            last_seen=utc_now(),
            readings={},
        )

        async with self._lock.write():
            if device.id in self._devices:
                logger.warning(f"Overwriting existing device: {device.id}")
            self._devices[device.id] = device
            stored = device.model_copy(deep=True)

        logger.info(
            f"Registered device: {device.name} ({device.id}, {device.protocol})",
            extra={"device": device.id, "protocol": device.protocol},
        )
        return stored

    async def update(self, device_id: str, patch: DeviceUpdate) -> Device | None:
        """
        Apply name/type/protocol/address changes in place.

        Returns:
            The device as it was before the change, or None for an
            unknown id (a no-op)
        """
        changes = patch.model_dump(exclude_none=True)

        async with self._lock.write():
            device = self._devices.get(device_id)
            if device is None:
                return None
            previous = device.model_copy(deep=True)
            for field_name, value in changes.items():
                setattr(device, field_name, value)

        logger.debug(f"Updated device {device_id}: {sorted(changes)}")
        return previous

    async def delete(self, device_id: str) -> Device | None:
        """
        Remove a device.

        Returns:
            The removed device, or None if it was not registered
        """
        async with self._lock.write():
            removed = self._devices.pop(device_id, None)

        if removed:
            logger.info(f"Removed device: {device_id}")
        return removed

    async def mark_online(self, device_id: str, timestamp: datetime | None = None) -> bool:
        """
        Record a successful connectivity test.

        lastSeen never moves backwards. A device deleted while its test
        was in flight stays deleted.

        Returns:
            True if the device was updated
        """
        timestamp = timestamp or utc_now()

        async with self._lock.write():
            device = self._devices.get(device_id)
            if device is None:
                return False
            device.status = DeviceStatus.ONLINE
            device.last_seen = max(device.last_seen, timestamp)
            return True

    async def addresses_in_use(self, protocol: Protocol) -> set[str]:
        """Addresses of all registered devices using the given protocol"""
        async with self._lock.read():
            return {
                device.address
                for device in self._devices.values()
                if Protocol.parse(device.protocol) == protocol
            }
