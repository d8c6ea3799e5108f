"""Tests for the device registry."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from scada_backend.common.models import (
    DeviceCreate,
    DeviceStatus,
    DeviceUpdate,
    Protocol,
    utc_now,
)
from scada_backend.services.device.registry import DeviceRegistry


def _request(device_id: str = "d1", protocol: str = "modbus", address: str = "10.0.0.5:502") -> DeviceCreate:
    return DeviceCreate(
        id=device_id,
        name=f"Device {device_id}",
        type="plc",
        protocol=protocol,
        address=address,
    )


class TestCreate:
    """Tests for DeviceRegistry.create."""

    async def test_new_device_is_offline_with_empty_readings(self, registry: DeviceRegistry) -> None:
        """Created devices start offline with no readings."""
        before = utc_now()
        device = await registry.create(_request())

        assert device.id == "d1"
        assert device.status == DeviceStatus.OFFLINE
        assert device.readings == {}
        assert device.last_seen >= before

        stored = await registry.get("d1")
        assert stored is not None
        assert stored.status == DeviceStatus.OFFLINE
        assert stored.readings == {}

    async def test_duplicate_id_overwrites(self, registry: DeviceRegistry) -> None:
        """Creating an existing id replaces the stored device and resets status."""
        await registry.create(_request(address="10.0.0.5:502"))
        await registry.mark_online("d1")

        await registry.create(_request(address="10.0.0.9:502"))

        devices = await registry.list_devices()
        assert len(devices) == 1
        assert devices[0].address == "10.0.0.9:502"
        assert devices[0].status == DeviceStatus.OFFLINE

    async def test_concurrent_creates_are_all_stored(self, registry: DeviceRegistry) -> None:
        """N concurrent creates with distinct ids yield exactly N devices."""
        count = 50
        await asyncio.gather(*(registry.create(_request(f"dev-{i}")) for i in range(count)))

        devices = await registry.list_devices()
        ids = [device.id for device in devices]
        assert len(ids) == count
        assert sorted(ids) == sorted(f"dev-{i}" for i in range(count))
        assert len(registry) == count


class TestReads:
    """Tests for list_devices and get."""

    async def test_get_unknown_returns_none(self, registry: DeviceRegistry) -> None:
        assert await registry.get("missing") is None

    async def test_list_returns_copies(self, registry: DeviceRegistry) -> None:
        """Mutating a listed device does not touch the store."""
        await registry.create(_request())

        listed = await registry.list_devices()
        listed[0].name = "changed"
        listed[0].status = DeviceStatus.ONLINE
        listed[0].readings["temp"] = 1.0

        stored = await registry.get("d1")
        assert stored.name == "Device d1"
        assert stored.status == DeviceStatus.OFFLINE
        assert stored.readings == {}

    async def test_get_returns_copy(self, registry: DeviceRegistry) -> None:
        await registry.create(_request())

        fetched = await registry.get("d1")
        fetched.address = "elsewhere"

        assert (await registry.get("d1")).address == "10.0.0.5:502"


class TestUpdate:
    """Tests for DeviceRegistry.update."""

    async def test_update_changes_only_metadata(self, registry: DeviceRegistry) -> None:
        """id, status and lastSeen survive an update."""
        await registry.create(_request())
        await registry.mark_online("d1")
        before = await registry.get("d1")

        updated = await registry.update(
            "d1",
            DeviceUpdate(name="Pump", type="sensor", protocol="mqtt", address="site/pump1"),
        )

        after = await registry.get("d1")
        assert updated.name == "Device d1"
        assert updated.protocol == "modbus"
        assert after.id == "d1"
        assert after.status == before.status == DeviceStatus.ONLINE
        assert after.last_seen == before.last_seen
        assert after.name == "Pump"
        assert after.type == "sensor"
        assert after.protocol == "mqtt"
        assert after.address == "site/pump1"

    async def test_partial_update_keeps_missing_fields(self, registry: DeviceRegistry) -> None:
        await registry.create(_request())

        await registry.update("d1", DeviceUpdate(name="Renamed"))

        device = await registry.get("d1")
        assert device.name == "Renamed"
        assert device.protocol == "modbus"
        assert device.address == "10.0.0.5:502"

    async def test_update_unknown_is_noop(self, registry: DeviceRegistry) -> None:
        await registry.create(_request())
        before = await registry.list_devices()

        updated = await registry.update("missing", DeviceUpdate(name="x"))

        assert updated is None
        assert await registry.list_devices() == before


class TestDelete:
    """Tests for DeviceRegistry.delete."""

    async def test_delete_returns_removed_device(self, registry: DeviceRegistry) -> None:
        await registry.create(_request())

        removed = await registry.delete("d1")

        assert removed is not None
        assert removed.id == "d1"
        assert await registry.get("d1") is None

    async def test_delete_twice_is_idempotent(self, registry: DeviceRegistry) -> None:
        await registry.create(_request("d1"))
        await registry.create(_request("d2"))

        await registry.delete("d1")
        assert await registry.delete("d1") is None

        ids = [device.id for device in await registry.list_devices()]
        assert ids == ["d2"]

    async def test_delete_unknown_is_noop(self, registry: DeviceRegistry) -> None:
        await registry.create(_request())

        assert await registry.delete("missing") is None
        assert len(await registry.list_devices()) == 1


class TestMarkOnline:
    """Tests for DeviceRegistry.mark_online."""

    async def test_marks_online_and_sets_last_seen(self, registry: DeviceRegistry) -> None:
        await registry.create(_request())
        seen = utc_now() + timedelta(seconds=5)

        assert await registry.mark_online("d1", seen) is True

        device = await registry.get("d1")
        assert device.status == DeviceStatus.ONLINE
        assert device.last_seen == seen

    async def test_last_seen_never_moves_backwards(self, registry: DeviceRegistry) -> None:
        await registry.create(_request())
        later = utc_now() + timedelta(minutes=1)
        await registry.mark_online("d1", later)

        await registry.mark_online("d1", later - timedelta(minutes=10))

        assert (await registry.get("d1")).last_seen == later

    async def test_unknown_device_is_not_created(self, registry: DeviceRegistry) -> None:
        assert await registry.mark_online("missing") is False
        assert await registry.list_devices() == []


class TestAddressesInUse:
    """Tests for DeviceRegistry.addresses_in_use."""

    async def test_filters_by_protocol(self, registry: DeviceRegistry) -> None:
        await registry.create(_request("m1", "modbus", "10.0.0.5:502"))
        await registry.create(_request("m2", "modbus", "10.0.0.6:502"))
        await registry.create(_request("q1", "mqtt", "site/pump1"))

        assert await registry.addresses_in_use(Protocol.MODBUS) == {"10.0.0.5:502", "10.0.0.6:502"}
        assert await registry.addresses_in_use(Protocol.MQTT) == {"site/pump1"}
        assert await registry.addresses_in_use(Protocol.OPCUA) == set()
