"""
Devices Router

Handles device management:
- Device registration, update and removal
- Connectivity tests over the device's native protocol
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from scada_backend.common.exceptions import DeviceNotFoundError
from scada_backend.common.models import (
    ConnectivityResult,
    Device,
    DeviceCreate,
    DeviceUpdate,
)
from scada_backend.dependencies.services import get_registry, get_tester
from scada_backend.services.device import ConnectivityTester, DeviceRegistry

router = APIRouter()


# ============================================
# DEVICE ENDPOINTS
# ============================================

@router.get("", response_model=list[Device])
async def list_devices(registry: DeviceRegistry = Depends(get_registry)):
    """List all registered devices with their current status."""
    return await registry.list_devices()


@router.post("", response_model=Device)
async def create_device(
    device: DeviceCreate,
    registry: DeviceRegistry = Depends(get_registry),
):
    """
    Register a device.

    The device starts offline with an empty readings map. Registering
    an id that already exists replaces the stored device.
    """
    return await registry.create(device)


@router.get("/{device_id}", response_model=Device)
async def get_device(device_id: str, registry: DeviceRegistry = Depends(get_registry)):
    """Get one device by id."""
    device = await registry.get(device_id)
    if device is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Device not found",
        )
    return device


@router.put("/{device_id}")
async def update_device(
    device_id: str,
    update: DeviceUpdate,
    registry: DeviceRegistry = Depends(get_registry),
    tester: ConnectivityTester = Depends(get_tester),
):
    """
    Update name, type, protocol and address.

    Succeeds whether or not the device exists. Moving a device to a new
    address or protocol closes the old cached connection once no device
    uses it.
    """
    previous = await registry.update(device_id, update)
    if previous:
        await tester.release(previous)
    return {"status": "updated" if previous else "unchanged", "device_id": device_id}


@router.delete("/{device_id}")
async def delete_device(
    device_id: str,
    registry: DeviceRegistry = Depends(get_registry),
    tester: ConnectivityTester = Depends(get_tester),
):
    """
    Remove a device.

    Succeeds whether or not the device exists. Cached protocol
    connections for its address are closed once no device uses them.
    """
    removed = await registry.delete(device_id)
    if removed:
        await tester.release(removed)
    return {"status": "deleted" if removed else "unchanged", "device_id": device_id}


# ============================================
# CONNECTIVITY TEST ENDPOINT
# ============================================

@router.post("/{device_id}/test", response_model=ConnectivityResult)
async def test_device(
    device_id: str,
    tester: ConnectivityTester = Depends(get_tester),
):
    """
    Probe the device over its protocol.

    On success the device is marked online and lastSeen refreshed.
    A failed probe leaves the stored status untouched.
    """
    try:
        return await tester.test(device_id)
    except DeviceNotFoundError as e:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ConnectivityResult(success=False, error=e.message).model_dump(),
        )
