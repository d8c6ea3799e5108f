"""
Service Dependencies

FastAPI dependencies handing the request handlers the service objects
built in the application lifespan.

Usage:
    @router.get("/")
    async def my_route(registry: DeviceRegistry = Depends(get_registry)):
        return await registry.list_devices()
"""

from fastapi import Request

from scada_backend.services.device import ConnectivityTester, DeviceRegistry


def get_registry(request: Request) -> DeviceRegistry:
    return request.app.state.registry


def get_tester(request: Request) -> ConnectivityTester:
    return request.app.state.tester