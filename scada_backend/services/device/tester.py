"""
Connectivity Tester

Looks a device up, runs the probe for its protocol once, and marks the
device online on success. Failures never demote a device.
"""

from scada_backend.common.exceptions import DeviceNotFoundError
from scada_backend.common.logging_setup import get_service_logger, log_probe_result
from scada_backend.common.models import ConnectivityResult, Device, Protocol, utc_now
from .probes import Probe, ProbeResult
from .registry import DeviceRegistry

logger = get_service_logger("device.tester")


class ConnectivityTester:
    """
    Protocol-dispatching connectivity tester.

    Single attempt per call, no retries. Protocol errors come back as
    opaque strings in the result.
    """

    def __init__(self, registry: DeviceRegistry, probes: dict[Protocol, Probe]):
        self._registry = registry
        self._probes = dict(probes)

    async def test(self, device_id: str) -> ConnectivityResult:
        """
        Run a connectivity test for one device.

        Raises:
            DeviceNotFoundError: device id is not registered
        """
        device = await self._registry.get(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)

        result = await self._run_probe(device)

        if result.success:
            await self._registry.mark_online(device_id, utc_now())

        log_probe_result(
            logger,
            device_id=device.id,
            protocol=device.protocol,
            address=device.address,
            success=result.success,
            error=result.error,
        )
        return ConnectivityResult(
            success=result.success,
            error="" if result.success else result.error,
        )

    async def _run_probe(self, device: Device) -> ProbeResult:
        probe = self._probes.get(Protocol.parse(device.protocol))
        if probe is None:
            return ProbeResult(success=False, error=f"Unsupported protocol: {device.protocol}")

        try:
            return await probe.probe(device)
        except Exception as e:
            logger.error(f"Probe crashed for {device.id}: {e}", exc_info=True)
            return ProbeResult(success=False, error=str(e) or type(e).__name__)

    async def release(self, device: Device) -> None:
        """
        Free protocol resources of a removed device.

        The address is released only when no remaining device of the
        same protocol still uses it.
        """
        protocol = Protocol.parse(device.protocol)
        probe = self._probes.get(protocol)
        if probe is None:
            return

        if device.address in await self._registry.addresses_in_use(protocol):
            return

        await probe.release(device.address)
