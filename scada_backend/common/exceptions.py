"""
Custom Exception Classes for the SCADA backend

Hierarchical exception structure shared by the registry, the
connectivity tester and the HTTP layer.
"""


class ScadaError(Exception):
    """Base exception for all SCADA backend errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(ScadaError):
    """Configuration-related errors"""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(f"Config Error: {message}", recoverable)


class DeviceError(ScadaError):
    """Device-scoped errors"""

    def __init__(
        self,
        message: str,
        device_id: str | None = None,
        recoverable: bool = True,
    ):
        self.device_id = device_id
        super().__init__(message, recoverable)


class DeviceNotFoundError(DeviceError):
    """Device id is not present in the registry"""

    def __init__(self, device_id: str):
        super().__init__("Device not found", device_id=device_id)


class CommunicationError(DeviceError):
    """Modbus/MQTT/network communication errors"""

    def __init__(
        self,
        message: str,
        device_id: str | None = None,
        address: str | None = None,
    ):
        self.address = address
        super().__init__(message, device_id, recoverable=True)
