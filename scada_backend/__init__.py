"""
SCADA Device Backend

Supervisory API for registering MQTT, Modbus TCP and OPC UA devices
and testing their connectivity over each device's native protocol.
"""

__version__ = "1.0.0"
