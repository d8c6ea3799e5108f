"""
MQTT Publisher

One shared paho-mqtt connection to the broker for the whole process.
paho runs its network loop in a background thread; publish() waits for
completion in the default executor so the event loop is never blocked.
"""

import asyncio
from dataclasses import dataclass

import paho.mqtt.client as mqtt

from scada_backend.common.config import Settings
from scada_backend.common.logging_setup import get_service_logger

logger = get_service_logger("device.mqtt")


@dataclass
class PublishResult:
    """Result of a publish operation"""
    success: bool
    error: str | None = None


class MqttPublisher:
    """
    Shared MQTT broker connection.

    A broker that is unreachable at startup is not fatal: paho keeps
    retrying in the background and publish() reports the failure.
    """

    def __init__(self, settings: Settings, client: mqtt.Client | None = None):
        self.host = settings.mqtt_host
        self.port = settings.mqtt_port
        self.keepalive = settings.mqtt_keepalive
        self.publish_timeout = settings.mqtt_publish_timeout

        self._client = client if client is not None else mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=settings.mqtt_client_id,
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._started = False

    @property
    def broker(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected()

    def start(self) -> None:
        """Start connecting to the broker in the background"""
        if self._started:
            return

        try:
            self._client.connect_async(self.host, self.port, keepalive=self.keepalive)
            self._client.loop_start()
            self._started = True
            logger.info(f"MQTT client connecting to {self.broker}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to start MQTT client for {self.broker}: {e}")

    def stop(self) -> None:
        """Disconnect and stop the network loop"""
        if not self._started:
            return

        self._client.disconnect()
        self._client.loop_stop()
        self._started = False
        logger.info("MQTT client stopped")

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            logger.warning(f"MQTT broker {self.broker} refused connection: {reason_code}")
        else:
            logger.info(f"Connected to MQTT broker {self.broker}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties) -> None:
        logger.warning(f"Disconnected from MQTT broker {self.broker}: {reason_code}")

    async def publish(
        self,
        topic: str,
        payload: str | bytes = b"",
        qos: int = 0,
        retain: bool = False,
    ) -> PublishResult:
        """
        Publish one message and wait until paho reports it sent.

        Returns:
            PublishResult with paho's error text on failure
        """
        if not self._client.is_connected():
            return PublishResult(
                success=False,
                error=f"Not connected to MQTT broker at {self.broker}",
            )

        try:
            info = self._client.publish(topic, payload, qos=qos, retain=retain)
        except ValueError as e:
            # Invalid topic (wildcards, empty) or payload
            return PublishResult(success=False, error=str(e))

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            return PublishResult(success=False, error=mqtt.error_string(info.rc))

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, info.wait_for_publish, self.publish_timeout)
        except (RuntimeError, ValueError) as e:
            return PublishResult(success=False, error=str(e))

        if not info.is_published():
            return PublishResult(
                success=False,
                error=f"MQTT publish to {topic} timed out after {self.publish_timeout}s",
            )

        return PublishResult(success=True)
