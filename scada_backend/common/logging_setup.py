"""
Logging

Every module logs through a child of the "scada" logger. One stdout
handler sits on that parent, emitting JSON lines by default or plain
text when SCADA_LOG_FORMAT=text.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

ROOT_LOGGER = "scada"

# Extra fields copied from the record into the JSON line
_CONTEXT_FIELDS = ("device", "protocol", "address", "error", "allowed_origins")


class JsonFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", record.name),
            "message": record.getMessage(),
        }
        for key in _CONTEXT_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Tags each record with the service that emitted it"""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**kwargs.get("extra", {}), "service": self.extra["service"]}
        return msg, kwargs


def _configure_root() -> logging.Logger:
    level = os.environ.get("SCADA_LOG_LEVEL", "INFO").upper()
    json_format = os.environ.get("SCADA_LOG_FORMAT", "json").lower() == "json"

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level, logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    root.handlers = [handler]
    root.propagate = False
    return root


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Logger for one service ("api", "device.tester", ...).

    Re-reads SCADA_LOG_LEVEL and SCADA_LOG_FORMAT, so the CLI can set them
    before the application modules are imported.
    """
    _configure_root()
    logger = logging.getLogger(f"{ROOT_LOGGER}.{service_name}")
    return ServiceLoggerAdapter(logger, {"service": service_name})


def log_probe_result(
    logger: logging.LoggerAdapter,
    device_id: str,
    protocol: str,
    address: str,
    success: bool,
    error: str = "",
) -> None:
    """Log the outcome of a connectivity test"""
    extra = {"device": device_id, "protocol": protocol, "address": address}
    if success:
        logger.info(f"Connectivity test passed for {device_id} ({protocol} {address})", extra=extra)
    else:
        logger.warning(
            f"Connectivity test failed for {device_id} ({protocol} {address}): {error}",
            extra={**extra, "error": error},
        )
