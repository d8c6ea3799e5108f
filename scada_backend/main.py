"""
SCADA Device Backend - API

FastAPI application that provides:
- Device registration (MQTT, Modbus TCP, OPC UA)
- Connectivity tests over each device's native protocol
- Health and connection statistics

Devices live in memory only; a restart starts from an empty registry.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scada_backend import __version__
from scada_backend.common.config import Settings, get_settings
from scada_backend.common.logging_setup import get_service_logger
from scada_backend.routers import devices
from scada_backend.services.device import (
    ConnectionPool,
    ConnectivityTester,
    DeviceRegistry,
    MqttPublisher,
    build_probes,
)

logger = get_service_logger("api")


def create_app(
    settings: Settings | None = None,
    mqtt_publisher: MqttPublisher | None = None,
    connection_pool: ConnectionPool | None = None,
) -> FastAPI:
    """
    Build the application.

    The MQTT publisher and Modbus connection pool can be supplied by the
    caller; otherwise they are built from settings at startup.
    """
    settings = settings or get_settings()

    # ============================================
    # APPLICATION LIFESPAN
    # ============================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup:
        - Build the registry, Modbus pool and MQTT publisher
        - Start connecting to the MQTT broker

        Shutdown:
        - Close cached Modbus connections
        - Disconnect from the broker
        """
        logger.info(
            f"Starting SCADA backend v{__version__} ({settings.environment})",
            extra={"allowed_origins": settings.cors_origins},
        )

        registry = DeviceRegistry()
        pool = connection_pool if connection_pool is not None else ConnectionPool(
            connection_timeout=settings.modbus_timeout,
            unit_id=settings.modbus_unit_id,
            default_port=settings.modbus_default_port,
        )
        publisher = mqtt_publisher if mqtt_publisher is not None else MqttPublisher(settings)
        publisher.start()

        app.state.settings = settings
        app.state.registry = registry
        app.state.connection_pool = pool
        app.state.mqtt_publisher = publisher
        app.state.tester = ConnectivityTester(
            registry,
            build_probes(settings, pool, publisher),
        )

        yield

        logger.info("Shutting down SCADA backend")
        await pool.close_all()
        publisher.stop()

    app = FastAPI(
        title="SCADA Device Backend",
        description="""
        Supervisory API for industrial and IoT devices.

        ## Features
        - **Devices**: Register MQTT, Modbus TCP and OPC UA endpoints
        - **Connectivity tests**: Probe a device and mark it online

        ## Protocols
        - **MQTT**: Publishes to `<address>/test` on the shared broker
        - **Modbus TCP**: Reads holding register 0 at `host:port`
        - **OPC UA**: Registered, but connectivity tests are not supported
        """,
        version=__version__,
        lifespan=lifespan,
    )

    # ============================================
    # CORS MIDDLEWARE
    # ============================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["Origin", "Content-Type", "Accept"],
    )

    # ============================================
    # INCLUDE ROUTERS
    # ============================================

    app.include_router(
        devices.router,
        prefix="/api/devices",
        tags=["Devices"]
    )

    # ============================================
    # ROOT ENDPOINTS
    # ============================================

    @app.get("/", tags=["Health"])
    async def root():
        """Basic API information."""
        return {
            "name": "SCADA Device Backend",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Detailed health check.

        Reports device count, Modbus pool usage and broker connectivity.
        """
        return {
            "status": "healthy",
            "version": __version__,
            "devices": len(app.state.registry),
            "mqtt": {
                "broker": app.state.mqtt_publisher.broker,
                "connected": app.state.mqtt_publisher.is_connected,
            },
            "modbus": app.state.connection_pool.get_stats(),
        }

    return app


app = create_app()
