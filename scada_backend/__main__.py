"""
SCADA Device Backend - Entry Point

Usage:
    python -m scada_backend                     # Settings from env / .env
    python -m scada_backend --config my.yaml    # Override settings from YAML
    python -m scada_backend --port 9000         # Listen on another port
    python -m scada_backend --verbose           # Enable debug logging
"""

import argparse
import os
import sys

import uvicorn

from scada_backend import __version__
from scada_backend.common.config import get_settings, load_settings_file
from scada_backend.common.exceptions import ConfigError


def main() -> None:
    parser = argparse.ArgumentParser(
        description="SCADA device registry and connectivity test API",
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to a YAML settings file"
    )

    parser.add_argument("--host", type=str, default=None, help="Bind address")
    parser.add_argument("--port", "-p", type=int, default=None, help="Listen port")

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (debug) logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SCADA Device Backend v{__version__}"
    )

    args = parser.parse_args()

    try:
        settings = load_settings_file(args.config) if args.config else get_settings()
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    # Loggers are created at import time and read these
    os.environ["SCADA_LOG_LEVEL"] = "DEBUG" if args.verbose else settings.log_level
    os.environ["SCADA_LOG_FORMAT"] = settings.log_format

    from scada_backend.main import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level="debug" if args.verbose else settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
