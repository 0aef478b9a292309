"""Command-line interface for axis-bridge."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from .bridge import Bridge
from .config import DEFAULT_CONFIG_PATH, BridgeConfig, load_config
from .errors import ConfigError
from .link import DeviceLink, SerialChannel
from .protocol import ASCIIProtocol
from .server import LocalServer

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="axis-bridge", description="Publish serial motion devices as server nodes"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Open the serial link and run the bridge")
    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def build_link(config: BridgeConfig) -> DeviceLink:
    channel = SerialChannel(port=config.serial.port, baudrate=config.serial.baudrate)
    return DeviceLink(
        channel=channel,
        protocol=ASCIIProtocol(checksums=config.serial.checksums),
        timeout=config.serial.timeout,
    )


def run(config: BridgeConfig, stop_event: Optional[threading.Event] = None) -> int:
    """Run the bridge until interrupted or ``stop_event`` is set."""
    link = build_link(config)
    if not link.connect():
        LOGGER.error("Cannot open %s", config.serial.port)
        return 1

    server = LocalServer(application_name=config.server.application_name)
    bridge = Bridge(
        server,
        link,
        config.units,
        namespace_uri=config.server.namespace,
        poll_interval_ms=config.server.poll_interval_ms,
        refresh_after_command=config.server.refresh_after_command,
    )
    bridge.setup()

    stop_event = stop_event or threading.Event()
    server.start()
    try:
        while not stop_event.wait(0.5):
            pass
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    finally:
        server.stop()
        link.disconnect()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1

    if args.command == "run":
        return run(config)

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        if not any(s.startswith("unit:") for s in config.raw.sections()):
            unit = config.units[0]
            print(f"[unit:{unit.name}]\nid = {unit.id}\n")
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
