"""Configuration loader for axis-bridge."""

from __future__ import annotations

from configparser import ConfigParser, Error as ConfigParserError
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .bridge import DEFAULT_NAMESPACE
from .errors import ConfigError
from .link import DEFAULT_EXCHANGE_TIMEOUT
from .link.channel import CONNECTION_BAUD, DEFAULT_PORT
from .models import DEFAULT_ACTIONS, Unit
from .poller import DEFAULT_POLL_INTERVAL_MS

DEFAULT_CONFIG_PATH = Path("axis-bridge.cfg")
UNIT_SECTION_PREFIX = "unit:"
DEFAULT_UNIT = Unit(id=1, name="cross-slide")

MIN_UNIT_ID = 1
MAX_UNIT_ID = 99


@dataclass(slots=True)
class SerialConfig:
    port: str = DEFAULT_PORT
    baudrate: int = CONNECTION_BAUD
    timeout: float = DEFAULT_EXCHANGE_TIMEOUT
    checksums: bool = False


@dataclass(slots=True)
class ServerConfig:
    application_name: str = "axis-bridge"
    namespace: str = DEFAULT_NAMESPACE
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    refresh_after_command: bool = True


@dataclass(slots=True)
class BridgeConfig:
    serial: SerialConfig
    server: ServerConfig
    units: List[Unit]
    path: Path
    raw: ConfigParser = field(repr=False)


def _parse_actions(value: str, *, section: str) -> frozenset:
    actions = frozenset(item.strip() for item in value.split(",") if item.strip())
    unknown = actions - DEFAULT_ACTIONS
    if unknown:
        raise ConfigError(f"[{section}] unknown actions: {', '.join(sorted(unknown))}")
    return actions


def _load_units(parser: ConfigParser) -> List[Unit]:
    units: List[Unit] = []
    for section in parser.sections():
        if not section.startswith(UNIT_SECTION_PREFIX):
            continue

        name = section[len(UNIT_SECTION_PREFIX):].strip()
        if not name:
            raise ConfigError(f"[{section}] unit name is empty")

        try:
            unit_id = parser.getint(section, "id")
        except (ValueError, ConfigParserError) as exc:
            raise ConfigError(f"[{section}] id must be an integer: {exc}") from exc
        if not MIN_UNIT_ID <= unit_id <= MAX_UNIT_ID:
            raise ConfigError(f"[{section}] id must be in {MIN_UNIT_ID}..{MAX_UNIT_ID}, got {unit_id}")

        actions_value = parser.get(section, "actions", fallback=None)
        actions = (
            _parse_actions(actions_value, section=section)
            if actions_value is not None
            else DEFAULT_ACTIONS
        )
        units.append(Unit(id=unit_id, name=name, actions=actions))

    ids = [unit.id for unit in units]
    if len(set(ids)) != len(ids):
        raise ConfigError(f"Duplicate unit ids: {ids}")

    return units or [DEFAULT_UNIT]


def load_config(path: Optional[Path] = None) -> BridgeConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "serial": {
                "port": DEFAULT_PORT,
                "baudrate": str(CONNECTION_BAUD),
                "timeout": str(DEFAULT_EXCHANGE_TIMEOUT),
                "checksums": "false",
            },
            "bridge": {
                "application_name": "axis-bridge",
                "namespace": DEFAULT_NAMESPACE,
                "poll_interval_ms": str(DEFAULT_POLL_INTERVAL_MS),
                "refresh_after_command": "true",
            },
        }
    )

    try:
        if config_path.exists():
            parser.read(config_path)

        serial = SerialConfig(
            port=parser.get("serial", "port"),
            baudrate=parser.getint("serial", "baudrate"),
            timeout=parser.getfloat("serial", "timeout"),
            checksums=parser.getboolean("serial", "checksums"),
        )
        server = ServerConfig(
            application_name=parser.get("bridge", "application_name"),
            namespace=parser.get("bridge", "namespace"),
            poll_interval_ms=parser.getint("bridge", "poll_interval_ms"),
            refresh_after_command=parser.getboolean("bridge", "refresh_after_command"),
        )
    except (ValueError, ConfigParserError) as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

    if serial.timeout <= 0:
        raise ConfigError(f"[serial] timeout must be positive, got {serial.timeout}")
    if server.poll_interval_ms <= 0:
        raise ConfigError(f"[bridge] poll_interval_ms must be positive, got {server.poll_interval_ms}")

    return BridgeConfig(
        serial=serial,
        server=server,
        units=_load_units(parser),
        path=config_path,
        raw=parser,
    )
