"""pi3g-netconf configuration and logging."""

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

import structlog

SYSTEM_CONFIG = Path("/etc/pi3g-netconf/config")
ENV_CONFIG = "NETCONF_CONFIG"
ENV_DEBUG = "NETCONF_DEBUG"


@dataclass(frozen=True)
class Interface:
    """A network interface handled by the hook."""

    name: str
    subnet: str  # third octet of the 192.168.x.0/24 network
    wireless: bool = False
    source: str | None = None  # file path


DEFAULT_INTERFACES = {
    "wlan0": Interface("wlan0", "42", wireless=True),
    "eth1": Interface("eth1", "43"),
}


@dataclass
class Config:
    """Parsed configuration."""

    interfaces: dict[str, Interface] = field(default_factory=dict)
    """Handled interfaces by name. Empty means the built-in table."""

    torrc: Path = Path("/etc/tor/torrc")
    lock: Path = Path("/tmp/pi3g-netconf-lock")
    log: Path = Path("/var/log/pi3g-netconf")
    debug: bool = False
    settle_delay: float = 10.0  # seconds hostapd gets before we touch wlan0
    dhcp_service: str = "isc-dhcp-server"
    ap_service: str = "hostapd"
    service_bin: str = "/usr/sbin/service"
    ip_bin: str = "/bin/ip"
    network: str = "192.168"
    trans_port: int = 9040
    dns_port: int = 5353

    explicit: frozenset[str] = field(default=frozenset(), compare=False, repr=False)
    """Settings named by a `set` directive, as opposed to defaults."""


BOOL_SETTINGS = ("debug",)
PATH_SETTINGS = ("torrc", "lock", "log")
NAME_SETTINGS = ("dhcp_service", "ap_service", "service_bin", "ip_bin")
PORT_SETTINGS = ("trans_port", "dns_port")
VALUE_SETTINGS = PATH_SETTINGS + NAME_SETTINGS + PORT_SETTINGS + ("settle_delay", "network")


# === Config Loading ===


def _merge_configs(base: Config, overlay: Config) -> Config:
    """Merge overlay config into base. Interfaces accumulate by name, settings override."""
    # Settings: overlay wins if set
    settings = {name: getattr(overlay, name) for name in overlay.explicit}
    return replace(
        base,
        interfaces={**base.interfaces, **overlay.interfaces},
        explicit=base.explicit | overlay.explicit,
        **settings,
    )


def _tag_interfaces(config: Config, source: str) -> Config:
    """Tag all interfaces in config with the file they came from."""
    return replace(
        config,
        interfaces={
            name: replace(iface, source=source)
            for name, iface in config.interfaces.items()
        },
    )


def _load_file(path: Path) -> Config:
    try:
        config = parse_config(path.read_text())
    except ValueError as e:
        raise ValueError(f"{path}: {e}") from None
    return _tag_interfaces(config, str(path))


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Load config from /etc/pi3g-netconf/config and $NETCONF_CONFIG. Last match wins.

    Raises ValueError naming the file and line on syntax errors.
    """
    if environ is None:
        environ = os.environ
    config = Config()

    # 1. System config (lowest priority)
    if SYSTEM_CONFIG.is_file():
        config = _merge_configs(config, _load_file(SYSTEM_CONFIG))

    # 2. Env override (highest priority)
    env_path = environ.get(ENV_CONFIG)
    if env_path:
        env_config_path = Path(env_path).expanduser()
        if env_config_path.is_file():
            config = _merge_configs(config, _load_file(env_config_path))

    if not config.interfaces:
        config = replace(config, interfaces=dict(DEFAULT_INTERFACES))
    if environ.get(ENV_DEBUG):
        config = replace(config, debug=True)
    return config


def parse_config(text: str) -> Config:
    """Parse config text into Config object. Raises ValueError on syntax errors."""
    interfaces: dict[str, Interface] = {}
    settings: dict[str, bool | int | float | str | Path] = {}

    for lineno, raw_line in enumerate(text.splitlines(), 1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        parts = line.split(None, 1)
        directive = parts[0].lower()
        rest = parts[1].strip() if len(parts) > 1 else ""

        try:
            if directive == "interface":
                iface = _parse_interface(rest)
                interfaces[iface.name] = iface

            elif directive == "set":
                _apply_setting(settings, rest)

            else:
                raise ValueError(f"unknown directive '{directive}'")

        except ValueError as e:
            raise ValueError(f"line {lineno}: {e}") from None

    return Config(interfaces=interfaces, explicit=frozenset(settings), **settings)


def _parse_interface(rest: str) -> Interface:
    """Parse 'NAME SUBNET [wireless]'."""
    parts = rest.split()
    if len(parts) not in (2, 3):
        raise ValueError("'interface' requires a name and a subnet")
    name, subnet = parts[0], parts[1]
    if not subnet.isdigit() or not 0 <= int(subnet) <= 255:
        raise ValueError(f"subnet must be a number from 0 to 255, got '{subnet}'")
    wireless = False
    if len(parts) == 3:
        if parts[2].lower() != "wireless":
            raise ValueError(f"unknown interface flag '{parts[2]}'")
        wireless = True
    return Interface(name, str(int(subnet)), wireless=wireless)


def _apply_setting(settings: dict[str, bool | int | float | str | Path], rest: str) -> None:
    """Parse and apply a 'set' directive. Raises ValueError on invalid setting."""
    if not rest:
        raise ValueError("'set' requires a setting name")

    parts = rest.split(None, 1)
    key = parts[0].lower()
    value = parts[1].strip() if len(parts) > 1 else None
    key_normalized = key.replace("-", "_")

    # Boolean settings (no value required)
    if key_normalized in BOOL_SETTINGS:
        if value is not None:
            raise ValueError(f"'{key}' takes no value")
        settings[key_normalized] = True

    elif key_normalized not in VALUE_SETTINGS:
        raise ValueError(f"unknown setting '{key}'")

    elif value is None:
        raise ValueError(f"'{key}' requires a value")

    elif key_normalized in PATH_SETTINGS:
        settings[key_normalized] = Path(value).expanduser()

    elif key_normalized in NAME_SETTINGS:
        settings[key_normalized] = value

    elif key_normalized in PORT_SETTINGS:
        if not value.isdigit() or not 1 <= int(value) <= 65535:
            raise ValueError(f"'{key}' requires a port number, got '{value}'")
        settings[key_normalized] = int(value)

    elif key_normalized == "settle_delay":
        try:
            delay = float(value)
        except ValueError:
            raise ValueError(f"'{key}' requires a number, got '{value}'") from None
        if delay < 0:
            raise ValueError(f"'{key}' must not be negative")
        settings[key_normalized] = delay

    else:  # network
        octets = value.split(".")
        if len(octets) != 2 or not all(
            o.isdigit() and 0 <= int(o) <= 255 for o in octets
        ):
            raise ValueError(f"'network' requires two octets like 192.168, got '{value}'")
        settings[key_normalized] = value


# === Logging ===


class _QuietPrintLogger(structlog.PrintLogger):
    """PrintLogger that drops entries it can't write. Logging is optional - don't fail the hook."""

    def msg(self, message: str) -> None:
        try:
            super().msg(message)
        except (OSError, ValueError):
            pass

    log = debug = info = warn = warning = msg
    fatal = failure = err = error = critical = exception = msg


def configure_logging(config: Config) -> None:
    """Configure structlog. Call once at startup.

    Debug mode appends everything to the log file, falling back to stderr
    when it can't be opened. Otherwise only warnings reach stderr.
    """
    level = logging.DEBUG if config.debug else logging.WARNING
    output = sys.stderr
    if config.debug:
        try:
            config.log.parent.mkdir(parents=True, exist_ok=True)
            output = open(config.log, "a")
        except OSError as e:
            print(f"pi3g-netconf: {e}", file=sys.stderr)
            print("pi3g-netconf: falling back to stderr logging", file=sys.stderr)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=lambda *args: _QuietPrintLogger(output),
    )
