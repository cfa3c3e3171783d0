"""Hotplug hook that rebinds Tor and restarts DHCP when a tethering interface changes.

Install as an ifupdown hook (/etc/network/if-up.d, if-post-down.d) and/or a
udev rule (RUN+="/usr/local/bin/pi3g-netconf"). Each invocation:

1. Works out which handled interface changed and whether it came or went.
   Anything else exits 0 without touching the system.
2. Takes an exclusive lock so overlapping hotplug events run one at a time.
3. Uncomments (or comments out) the TransPort/DNSPort lines for the
   interface's subnet in torrc.
4. Restarts isc-dhcp-server. For the wireless AP interface hostapd is
   restarted too and the address is configured by hand, since hostapd is
   finicky about an interface that already has one.

Exit codes:
- 0: Irrelevant event, or the event was handled.
- 1: Bad config, lock failure, or torrc could not be updated.

Service and ip failures are logged but don't change the exit code.
"""

import os
import sys
import time
from collections.abc import Mapping

import structlog

from netconf import __version__
from netconf.core import lock
from netconf.core import torrc
from netconf.core.commands import CommandResult, Tools
from netconf.core.config import Config, configure_logging, load_config
from netconf.core.event import Action, Event, resolve_action, resolve_interface

log = structlog.get_logger()


def version(config: Config) -> str:
    return __version__ + "+debug" if config.debug else __version__


def _check(result: CommandResult, step: str) -> None:
    """Log a failed best-effort step and carry on."""
    if not result.ok:
        log.warning(
            "step failed",
            step=step,
            returncode=result.returncode,
            output=result.output,
        )


def restart_services(event: Event, config: Config) -> None:
    """Cycle the DHCP server, and hostapd plus the interface address for wireless."""
    tools = Tools(config.service_bin, config.ip_bin, config.network)
    iface = event.interface

    _check(tools.stop_service(config.dhcp_service), f"stop {config.dhcp_service}")

    if iface.wireless:
        # reset to unconfigured state
        _check(tools.stop_service(config.ap_service), f"stop {config.ap_service}")
        _check(tools.ip_down(iface.name), f"down {iface.name}")
        _check(tools.ip_flush(iface.name), f"flush {iface.name}")
        if event.action is Action.START:
            _check(tools.start_service(config.ap_service), f"start {config.ap_service}")
            time.sleep(config.settle_delay)
            _check(tools.ip_addr(iface.name, iface.subnet), f"addr {iface.name}")
            _check(tools.ip_up(iface.name), f"up {iface.name}")

    _check(tools.start_service(config.dhcp_service), f"start {config.dhcp_service}")


def handle_event(environ: Mapping[str, str], config: Config) -> int:
    """Handle one hotplug event. Returns the process exit code."""
    log.info("device plugged in, running net configurator", version=version(config))

    iface = resolve_interface(environ, config.interfaces)
    if iface is None:
        log.info("not our interface")
        return 0

    action = resolve_action(environ)
    if action is None:
        log.info("unknown action", interface=iface.name)
        return 0

    log.info(
        "interface matched",
        interface=iface.name,
        subnet=iface.subnet,
        wireless=iface.wireless,
        source=iface.source or "built-in",
    )

    event = Event(iface, action)
    try:
        with lock.acquire(config.lock):
            try:
                torrc.apply(
                    config.torrc,
                    iface.subnet,
                    action,
                    network=config.network,
                    trans_port=config.trans_port,
                    dns_port=config.dns_port,
                )
            except OSError as e:
                log.error("torrc update failed", torrc=str(config.torrc), error=str(e))
                return 1
            restart_services(event, config)
    except OSError as e:
        log.error("lock failed", lock=str(config.lock), error=str(e))
        return 1

    log.info("done", interface=iface.name, action=action.value)
    return 0


# === Entry point ===


def main() -> None:
    try:
        config = load_config()
    except (OSError, ValueError) as e:
        print(f"pi3g-netconf: {e}", file=sys.stderr)
        sys.exit(1)
    configure_logging(config)
    sys.exit(handle_event(os.environ, config))


if __name__ == "__main__":
    main()
