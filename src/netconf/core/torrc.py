"""Toggle Tor's per-subnet TransPort/DNSPort lines.

Each handled subnet has two lines in torrc that are either commented out
or active, and only the first character differs between the two forms:

    #TransPort 192.168.42.1:9040      unbound
     TransPort 192.168.42.1:9040      bound
"""

from __future__ import annotations

from pathlib import Path

import structlog

from netconf.core.event import Action

log = structlog.get_logger()

COMMENTED = "#"
ACTIVE = " "

DEFAULT_NETWORK = "192.168"
DEFAULT_TRANS_PORT = 9040
DEFAULT_DNS_PORT = 5353


def subnet_lines(
    subnet: str,
    network: str = DEFAULT_NETWORK,
    trans_port: int = DEFAULT_TRANS_PORT,
    dns_port: int = DEFAULT_DNS_PORT,
) -> tuple[str, str]:
    """Return the TransPort and DNSPort lines for a subnet, without prefix."""
    address = f"{network}.{subnet}.1"
    return (f"TransPort {address}:{trans_port}", f"DNSPort {address}:{dns_port}")


def _toggle(text: str, lines: tuple[str, ...], old: str, new: str) -> str:
    for line in lines:
        text = text.replace(old + line, new + line, 1)
    return text


def bind_subnet(text: str, subnet: str, **kwargs) -> str:
    """Uncomment the subnet's lines so Tor listens on it."""
    return _toggle(text, subnet_lines(subnet, **kwargs), COMMENTED, ACTIVE)


def unbind_subnet(text: str, subnet: str, **kwargs) -> str:
    """Comment out the subnet's lines so Tor stops listening on it."""
    return _toggle(text, subnet_lines(subnet, **kwargs), ACTIVE, COMMENTED)


# Bytes outside UTF-8 (e.g. a Latin-1 comment) and CRLF line ends survive a
# rewrite untouched.
_ENCODING = {"encoding": "utf-8", "errors": "surrogateescape", "newline": ""}


def _read(path: Path) -> str:
    with open(path, **_ENCODING) as f:
        return f.read()


def _write(path: Path, text: str) -> None:
    with open(path, "w", **_ENCODING) as f:
        f.write(text)


def apply(path: Path, subnet: str, action: Action, **kwargs) -> bool:
    """Bind (START) or unbind (STOP) a subnet in the torrc at path.

    The file is rewritten in place only when something changed. Returns
    whether it was. Raises OSError if the file can't be read or written.
    """
    log.info("configuring", subnet=subnet, action=action.value, torrc=str(path))
    text = _read(path)

    for line in subnet_lines(subnet, **kwargs):
        if COMMENTED + line not in text and ACTIVE + line not in text:
            log.warning("torrc line not found", line=line, torrc=str(path))

    if action is Action.START:
        updated = bind_subnet(text, subnet, **kwargs)
    else:
        updated = unbind_subnet(text, subnet, **kwargs)

    if updated == text:
        log.info("torrc unchanged", subnet=subnet)
        return False
    _write(path, updated)
    return True
