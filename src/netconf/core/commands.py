"""Service and interface control via the service(8) and ip(8) tools."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass

import structlog

log = structlog.get_logger()

SERVICE_BIN = "/usr/sbin/service"
IP_BIN = "/bin/ip"


def shell_quote(s: str) -> str:
    """Quote a string for display as a shell word.

    Returns unquoted if no special chars, '' for empty strings.
    """
    if not s:
        return "''"
    if all(c.isalnum() or c in "-_./=@:" for c in s):
        return s
    return "'" + s.replace("'", "'\"'\"'") + "'"


def shell_join(argv: list[str] | tuple[str, ...]) -> str:
    return " ".join(shell_quote(a) for a in argv)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and combined stdout/stderr of a finished command."""

    argv: tuple[str, ...]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(argv: list[str], description: str) -> CommandResult:
    """Run argv, capturing combined output. Never raises for a failed command.

    Undecodable output bytes are replaced, not fatal.
    A binary that can't be executed is reported as exit status 127.
    """
    try:
        proc = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
        )
        result = CommandResult(tuple(argv), proc.returncode, proc.stdout)
    except OSError as e:
        result = CommandResult(tuple(argv), 127, str(e))
    log.debug(
        description,
        command=shell_join(argv),
        returncode=result.returncode,
        output=result.output,
    )
    return result


@dataclass(frozen=True)
class Tools:
    """Bound paths of the system tools the hook drives."""

    service_bin: str = SERVICE_BIN
    ip_bin: str = IP_BIN
    network: str = "192.168"

    # --- services (e.g. hostapd, isc-dhcp-server) ---

    def restart_service(self, service: str) -> CommandResult:
        return run_command([self.service_bin, service, "restart"], f"restarting {service}")

    def stop_service(self, service: str) -> CommandResult:
        return run_command([self.service_bin, service, "stop"], f"stopping {service}")

    def start_service(self, service: str) -> CommandResult:
        return run_command([self.service_bin, service, "start"], f"starting {service}")

    # --- interfaces ---

    def ip_addr(self, iface: str, subnet: str) -> CommandResult:
        """Assign <network>.<subnet>.1/24 to iface."""
        prefix = f"{self.network}.{subnet}"
        return run_command(
            [self.ip_bin, "addr", "add", f"{prefix}.1/24", "broadcast", f"{prefix}.255", "dev", iface],
            f"setting ip on {iface}({subnet})",
        )

    def ip_flush(self, iface: str) -> CommandResult:
        return run_command([self.ip_bin, "addr", "flush", "dev", iface], f"flushing addresses of {iface}")

    def ip_up(self, iface: str) -> CommandResult:
        return run_command([self.ip_bin, "link", "set", "up", iface], f"bringing {iface} up")

    def ip_down(self, iface: str) -> CommandResult:
        return run_command([self.ip_bin, "link", "set", "down", iface], f"bringing {iface} down")
