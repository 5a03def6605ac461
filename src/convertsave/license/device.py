"""Device identity: the MAC address of the primary network interface."""

from __future__ import annotations

import logging
import re
import socket
from pathlib import Path

from convertsave.core.platform import Platform, current_platform
from convertsave.core.subprocess_utils import run_command
from convertsave.exceptions import LicenseError
from convertsave.license.models import LicenseErrorKind

logger = logging.getLogger(__name__)

SYS_CLASS_NET = Path("/sys/class/net")

_VIRTUAL_PREFIXES = ("veth", "docker", "br-", "virbr")
_ZERO_MAC = "00:00:00:00:00:00"
_MAC_RE = re.compile(r"^([0-9A-F]{2}[:-]){5}[0-9A-F]{2}$", re.IGNORECASE)


def normalize_mac(mac: str) -> str:
    """Uppercase with colon separators."""
    return mac.strip().strip('"').replace("-", ":").upper()


def macs_equal(a: str, b: str) -> bool:
    return normalize_mac(a) == normalize_mac(b)


def _is_virtual(name: str) -> bool:
    return name == "lo" or name.startswith(_VIRTUAL_PREFIXES)


def linux_mac_address(net_dir: Path = SYS_CLASS_NET) -> str | None:
    """First usable MAC from /sys/class/net, in interface name order."""
    try:
        interfaces = sorted(net_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.debug("Cannot list %s: %s", net_dir, e)
        return None
    for iface in interfaces:
        if _is_virtual(iface.name):
            continue
        try:
            mac = normalize_mac((iface / "address").read_text(encoding="utf-8"))
        except OSError:
            continue
        if mac and mac != _ZERO_MAC and _MAC_RE.match(mac):
            return mac
    return None


def parse_ifconfig_ether(output: str) -> str | None:
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("ether "):
            parts = line.split()
            if len(parts) > 1:
                return normalize_mac(parts[1])
    return None


def parse_getmac_csv(output: str) -> str | None:
    """First MAC from ``getmac /fo csv /nh``."""
    for line in output.splitlines():
        first = line.split(",", 1)[0].strip().strip('"')
        if first and first != "N/A" and _MAC_RE.match(first):
            return normalize_mac(first)
    return None


def get_mac_address(platform: Platform | None = None) -> str:
    """MAC address of the primary interface, e.g. "AA:BB:CC:DD:EE:FF".

    Raises:
        LicenseError: If no usable interface is found.
    """
    plat = platform or current_platform()
    mac: str | None
    if plat.is_linux:
        mac = linux_mac_address()
    elif plat.is_macos:
        stdout, _, rc = run_command(["ifconfig", "en0"], timeout=10, platform=plat)
        mac = parse_ifconfig_ether(stdout) if rc == 0 else None
    else:
        stdout, _, rc = run_command(["getmac", "/fo", "csv", "/nh"], timeout=10, platform=plat)
        mac = parse_getmac_csv(stdout) if rc == 0 else None

    if mac is None:
        raise LicenseError("Could not determine MAC address", LicenseErrorKind.INVALID)
    return mac


def get_device_name() -> str:
    return socket.gethostname()
