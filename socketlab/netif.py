"""Network interface queries: hardware and IPv4 addresses, raw frame sending."""

from __future__ import annotations

import fcntl
import ipaddress
import socket
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from socketlab.util import mac_ntoa

SIOCGIFADDR = 0x8915
SIOCGIFNETMASK = 0x891B
SIOCGIFHWADDR = 0x8927
ETH_P_ALL = 0x0003

_IFNAMSIZ = 16
_IFREQ_SIZE = 40
_IF_INET6 = Path("/proc/net/if_inet6")

_AF_PACKET = getattr(socket, "AF_PACKET", 17)
_FAMILY_NAMES = {
    _AF_PACKET: "AF_PACKET",
    socket.AF_INET: "AF_INET",
    socket.AF_INET6: "AF_INET6",
}


def _check_name(itf: str) -> bytes:
    name = itf.encode()
    if not name or len(name) >= _IFNAMSIZ:
        raise ValueError(f"invalid interface name: {itf!r}")
    return name


def _ioctl(itf: str, request: int) -> bytes:
    ifreq = struct.pack(f"{_IFREQ_SIZE}s", _check_name(itf))
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        return fcntl.ioctl(sock.fileno(), request, ifreq)


def interface_hwaddr(itf: str) -> bytes:
    """The six-byte hardware (MAC) address of ``itf``."""
    result = _ioctl(itf, SIOCGIFHWADDR)
    return bytes(result[_IFNAMSIZ + 2:_IFNAMSIZ + 8])


def interface_ipaddr(itf: str) -> str:
    """The IPv4 address of ``itf`` in dotted form."""
    result = _ioctl(itf, SIOCGIFADDR)
    return socket.inet_ntoa(result[_IFNAMSIZ + 4:_IFNAMSIZ + 8])


def interface_netmask(itf: str) -> str:
    """The IPv4 subnet mask of ``itf`` in dotted form."""
    result = _ioctl(itf, SIOCGIFNETMASK)
    return socket.inet_ntoa(result[_IFNAMSIZ + 4:_IFNAMSIZ + 8])


def bind_interface(sock: socket.socket, itf: str) -> None:
    """Bind a packet socket to the interface ``itf``."""
    _check_name(itf)
    socket.if_nametoindex(itf)
    sock.bind((itf, 0))


def send_frame(itf: str, frame: bytes) -> int:
    """Send a complete link-layer frame out of ``itf``; returns bytes sent."""
    _check_name(itf)
    with socket.socket(_AF_PACKET, socket.SOCK_RAW, socket.htons(ETH_P_ALL)) as sock:
        bind_interface(sock, itf)
        return sock.send(bytes(frame))


@dataclass(frozen=True)
class InterfaceAddress:
    """One address of one interface."""

    name: str
    family: int
    address: Optional[str]

    @property
    def family_name(self) -> str:
        return _FAMILY_NAMES.get(self.family, "???")

    def __str__(self) -> str:
        text = f"{self.name:<8} {self.family_name} ({self.family})"
        if self.family in (socket.AF_INET, socket.AF_INET6) and self.address:
            text += f"\n\t\taddr: [{self.address}]"
        return text


def _ipv6_addresses() -> Dict[str, List[str]]:
    found: Dict[str, List[str]] = {}
    try:
        lines = _IF_INET6.read_text().splitlines()
    except OSError:
        return found
    for line in lines:
        fields = line.split()
        if len(fields) < 6 or len(fields[0]) != 32:
            continue
        address = ipaddress.IPv6Address(bytes.fromhex(fields[0]))
        found.setdefault(fields[5], []).append(str(address))
    return found


def list_interfaces() -> List[InterfaceAddress]:
    """Every interface with its link-layer, IPv4 and IPv6 addresses."""
    ipv6 = _ipv6_addresses()
    entries: List[InterfaceAddress] = []
    for _, name in socket.if_nameindex():
        try:
            mac: Optional[str] = mac_ntoa(interface_hwaddr(name))
        except (OSError, ValueError):
            mac = None
        entries.append(InterfaceAddress(name, _AF_PACKET, mac))
        try:
            entries.append(InterfaceAddress(name, socket.AF_INET, interface_ipaddr(name)))
        except (OSError, ValueError):
            pass
        entries.extend(
            InterfaceAddress(name, socket.AF_INET6, addr) for addr in ipv6.get(name, [])
        )
    return entries