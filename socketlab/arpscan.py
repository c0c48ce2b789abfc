"""ARP scanning of an IPv4 subnet through a raw packet socket."""

from __future__ import annotations

import ipaddress
import socket
import sys
from typing import Iterator, Optional, Sequence, Tuple, Union

from socketlab.netif import bind_interface, interface_hwaddr, interface_ipaddr
from socketlab.packets import ARP_REPLY, ETH_TYPE_ARP, ArpMessage, arp_request
from socketlab.util import mac_ntoa

ARPHRD_ETHER = 1

_RETRIES = 3
_RECV_TIMEOUT = 3.0

Address = Union[str, bytes, int, ipaddress.IPv4Address]


def _packed(address: Address) -> bytes:
    if isinstance(address, (bytearray, memoryview)):
        address = bytes(address)
    return ipaddress.IPv4Address(address).packed


def create_mask(n: int) -> int:
    """The 32-bit netmask with the top ``n`` bits set."""
    if not 0 <= n <= 32:
        raise ValueError(f"prefix length out of range: {n}")
    return ~((1 << (32 - n)) - 1) & 0xFFFFFFFF


def scan_targets(ip: Address, prefix: int) -> Iterator[str]:
    """Host addresses of ``ip``'s subnet, skipping the network and broadcast ones."""
    mask = create_mask(prefix)
    network = int.from_bytes(_packed(ip), "big") & mask
    host_num = ~mask & 0xFFFFFFFF
    for i in range(1, host_num):
        yield str(ipaddress.IPv4Address(network | i))


def is_reply_for(msg: ArpMessage, local_ip: Address, local_mac: bytes,
                 target_ip: Address) -> bool:
    """True if ``msg`` answers this host's request for ``target_ip``."""
    return (
        msg.opcode == ARP_REPLY
        and msg.target_ip == _packed(local_ip)
        and msg.target_mac == bytes(local_mac)
        and msg.sender_ip == _packed(target_ip)
    )


def arping(sock: socket.socket, itf: str, target_ip: Address) -> int:
    """Broadcast an ARP request for ``target_ip`` out of ``itf``; returns bytes sent."""
    mac = interface_hwaddr(itf)
    local_ip = interface_ipaddr(itf)
    request = arp_request(mac, local_ip, target_ip)
    return sock.sendto(request.pack(), (itf, ETH_TYPE_ARP, 0, ARPHRD_ETHER, mac))


def scan(itf: str, ip: Address, prefix: int) -> Iterator[Tuple[str, str]]:
    """ARP every host of the subnet, yielding ``(ip, MAC)`` for each that answers."""
    local_mac = interface_hwaddr(itf)
    local_ip = interface_ipaddr(itf)
    with socket.socket(socket.AF_PACKET, socket.SOCK_RAW,
                       socket.htons(ETH_TYPE_ARP)) as sock:
        bind_interface(sock, itf)
        sock.settimeout(_RECV_TIMEOUT)
        for target in scan_targets(ip, prefix):
            print(f"==> send arp to {target}")
            for attempt in range(1, _RETRIES + 1):
                print(f"try {attempt}")
                arping(sock, itf, target)
                try:
                    data = sock.recv(ArpMessage.SIZE)
                except TimeoutError:
                    continue
                except OSError as exc:
                    print(f"recvfrom(): {exc}", file=sys.stderr)
                    continue
                try:
                    msg = ArpMessage.unpack(data)
                except ValueError:
                    continue
                if is_reply_for(msg, local_ip, local_mac, target):
                    yield (str(ipaddress.IPv4Address(msg.sender_ip)),
                           mac_ntoa(msg.sender_mac).upper())
                    break


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print("Usage: arp_scan <itf> <ip>/<subnet_mask>")
        return 0
    itf = args[0]
    ip, sep, prefix_text = args[1].partition("/")
    if not sep or not prefix_text.isdigit():
        print(f"Fatal: bad address `{args[1]}`, expected <ip>/<subnet_mask>", file=sys.stderr)
        return 1
    prefix = int(prefix_text)
    try:
        create_mask(prefix)
        _packed(ip)
    except ValueError as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return 1
    try:
        for found_ip, mac in scan(itf, ip, prefix):
            print(f"{found_ip} -> {mac}")
    except (OSError, ValueError) as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())