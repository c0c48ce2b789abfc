"""ICMP echo (ping) requests over a raw socket, with round-trip statistics."""

from __future__ import annotations

import math
import os
import select
import socket
import sys
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from socketlab.packets import (
    ICMP_TYPE_ECHO_REPLY,
    ICMP_TYPE_ECHO_REQUEST,
    IcmpEcho,
    Ipv4Header,
)
from socketlab.sockets import make_sockaddr
from socketlab.util import timestamp_us

MAGIC = b"0123456789abcdefAB"
DEFAULT_COUNT = 4

_RECV_TIMEOUT = 1.0
_RECV_BUF_SIZE = 512


@dataclass
class RttStats:
    """Running mean and squared deviation of RTT samples (Welford's method)."""

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0

    def add(self, rtt: float) -> None:
        x = float(rtt)
        d1 = x - self.mean
        self.count += 1
        self.mean += d1 / self.count
        self.m2 += d1 * (x - self.mean)

    @property
    def mdev(self) -> float:
        """Sample standard deviation; 0.0 with fewer than two samples."""
        if self.count < 2:
            return 0.0
        return math.sqrt(self.m2 / (self.count - 1))


@dataclass
class PingStats:
    """Counters and RTT figures of one ping run; RTTs are in microseconds."""

    start: int = field(default_factory=timestamp_us)
    sent: int = 0
    recv: int = 0
    lost: int = 0
    min_rtt: int = 0
    max_rtt: int = 0
    total_rtt: int = 0
    rtt: RttStats = field(default_factory=RttStats)

    def record(self, rtt: int) -> None:
        """Add one round-trip time to the min/max/avg/mdev figures."""
        if self.min_rtt == 0:
            self.min_rtt = rtt
        self.total_rtt += rtt
        self.min_rtt = min(self.min_rtt, rtt)
        self.max_rtt = max(self.max_rtt, rtt)
        self.rtt.add(rtt)

    def summary(self, host: str) -> Optional[str]:
        """The closing statistics text, or None if nothing was sent."""
        if self.sent == 0:
            return None
        elapsed_ms = (timestamp_us() - self.start) // 1000
        loss = 100.0 * self.lost / self.sent
        return (
            f"--- {host} ping statistics ---\n"
            f"tx={self.sent}, rx={self.recv}, loss={self.lost} ({loss:.1f}%), "
            f"ping use time {elapsed_ms} ms\n"
            f"rtt min/avg/max/mdev = {self.min_rtt / 1000.0:.3f}/"
            f"{self.rtt.mean / 1000.0:.3f}/{self.max_rtt / 1000.0:.3f}/"
            f"{self.rtt.mdev / 1000.0:.3f} ms\n"
        )


def build_echo_request(identifier: int, sequence: int) -> bytes:
    """An ICMP echo request carrying the fixed payload, checksum filled in."""
    return IcmpEcho(
        ICMP_TYPE_ECHO_REQUEST,
        code=0,
        identifier=identifier & 0xFFFF,
        sequence=sequence & 0xFFFF,
        data=MAGIC,
    ).pack()


def parse_echo_reply(data: bytes) -> Tuple[Ipv4Header, IcmpEcho]:
    """Split a received IPv4 datagram into its header and ICMP message."""
    data = bytes(data)
    if len(data) < Ipv4Header.SIZE:
        raise ValueError("incomplete IPv4 header")
    ip_header = Ipv4Header.unpack(data)
    start = ip_header.header_len
    if start < Ipv4Header.SIZE or len(data) < start + IcmpEcho.HEADER_SIZE:
        raise ValueError("incomplete ICMP packet")
    end = start + IcmpEcho.HEADER_SIZE + len(MAGIC)
    return ip_header, IcmpEcho.unpack(data[start:end])


def _receive(sock: socket.socket) -> Tuple[str, int, Ipv4Header, IcmpEcho]:
    ready, _, _ = select.select([sock], [], [], _RECV_TIMEOUT)
    if not ready:
        raise TimeoutError("recv timeout")
    data, (address, _) = sock.recvfrom(_RECV_BUF_SIZE)
    received = timestamp_us()
    ip_header, icmp = parse_echo_reply(data)
    return address, received, ip_header, icmp


def ping(host: str, count: int = DEFAULT_COUNT) -> PingStats:
    """Send ``count`` echo requests to ``host`` and print each reply.

    Interrupting with Ctrl-C stops early; the statistics gathered so far are returned.
    """
    stats = PingStats()
    address = make_sockaddr(host, 0)
    identifier = os.getpid() & 0xFFFF
    with socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP) as sock:
        print(f"PING {host} ...")
        try:
            for seq in range(1, count + 1):
                start = timestamp_us()
                sock.sendto(build_echo_request(identifier, seq), address)
                stats.sent += 1
                try:
                    peer, end, ip_header, icmp = _receive(sock)
                except TimeoutError:
                    print(f"recv timeout, use: {(timestamp_us() - start) // 1000} ms")
                    continue
                except ValueError:
                    print("recv bad packet")
                    continue
                except OSError:
                    print("recv error")
                    continue
                stats.recv += 1
                rtt = end - start
                if icmp.icmp_type == ICMP_TYPE_ECHO_REPLY and icmp.code == 0:
                    stats.record(rtt)
                    print(
                        f"{len(MAGIC)} bytes from {peer}: seq={seq}, "
                        f"ttl={ip_header.ttl}, rtt={rtt / 1000.0:.3f} ms"
                    )
                else:
                    stats.lost += 1
        except KeyboardInterrupt:
            pass
    return stats


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Usage: ping <ip> [count]")
        return 1
    host = args[0]
    try:
        count = int(args[1]) if len(args) > 1 else DEFAULT_COUNT
    except ValueError:
        print("Usage: ping <ip> [count]")
        return 1
    try:
        stats = ping(host, count)
    except OSError as exc:
        print(f"socket() error: {exc}")
        return 1
    summary = stats.summary(host)
    if summary:
        print(summary, end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())