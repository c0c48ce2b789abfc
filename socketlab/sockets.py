"""Thin helpers for creating, connecting and tuning IPv4 sockets."""

from __future__ import annotations

import socket
import struct
from typing import Optional, Tuple

_TCP_ESTABLISHED = 1
_TIMEVAL = struct.Struct("@ll")
_ANY_ADDR = "0.0.0.0"


def make_sockaddr(host: Optional[str], port: int) -> Tuple[str, int]:
    """Resolve ``host`` to an IPv4 ``(address, port)`` pair.

    ``None`` stands for any local address.
    """
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port out of range: {port}")
    if host is None:
        return (_ANY_ADDR, port)
    try:
        address = socket.gethostbyname(host)
    except OSError as exc:
        raise OSError(f"addr `{host}` error: {exc}") from exc
    return (address, port)


def tcp_server(port: int, backlog: int = 5) -> socket.socket:
    """A listening TCP socket on all local addresses, with SO_REUSEADDR set."""
    address = make_sockaddr(None, port)
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(address)
        sock.listen(backlog)
    except BaseException:
        sock.close()
        raise
    return sock


def tcp_connect(host: str, port: int) -> socket.socket:
    """A TCP socket connected to ``host:port``."""
    address = make_sockaddr(host, port)
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.connect(address)
    except BaseException:
        sock.close()
        raise
    return sock


def tcp_connected(sock: socket.socket) -> bool:
    """True if ``sock`` is a TCP socket in the established state."""
    tcp_info = getattr(socket, "TCP_INFO", None)
    try:
        if tcp_info is not None:
            info = sock.getsockopt(socket.IPPROTO_TCP, tcp_info, 1)
            return bool(info) and info[0] == _TCP_ESTABLISHED
        sock.getpeername()
        return True
    except OSError:
        return False


def set_broadcast(sock: socket.socket) -> None:
    """Allow ``sock`` to send to broadcast addresses."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)


def set_recv_timeout(sock: socket.socket, sec: int, usec: int = 0) -> None:
    """Set the kernel receive timeout (SO_RCVTIMEO)."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVTIMEO, _TIMEVAL.pack(sec, usec))


def set_send_timeout(sock: socket.socket, sec: int, usec: int = 0) -> None:
    """Set the kernel send timeout (SO_SNDTIMEO)."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDTIMEO, _TIMEVAL.pack(sec, usec))