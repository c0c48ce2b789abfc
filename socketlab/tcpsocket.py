"""An IPv4 address value and a small owning wrapper around a TCP socket."""

from __future__ import annotations

import errno
import socket
from typing import Optional, Tuple

_ANY_ADDR = "0.0.0.0"


class InetAddr:
    """An IPv4 address and port; host names are resolved when set."""

    def __init__(self, host: Optional[str] = None, port: int = 0,
                 family: int = socket.AF_INET):
        self.family = family
        self.addr = host
        self.port = port

    @property
    def addr(self) -> str:
        return self._addr

    @addr.setter
    def addr(self, host: Optional[str]) -> None:
        if not host:
            self._addr = _ANY_ADDR
            return
        try:
            self._addr = socket.gethostbyname(host)
        except OSError as exc:
            raise OSError(f"Failed to resolve hostname {host!r}: {exc}") from exc

    @property
    def port(self) -> int:
        return self._port

    @port.setter
    def port(self, value: int) -> None:
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"port out of range: {value}")
        self._port = value

    def as_tuple(self) -> Tuple[str, int]:
        return (self._addr, self._port)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InetAddr):
            return NotImplemented
        return (self.family, self._addr, self._port) == (other.family, other._addr, other._port)

    def __hash__(self) -> int:
        return hash((self.family, self._addr, self._port))

    def __repr__(self) -> str:
        return f"InetAddr({self._addr!r}, {self._port})"

    def __str__(self) -> str:
        return f'InetAddr{{ addr = "{self._addr}", port = {self._port} }}'


def _wrap(exc: OSError, what: str) -> OSError:
    return OSError(exc.errno, f"{what}: {exc.strerror or exc}")


class TcpSocket:
    """Owns one TCP socket; closing is idempotent and happens on context exit."""

    def __init__(self, sock: Optional[socket.socket] = None,
                 addr: Optional[InetAddr] = None):
        self._sock = sock
        self.addr = addr if addr is not None else InetAddr()

    def _require(self) -> socket.socket:
        if self._sock is None:
            raise OSError(errno.EBADF, "socket is not open")
        return self._sock

    def open(self, host: Optional[str], port: int) -> None:
        """Create the socket with SO_REUSEADDR and bind it to ``host:port``."""
        self.close()
        addr = InetAddr(host, port)
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as exc:
            raise _wrap(exc, "Failed to create TCP socket") from exc
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(addr.as_tuple())
        except OSError as exc:
            sock.close()
            raise _wrap(exc, "Failed to bind addr") from exc
        self._sock = sock
        self.addr = addr

    def listen(self, backlog: int = 5) -> None:
        try:
            self._require().listen(backlog)
        except OSError as exc:
            raise _wrap(exc, "Failed to listen") from exc

    def accept(self) -> Tuple["TcpSocket", InetAddr]:
        """Accept a client; returns its socket and its address."""
        try:
            conn, (host, port) = self._require().accept()
        except BlockingIOError:
            raise
        except OSError as exc:
            raise _wrap(exc, "Failed to accept") from exc
        local_host, local_port = conn.getsockname()
        return TcpSocket(conn, InetAddr(local_host, local_port)), InetAddr(host, port)

    @property
    def local_addr(self) -> InetAddr:
        """The address the socket is actually bound to."""
        host, port = self._require().getsockname()
        return InetAddr(host, port)

    def read(self, nbytes: int) -> bytes:
        """Read at most ``nbytes``; an empty result means the peer closed."""
        if nbytes <= 0:
            raise ValueError("nbytes must be positive")
        return self._require().recv(nbytes)

    def write(self, data: bytes) -> int:
        """Write ``data`` once; returns the number of bytes sent."""
        return self._require().send(bytes(data))

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def set_nonblocking(self) -> None:
        self._require().setblocking(False)

    def fileno(self) -> int:
        return -1 if self._sock is None else self._sock.fileno()

    def __enter__(self) -> "TcpSocket":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __str__(self) -> str:
        return f"Socket{{ fd = {self.fileno()} }}"