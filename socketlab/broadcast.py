"""Sending and receiving UDP broadcast messages."""

from __future__ import annotations

import socket
import sys
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence, Tuple, Union

from socketlab.sockets import make_sockaddr, set_broadcast
from socketlab.util import hexdump

BROADCAST_PORT = 8888
BROADCAST_ADDR = "255.255.255.255"
BUF_SIZE = 1024

Handler = Callable[[bytes, Tuple[str, int]], Optional[bool]]


def send_broadcast(message: Union[str, bytes], port: int = BROADCAST_PORT) -> int:
    """Broadcast ``message`` to ``port`` on the local network; returns bytes sent."""
    data = message.encode() if isinstance(message, str) else bytes(message)
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        set_broadcast(sock)
        sent = sock.sendto(data, (BROADCAST_ADDR, port))
    finally:
        sock.close()
    print(f"Info: send broadcast message: {data.decode(errors='replace')}", file=sys.stderr)
    return sent


def _print_message(data: bytes, addr: Tuple[str, int]) -> None:
    hexdump(data, "recvfrom")
    text = data.split(b"\0", 1)[0].decode(errors="replace")
    print(f"Received broadcast message: {text}")


@contextmanager
def _listener(port: Union[int, socket.socket]) -> Iterator[socket.socket]:
    if isinstance(port, socket.socket):
        yield port
    else:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            set_broadcast(sock)
            sock.bind(make_sockaddr(None, port))
            yield sock


def listen_broadcast(port: Union[int, socket.socket] = BROADCAST_PORT,
                     handler: Optional[Handler] = None) -> int:
    """Receive datagrams and pass each to ``handler(data, addr)``.

    Stops when the handler returns a true value and returns the number of
    datagrams received. Without a handler each message is dumped to stdout.
    """
    handle = handler if handler is not None else _print_message
    received = 0
    with _listener(port) as sock:
        while True:
            data, addr = sock.recvfrom(BUF_SIZE)
            received += 1
            if handle(data, addr):
                return received


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        if len(args) == 2 and args[0] == "send":
            send_broadcast(args[1])
            return 0
        if len(args) == 1 and args[0] == "listen":
            listen_broadcast()
            return 0
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return 1
    print("Usage: broadcast send <message> | broadcast listen")
    return 1


if __name__ == "__main__":
    sys.exit(main())