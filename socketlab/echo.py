"""Echo servers (iterative, multiplexed, threaded, forking, UDP) and their clients."""

from __future__ import annotations

import argparse
import os
import selectors
import signal
import socket
import sys
import threading
from contextlib import contextmanager
from typing import IO, Iterable, Iterator, List, Optional, Sequence, Union

from socketlab.sockets import make_sockaddr, tcp_connect, tcp_server
from socketlab.tcpsocket import InetAddr

BUF_SIZE = 1024
SELECT_BUF_SIZE = 64
UDP_BUF_SIZE = 64
DEFAULT_PORT = 9000
DEFAULT_UDP_HOST = "127.0.0.1"
PROMPT = "Input message(Q to quit): "
_SELECT_TIMEOUT = 5.0

Listener = Union[int, socket.socket]


@contextmanager
def _tcp_listener(port: Listener) -> Iterator[socket.socket]:
    """Use a listening socket handed in, or open (and later close) one on ``port``."""
    if isinstance(port, socket.socket):
        yield port
    else:
        with tcp_server(port) as sock:
            yield sock


@contextmanager
def _udp_socket(port: Listener) -> Iterator[socket.socket]:
    if isinstance(port, socket.socket):
        yield port
    else:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.bind(make_sockaddr(None, port))
            yield sock


def _recv_upto(sock: socket.socket, n: int) -> bytes:
    """Read until ``n`` bytes arrived or the peer closed."""
    data = bytearray()
    while len(data) < n:
        chunk = sock.recv(min(BUF_SIZE, n - len(data)))
        if not chunk:
            break
        data += chunk
    return bytes(data)


def echo_session(conn: socket.socket) -> int:
    """Send back everything read from ``conn`` until end of stream; returns bytes echoed."""
    total = 0
    while True:
        data = conn.recv(BUF_SIZE)
        if not data:
            return total
        conn.sendall(data)
        total += len(data)


def serve_iterative(port: Listener, max_clients: int = 5) -> int:
    """Serve ``max_clients`` clients one after another; returns how many were served.

    ``port`` is a port number or an already listening socket.
    """
    with _tcp_listener(port) as listener:
        for i in range(1, max_clients + 1):
            conn, _ = listener.accept()
            print(f"Connected client {i}")
            with conn:
                echo_session(conn)
    return max_clients


def serve_multiplexed(port: Listener) -> None:
    """Serve all clients from one thread, waiting on readiness with a selector."""
    with _tcp_listener(port) as listener, selectors.DefaultSelector() as selector:
        selector.register(listener, selectors.EVENT_READ)
        print(f"Server Starting at {listener.getsockname()[1]}...")
        try:
            while True:
                for key, _ in selector.select(timeout=_SELECT_TIMEOUT):
                    sock = key.fileobj
                    if sock is listener:
                        conn, (host, _) = listener.accept()
                        selector.register(conn, selectors.EVENT_READ)
                        print(f"Got client: fd = {conn.fileno()}, addr = {host}")
                        continue
                    try:
                        data = sock.recv(SELECT_BUF_SIZE)
                    except OSError:
                        data = b""
                    if not data:
                        fd = sock.fileno()
                        selector.unregister(sock)
                        sock.close()
                        print(f"closed client: {fd}")
                    else:
                        print(f"Got Message: {data.decode(errors='replace')}")
                        sock.sendall(data)
        finally:
            for key in list(selector.get_map().values()):
                if key.fileobj is not listener:
                    key.fileobj.close()


def _threaded_session(conn: socket.socket, addr: InetAddr) -> None:
    with conn:
        try:
            echo_session(conn)
        except OSError as exc:
            print(f"Client = {addr} error in read: {exc}")
        else:
            print(f"Client = {addr} closed")


def serve_threaded(port: Listener = DEFAULT_PORT) -> None:
    """Serve each client in its own thread."""
    with _tcp_listener(port) as listener:
        host, bound = listener.getsockname()
        print(f"Server starting at {InetAddr(host, bound)}")
        while True:
            conn, (peer, peer_port) = listener.accept()
            addr = InetAddr(peer, peer_port)
            print(f"Got client: addr = {addr}, fd = {conn.fileno()}")
            threading.Thread(target=_threaded_session, args=(conn, addr), daemon=True).start()


def _reap_children(signum: Optional[int] = None, frame: object = None) -> None:
    while True:
        try:
            pid, status = os.waitpid(-1, os.WNOHANG)
        except ChildProcessError:
            return
        if pid == 0:
            return
        if os.WIFEXITED(status):
            print(f"Child process {pid} exited with status {os.WEXITSTATUS(status)}")


def serve_forking(port: Listener) -> None:
    """Serve each client in a forked child process."""
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGCHLD, _reap_children)
    with _tcp_listener(port) as listener:
        while True:
            try:
                conn, (host, peer_port) = listener.accept()
            except OSError as exc:
                print(f"Error: accept: {exc}", file=sys.stderr)
                continue
            print(f"Connected client {host}:{peer_port}")
            pid = os.fork()
            if pid == 0:
                code = 0
                try:
                    listener.close()
                    with conn:
                        echo_session(conn)
                except OSError:
                    code = 1
                finally:
                    os._exit(code)
            conn.close()
            _reap_children()


def serve_udp(port: Listener = DEFAULT_PORT) -> None:
    """Send every datagram (cut to 64 bytes) back to its sender."""
    with _udp_socket(port) as sock:
        while True:
            data, addr = sock.recvfrom(UDP_BUF_SIZE)
            print(f"Received message: {data.decode(errors='replace')}")
            sock.sendto(data, addr)


def _messages(lines: Optional[Iterable[str]], output: IO[str]) -> Iterator[str]:
    """Messages typed by the user, stopping at end of input or at ``q``/``Q``."""
    source = iter(sys.stdin if lines is None else lines)
    while True:
        print(PROMPT, end="", file=output, flush=True)
        line = next(source, None)
        if line is None or line == "":
            return
        message = line[:-1] if line.endswith("\n") else line
        if not message:
            continue
        if message in ("q", "Q"):
            return
        yield message


def echo_client(host: str, port: int, lines: Optional[Iterable[str]] = None,
                output: Optional[IO[str]] = None) -> List[str]:
    """Send each line to a TCP echo server and print its answers; returns them."""
    out = output if output is not None else sys.stdout
    replies: List[str] = []
    with tcp_connect(host, port) as sock:
        print("Connected...", file=out)
        for message in _messages(lines, out):
            data = message.encode()
            sock.sendall(data)
            reply = _recv_upto(sock, len(data)).decode(errors="replace")
            print(f"Message from server: {reply}", file=out)
            replies.append(reply)
    return replies


def udp_echo_client(host: str = DEFAULT_UDP_HOST, port: int = DEFAULT_PORT,
                    lines: Optional[Iterable[str]] = None,
                    output: Optional[IO[str]] = None) -> List[str]:
    """Send each line as a datagram to a UDP echo server; returns the answers."""
    out = output if output is not None else sys.stdout
    address = make_sockaddr(host, port)
    replies: List[str] = []
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        for message in _messages(lines, out):
            sock.sendto(message.encode(), address)
            data, _ = sock.recvfrom(UDP_BUF_SIZE)
            reply = data.decode(errors="replace")
            print(f"Message from server: {reply}", file=out)
            replies.append(reply)
    return replies


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="echo", description="Echo servers and clients.")
    sub = parser.add_subparsers(dest="mode", required=True)
    server = sub.add_parser("server", help="serve clients one after another")
    server.add_argument("port", type=int)
    server.add_argument("--clients", type=int, default=5)
    sub.add_parser("select", help="serve clients with a selector").add_argument("port", type=int)
    sub.add_parser("thread", help="a thread per client").add_argument(
        "port", type=int, nargs="?", default=DEFAULT_PORT)
    sub.add_parser("fork", help="a process per client").add_argument("port", type=int)
    sub.add_parser("udp-server", help="UDP echo server").add_argument(
        "port", type=int, nargs="?", default=DEFAULT_PORT)
    client = sub.add_parser("client", help="TCP echo client")
    client.add_argument("host")
    client.add_argument("port", type=int)
    udp_client = sub.add_parser("udp-client", help="UDP echo client")
    udp_client.add_argument("host", nargs="?", default=DEFAULT_UDP_HOST)
    udp_client.add_argument("port", type=int, nargs="?", default=DEFAULT_PORT)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parser().parse_args(sys.argv[1:] if argv is None else list(argv))
    try:
        if args.mode == "server":
            serve_iterative(args.port, args.clients)
        elif args.mode == "select":
            serve_multiplexed(args.port)
        elif args.mode == "thread":
            serve_threaded(args.port)
        elif args.mode == "fork":
            serve_forking(args.port)
        elif args.mode == "udp-server":
            serve_udp(args.port)
        elif args.mode == "client":
            echo_client(args.host, args.port)
        else:
            udp_echo_client(args.host, args.port)
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())