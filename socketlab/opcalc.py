"""A calculator service: the client sends operands and an operator, the server answers."""

from __future__ import annotations

import socket
import struct
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from socketlab.sockets import tcp_connect, tcp_server

BUF_SIZE = 1024
MAX_OPERANDS = 255
OPERATORS = ("+", "-", "*")

_INT = struct.Struct("<i")

Listener = Union[int, socket.socket]


def _wrap32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def calc(operands: Sequence[int], op: str) -> int:
    """Fold the operands with ``op`` ('+', '-' or '*') in 32-bit signed arithmetic."""
    if op not in OPERATORS:
        raise ValueError(f"unknown operator: {op!r}")
    if not operands:
        raise ValueError("no operands")
    result = operands[0]
    for value in operands[1:]:
        if op == "+":
            result += value
        elif op == "-":
            result -= value
        else:
            result *= value
        result = _wrap32(result)
    return _wrap32(result)


def encode_request(operands: Sequence[int], op: str) -> bytes:
    """Count byte, each operand as a 32-bit integer, then the operator byte."""
    if len(operands) > MAX_OPERANDS:
        raise ValueError(f"at most {MAX_OPERANDS} operands")
    if len(op) != 1 or not op.isascii():
        raise ValueError(f"operator must be one ASCII character: {op!r}")
    body = b"".join(_INT.pack(_wrap32(value)) for value in operands)
    return bytes([len(operands)]) + body + op.encode("ascii")


def decode_request(data: bytes) -> Tuple[List[int], str]:
    """Parse a request into its operands and operator."""
    data = bytes(data)
    if not data:
        raise ValueError("empty request")
    count = data[0]
    end = 1 + count * _INT.size
    if len(data) < end + 1:
        raise ValueError("truncated request")
    operands = [value for (value,) in _INT.iter_unpack(data[1:end])]
    return operands, chr(data[end])


def _recv_exact(sock: socket.socket, n: int) -> bytes:
    data = bytearray()
    while len(data) < n:
        chunk = sock.recv(min(BUF_SIZE, n - len(data)))
        if not chunk:
            raise ConnectionError("connection closed by peer")
        data += chunk
    return bytes(data)


@contextmanager
def _tcp_listener(port: Listener) -> Iterator[socket.socket]:
    if isinstance(port, socket.socket):
        yield port
    else:
        with tcp_server(port) as sock:
            yield sock


def serve(port: Listener, clients: int = 5) -> List[int]:
    """Answer ``clients`` requests, one connection each; returns the results sent.

    ``port`` is a port number or an already listening socket.
    """
    results: List[int] = []
    with _tcp_listener(port) as listener:
        for _ in range(clients):
            conn, _ = listener.accept()
            with conn:
                try:
                    head = _recv_exact(conn, 1)
                    body = _recv_exact(conn, head[0] * _INT.size + 1)
                    operands, op = decode_request(head + body)
                    result = calc(operands, op)
                except (OSError, ValueError) as exc:
                    print(f"Error: bad request: {exc}", file=sys.stderr)
                    continue
                conn.sendall(_INT.pack(result))
                results.append(result)
    return results


def request(host: str, port: int, operands: Sequence[int], op: str) -> int:
    """Ask the server at ``host:port`` to compute; returns its answer."""
    message = encode_request(operands, op)
    with tcp_connect(host, port) as sock:
        sock.sendall(message)
        (result,) = _INT.unpack(_recv_exact(sock, _INT.size))
    return result


def _prompt_request() -> Tuple[List[int], str]:
    count = int(input("Operand count: "))
    operands = [int(input(f"Operand {i}: ")) for i in range(1, count + 1)]
    op = input("Operator: ").strip()
    return operands, op


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) == 2 and args[0] == "server" and args[1].isdigit():
        try:
            serve(int(args[1]))
        except KeyboardInterrupt:
            return 0
        except OSError as exc:
            print(f"Fatal: {exc}", file=sys.stderr)
            return 1
        return 0
    if len(args) == 3 and args[0] == "client" and args[2].isdigit():
        try:
            operands, op = _prompt_request()
            result = request(args[1], int(args[2]), operands, op)
        except (ValueError, EOFError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        except OSError as exc:
            print(f"Fatal: {exc}", file=sys.stderr)
            return 1
        print("Connected...")
        print(f"Operation result: {result}")
        return 0
    print("Usage: opcalc server <port> | opcalc client <ip> <port>")
    return 1


if __name__ == "__main__":
    sys.exit(main())