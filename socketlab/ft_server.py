"""File transfer server: one thread per client, each with its own working directory."""

from __future__ import annotations

import errno
import os
import socket
import sys
import threading
from pathlib import Path
from typing import Optional, Sequence, Union

from socketlab.ft_protocol import (
    BUF_SIZE,
    PUT_HEADER,
    REQUEST_SIZE,
    Request,
    decode_put_header,
    encode_get_header,
)
from socketlab.sockets import tcp_server


def _recv_exact(sock: socket.socket, n: int) -> bytes:
    data = bytearray()
    while len(data) < n:
        chunk = sock.recv(n - len(data))
        if not chunk:
            raise ConnectionError("connection closed by peer")
        data += chunk
    return bytes(data)


def _reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _first_token(args: str) -> str:
    return next((t for t in args.split(" ") if t), "")


class FtSession:
    """Serves the requests of one connected client."""

    def __init__(self, conn: socket.socket,
                 cwd: Optional[Union[str, "os.PathLike[str]"]] = None):
        self.conn = conn
        self.cwd = Path(cwd if cwd is not None else os.getcwd()).resolve()

    def _resolve(self, path: str) -> Path:
        return self.cwd / path

    def _send_text(self, text: str) -> None:
        if text:
            self.conn.sendall(text.encode("utf-8", errors="surrogateescape"))

    def _end(self) -> None:
        self.conn.sendall(bytes([Request.END.byte]))

    def _read_args(self) -> str:
        raw = _recv_exact(self.conn, REQUEST_SIZE - 1)
        return raw.split(b"\0", 1)[0].decode("utf-8", errors="surrogateescape")

    def handle(self, request: Request) -> bool:
        """Read the rest of ``request`` and answer it; False once the client exits."""
        if request is Request.PWD:
            self._pwd()
            return True
        if request is Request.PUT:
            self._put()
            return True
        args = self._read_args()
        print(f"args = `{args}`")
        if request is Request.LS:
            self._ls(args)
        elif request is Request.CD:
            self._cd(args)
        elif request is Request.GET:
            self._get(args)
        elif request is Request.EXIT:
            return False
        return True

    def _ls(self, args: str) -> None:
        path = _first_token(args) or "."
        try:
            with os.scandir(self._resolve(path)) as entries:
                names = sorted(e.name for e in entries if not e.name.startswith("."))
        except OSError as exc:
            self._send_text(f"open dir `{path}` failed: {_reason(exc)}")
            self._end()
            return
        self._send_text("".join(f"{name}\n" for name in names))
        self._end()

    def _pwd(self) -> None:
        self._send_text(str(self.cwd))
        self._end()

    def _cd(self, args: str) -> None:
        path = _first_token(args) or "."
        target = self._resolve(path)
        if not target.exists():
            code = errno.ENOENT
        elif not target.is_dir():
            code = errno.ENOTDIR
        elif not os.access(target, os.X_OK):
            code = errno.EACCES
        else:
            code = 0
        if code:
            self._send_text(f"cd `{path}` failed: {os.strerror(code)}\n")
        else:
            self.cwd = target.resolve()
        self._pwd()

    def _get(self, args: str) -> None:
        filename = _first_token(args)
        try:
            if not filename:
                raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT))
            handle = open(self._resolve(filename), "rb")
        except OSError as exc:
            message = f"get `{filename}` failed: {_reason(exc)}"
            self.conn.sendall(bytes([Request.ERROR.byte]) + message.encode())
            return
        with handle:
            size = os.fstat(handle.fileno()).st_size
            self.conn.sendall(encode_get_header(size))
            print(f"file: {filename}, size: {size}")
            while chunk := handle.read(BUF_SIZE):
                self.conn.sendall(chunk)

    def _put(self) -> None:
        head = bytes([Request.PUT.byte]) + _recv_exact(self.conn, PUT_HEADER.size - 1)
        name_len = PUT_HEADER.unpack(head)[2]
        filename, size, _ = decode_put_header(head + _recv_exact(self.conn, name_len))
        print(f"file: {filename}, size: {size}")
        remaining = size
        with open(self._resolve(filename), "wb") as out:
            while remaining:
                chunk = self.conn.recv(min(BUF_SIZE, remaining))
                if not chunk:
                    raise ConnectionError("connection closed during upload")
                out.write(chunk)
                remaining -= len(chunk)
        self._end()

    def run(self) -> None:
        """Serve requests until the client exits or disconnects, then close."""
        with self.conn:
            fd = self.conn.fileno()
            while True:
                try:
                    first = self.conn.recv(1)
                except OSError:
                    return
                if not first:
                    return
                try:
                    request = Request.from_byte(first[0])
                except ValueError:
                    continue
                print(f"Got {request.name} from fd [{fd}]")
                try:
                    if not self.handle(request):
                        return
                except (OSError, ValueError) as exc:
                    print(f"Error: session fd [{fd}]: {exc}", file=sys.stderr)
                    return


def serve(port: int) -> None:
    """Accept clients forever, serving each in its own thread."""
    with tcp_server(port) as listener:
        while True:
            conn, (host, _) = listener.accept()
            print(f"Got fd = {conn.fileno()}, addr = {host}")
            worker = threading.Thread(target=FtSession(conn).run, daemon=True)
            worker.start()
            print(f"thread [{worker.ident}] create successful")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1 or not args[0].isdigit():
        print("Usage: ft-server <port>")
        return 1
    port = int(args[0])
    print(f"Server starting at {port}...")
    try:
        serve(port)
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"Fatal: server() error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())