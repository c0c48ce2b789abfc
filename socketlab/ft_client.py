"""Interactive file transfer client."""

from __future__ import annotations

import os
import socket
import sys
from pathlib import Path
from typing import IO, List, Optional, Sequence, Union

from socketlab.ft_protocol import (
    BUF_SIZE,
    GET_HEADER,
    REQUEST_SIZE,
    Request,
    decode_get_header,
    encode_put_header,
    tcp_state_name,
)
from socketlab.minish import ANSI_FG_RED, ANSI_NONE, Command, Minish
from socketlab.sockets import tcp_connect, tcp_connected

PROMPT = "ft> "


class _Quit(Exception):
    """Raised by the exit command to leave the shell."""


def _request(kind: Request, args: Optional[str] = None) -> bytes:
    payload = args.encode("utf-8", errors="surrogateescape") if args else b""
    return (bytes([kind.byte]) + payload[:REQUEST_SIZE - 2]).ljust(REQUEST_SIZE, b"\0")


class FtClient:
    """A connection to a file transfer server; files are read and written in ``local_dir``."""

    def __init__(self, local_dir: Optional[Union[str, "os.PathLike[str]"]] = None,
                 output: Optional[IO[str]] = None):
        self.sock: Optional[socket.socket] = None
        self.local_dir = Path(local_dir) if local_dir is not None else Path.cwd()
        self.output = output

    def _out(self) -> IO[str]:
        return self.output if self.output is not None else sys.stdout

    def _connected(self) -> socket.socket:
        if self.sock is None or not tcp_connected(self.sock):
            raise ConnectionError("The server is not connected.")
        return self.sock

    def _read_response(self, sock: socket.socket) -> str:
        data = bytearray()
        while True:
            chunk = sock.recv(BUF_SIZE)
            if not chunk:
                raise ConnectionError("connection closed by server")
            end = chunk.find(bytes([Request.END.byte]))
            if end >= 0:
                data += chunk[:end]
                return data.decode("utf-8", errors="replace")
            data += chunk

    def open(self, host: str, port: int) -> None:
        """Connect to a server, dropping any earlier connection."""
        self.close()
        self.sock = tcp_connect(host, port)

    def ls(self, path: Optional[str] = None) -> str:
        """List a remote directory (the current one by default)."""
        sock = self._connected()
        sock.sendall(_request(Request.LS, path))
        return self._read_response(sock)

    def pwd(self) -> str:
        """The remote working directory."""
        sock = self._connected()
        sock.sendall(bytes([Request.PWD.byte]))
        return self._read_response(sock)

    def cd(self, path: Optional[str] = None) -> str:
        """Change the remote directory; returns the server's answer."""
        sock = self._connected()
        sock.sendall(_request(Request.CD, path))
        return self._read_response(sock)

    def _progress(self, filename: str, done: int, total: int) -> None:
        percent = 100.0 if total == 0 else 100.0 * done / total
        print(f"{filename}: {done}/{total} {percent:.2f}%", end="\r", file=self._out())

    def get(self, filename: str) -> int:
        """Download ``filename``; returns the number of bytes written locally."""
        if not filename:
            raise ValueError("file name not given")
        sock = self._connected()
        sock.sendall(_request(Request.GET, filename))
        data = sock.recv(BUF_SIZE)
        if not data:
            raise ConnectionError("connection closed by server")
        if data[0] == Request.DATA.byte:
            while len(data) < GET_HEADER.size:
                more = sock.recv(BUF_SIZE)
                if not more:
                    raise ConnectionError("connection closed by server")
                data += more
        size = decode_get_header(data)
        out = self._out()
        print(f"file size: {size} bytes", file=out)
        body = data[GET_HEADER.size:GET_HEADER.size + size]
        received = 0
        with open(self.local_dir / filename, "wb") as target:
            target.write(body)
            received = len(body)
            self._progress(filename, received, size)
            while received < size:
                chunk = sock.recv(min(BUF_SIZE, size - received))
                if not chunk:
                    raise ConnectionError("connection closed during download")
                target.write(chunk)
                received += len(chunk)
                self._progress(filename, received, size)
        print(f"\nrecv {filename} done", file=out)
        return received

    def put(self, filename: str) -> int:
        """Upload ``filename``; returns the number of bytes sent."""
        if not filename:
            raise ValueError("file name not given")
        sock = self._connected()
        with open(self.local_dir / filename, "rb") as source:
            size = os.fstat(source.fileno()).st_size
            header = encode_put_header(filename, size)
            print(f"buf decode: PUT {size} {len(os.fsencode(filename))} {filename}",
                  file=self._out())
            sock.sendall(header)
            while chunk := source.read(BUF_SIZE):
                sock.sendall(chunk)
        if sock.recv(1) != bytes([Request.END.byte]):
            raise ConnectionError(f"upload of `{filename}` was not acknowledged")
        print(f"send `{filename}` successful", file=self._out())
        return size

    def exit(self) -> None:
        """Tell the server the session is over and close the connection."""
        if self.sock is not None:
            try:
                self.sock.sendall(_request(Request.EXIT))
            except OSError:
                pass
        self.close()

    def close(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def __enter__(self) -> "FtClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _tcp_state(sock: socket.socket) -> Optional[int]:
    option = getattr(socket, "TCP_INFO", None)
    if option is None:
        return None
    try:
        info = sock.getsockopt(socket.IPPROTO_TCP, option, 1)
    except OSError:
        return None
    return info[0] if info else None


def _tokens(args: Optional[str]) -> List[str]:
    return (args or "").split()


def _commands(client: FtClient) -> List[Command]:
    commands: List[Command] = []

    def guarded(func):
        def handler(args: Optional[str]):
            try:
                return func(args)
            except (OSError, ValueError) as exc:
                print(f"Warning: {exc}", file=sys.stderr)
                return -1
        return handler

    def cmd_open(args):
        words = _tokens(args)
        if len(words) < 2:
            print("Error: not complete addr", file=sys.stderr)
            return 0
        host, port = words[0], words[1]
        try:
            client.open(host, int(port))
        except (OSError, ValueError):
            print(f"Warning: connect {host}:{port} failed", file=sys.stderr)
            return 0
        print(f"{host}:{port} connected")
        return 0

    def cmd_ls(args):
        sock = client._connected()
        state = _tcp_state(sock)
        if state is not None:
            try:
                name = tcp_state_name(state)
            except ValueError:
                name = "?"
            print(f"Info: fd = {sock.fileno()}, TCP State: {state} [{name}]", file=sys.stderr)
        print(client.ls(args))
        return 0

    def cmd_get(args):
        client.get(args or "")
        return 0

    def cmd_put(args):
        words = _tokens(args)
        client.put(words[0] if words else "")
        return 0

    def cmd_pwd(args):
        print(client.pwd())
        return 0

    def cmd_cd(args):
        print(client.cd(args))
        return 0

    def cmd_help(args):
        words = _tokens(args)
        if not words:
            for command in commands:
                print(f"{command.name} - {command.desc}")
            return 0
        for command in commands:
            if command.name == words[0]:
                print(f"{command.name} - {command.desc}")
                return 0
        print(f"{ANSI_FG_RED}Unknown command `{words[0]}`\n{ANSI_NONE}", end="")
        return 0

    def cmd_exit(args):
        client.exit()
        raise _Quit()

    commands.extend([
        Command("open", "open <host> <port>, open a ft server", cmd_open),
        Command("ls", "ls, list directory contents", guarded(cmd_ls)),
        Command("get", "get <filename>, download file", guarded(cmd_get)),
        Command("put", "put <filename>, upload file", guarded(cmd_put)),
        Command("help", "help, display help information", cmd_help),
        Command("pwd", "pwd, print current directory", guarded(cmd_pwd)),
        Command("cd", "cd <path>, change current directory to <path>", guarded(cmd_cd)),
        Command("exit", "client exit", cmd_exit),
    ])
    return commands


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    client = FtClient()
    if len(args) == 2:
        host, port = args
        try:
            client.open(host, int(port))
        except (OSError, ValueError) as exc:
            print(f"Fatal: c_connect() error: {exc}", file=sys.stderr)
            return 1
        print(f"{host}:{port} connected")
    print('Type "help" for help')
    shell = Minish(PROMPT, _commands(client))
    try:
        shell.run()
    except _Quit:
        pass
    except KeyboardInterrupt:
        client.exit()
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())