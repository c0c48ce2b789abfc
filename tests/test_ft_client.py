import io
import threading
from unittest import mock

import pytest

from socketlab.ft_client import FtClient, main
from socketlab.ft_server import FtSession
from socketlab.sockets import tcp_server


@pytest.fixture
def setup(tmp_path):
    server_dir = tmp_path / "server"
    local_dir = tmp_path / "local"
    server_dir.mkdir()
    local_dir.mkdir()
    listener = tcp_server(0)
    port = listener.getsockname()[1]

    def accept_one():
        conn, _ = listener.accept()
        FtSession(conn, cwd=server_dir).run()

    worker = threading.Thread(target=accept_one, daemon=True)
    worker.start()
    client = FtClient(local_dir=local_dir, output=io.StringIO())
    client.open("127.0.0.1", port)
    yield client, server_dir, local_dir
    client.exit()
    worker.join(timeout=5)
    listener.close()


def test_ls_lists_visible_files(setup):
    client, server_dir, _ = setup
    (server_dir / "one.txt").write_text("1")
    (server_dir / "two.txt").write_text("2")
    (server_dir / ".secret").write_text("3")
    assert client.ls() == "one.txt\ntwo.txt\n"


def test_pwd_and_cd(setup):
    client, server_dir, _ = setup
    assert client.pwd() == str(server_dir.resolve())
    (server_dir / "sub").mkdir()
    assert client.cd("sub") == str((server_dir / "sub").resolve())
    assert client.pwd() == str((server_dir / "sub").resolve())


def test_cd_to_missing_directory(setup):
    client, server_dir, _ = setup
    answer = client.cd("nope")
    assert answer.startswith("cd `nope` failed:")
    assert answer.endswith(str(server_dir.resolve()))


def test_get_downloads_file(setup):
    client, server_dir, local_dir = setup
    content = bytes(range(256)) * 20
    (server_dir / "big.bin").write_bytes(content)
    assert client.get("big.bin") == len(content)
    assert (local_dir / "big.bin").read_bytes() == content
    assert "recv big.bin done" in client.output.getvalue()


def test_get_missing_file_raises(setup):
    client, _, local_dir = setup
    with pytest.raises(OSError) as info:
        client.get("missing.txt")
    assert "get `missing.txt` failed" in str(info.value)
    assert not (local_dir / "missing.txt").exists()


def test_put_uploads_file(setup):
    client, server_dir, local_dir = setup
    content = b"upload me\n" * 500
    (local_dir / "up.txt").write_bytes(content)
    assert client.put("up.txt") == len(content)
    assert (server_dir / "up.txt").read_bytes() == content
    assert "send `up.txt` successful" in client.output.getvalue()


def test_put_then_get_round_trip(setup):
    client, _, local_dir = setup
    content = b"\x00\x7f\xff" * 700
    (local_dir / "rt.bin").write_bytes(content)
    client.put("rt.bin")
    (local_dir / "rt.bin").unlink()
    client.get("rt.bin")
    assert (local_dir / "rt.bin").read_bytes() == content


def test_missing_file_name_is_rejected(setup):
    client, _, _ = setup
    with pytest.raises(ValueError):
        client.get("")
    with pytest.raises(ValueError):
        client.put("")


def test_requests_need_a_connection(tmp_path):
    client = FtClient(local_dir=tmp_path)
    with pytest.raises(ConnectionError):
        client.ls()
    with pytest.raises(ConnectionError):
        client.pwd()


def test_main_help_lists_commands(capsys):
    with mock.patch("builtins.input", side_effect=["help", EOFError()]):
        assert main([]) == 0
    out = capsys.readouterr().out
    assert "open - open <host> <port>, open a ft server" in out
    assert "exit - client exit" in out
    assert 'Type "help" for help' in out