import pytest

from socketlab.ft_protocol import (
    GET_HEADER,
    PUT_HEADER,
    Request,
    decode_get_header,
    decode_put_header,
    encode_get_header,
    encode_put_header,
    file_size,
    tcp_state_name,
)


def test_request_codes_on_the_wire():
    assert Request.END.byte == 127
    assert Request.ERROR.byte == 0xFF
    assert Request.from_byte(0xFF) is Request.ERROR
    assert Request.from_byte(Request.PUT.byte) is Request.PUT


def test_unknown_request_byte():
    with pytest.raises(ValueError):
        Request.from_byte(99)


def test_put_header_round_trip():
    header = encode_put_header("notes.txt", 4096)
    assert len(header) == PUT_HEADER.size + len("notes.txt")
    assert header[0] == Request.PUT.byte
    name, size, offset = decode_put_header(header + b"body")
    assert (name, size) == ("notes.txt", 4096)
    assert (header + b"body")[offset:] == b"body"


def test_put_header_rejects_wrong_type_and_truncation():
    header = encode_put_header("a.bin", 1)
    with pytest.raises(ValueError):
        decode_put_header(bytes([Request.GET.byte]) + header[1:])
    with pytest.raises(ValueError):
        decode_put_header(header[:-1])
    with pytest.raises(ValueError):
        decode_put_header(header[:5])


def test_put_header_rejects_bad_arguments():
    with pytest.raises(ValueError):
        encode_put_header("", 1)
    with pytest.raises(ValueError):
        encode_put_header("x", -1)


def test_get_header_wire_bytes():
    assert encode_get_header(5) == bytes([0, 0, 0, 0, 5, 0, 0, 0, 0])
    assert len(encode_get_header(0)) == GET_HEADER.size


def test_get_header_round_trip():
    for size in (0, 1, 1023, 1 << 20):
        assert decode_get_header(encode_get_header(size) + b"extra") == size


def test_get_header_error_answer():
    data = bytes([Request.ERROR.byte]) + b"get `x` failed: No such file or directory"
    with pytest.raises(OSError) as info:
        decode_get_header(data)
    assert "get `x` failed" in str(info.value)


def test_get_header_invalid():
    with pytest.raises(ValueError):
        decode_get_header(b"")
    with pytest.raises(ValueError):
        decode_get_header(encode_get_header(3)[:4])
    with pytest.raises(ValueError):
        encode_get_header(1 << 40)


def test_tcp_state_name():
    assert tcp_state_name(1) == "TCP_ESTABLISHED"
    assert tcp_state_name(10) == "TCP_LISTEN"
    assert tcp_state_name(0) == ""
    with pytest.raises(ValueError):
        tcp_state_name(12)


def test_file_size(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"abcdef")
    assert file_size(path) == 6
    assert file_size(tmp_path / "missing") == 0