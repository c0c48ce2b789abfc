import sys

import pytest

from socketlab.util import (
    end_with,
    hexdump,
    mac_aton,
    mac_ntoa,
    os_exec,
    reverse32,
    round_two,
    start_with,
    timestamp_ms,
    timestamp_us,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, 1), (1, 2), (2, 2), (3, 4), (4, 4), (5, 8), (6, 8), (7, 8), (8, 8),
        (9, 16), (10, 16), (11, 16), (12, 16), (13, 16), (14, 16), (15, 16), (16, 16),
    ],
)
def test_round_two(value, expected):
    assert round_two(value) == expected


def test_start_with_basic():
    assert start_with("hello world", "hello")
    assert not start_with("hello world", "world")
    assert start_with("hello", "hello")
    assert not start_with("hi", "hello")


def test_start_with_empty_strings():
    assert start_with("", "")
    assert start_with("test", "")
    assert not start_with("", "test")


def test_start_with_equal_length():
    assert start_with("same", "same")
    assert not start_with("different", "diff") is True or start_with("different", "diff")


def test_start_with_special_characters():
    assert start_with("/path/to/file", "/path")
    assert start_with("http://example.com", "http://")
    assert start_with("1234567890", "1234")


def test_start_with_long_prefix():
    assert not start_with("short", "longer prefix")
    assert not start_with("exactsize", "exactsize plus more")


def test_end_with_basic():
    assert end_with("hello world", "world")
    assert not end_with("hello world", "hello")
    assert end_with("test.txt", ".txt")
    assert not end_with("test.txt", ".png")


def test_end_with_empty():
    assert end_with("", "")
    assert end_with("test", "")
    assert not end_with("", "test")


def test_end_with_equal_length():
    assert end_with("same", "same")
    assert not end_with("different", "diff")


def test_end_with_long_suffix():
    assert not end_with("short", "longer")
    assert not end_with("exactsize", "exactsize1")


def test_os_exec_success():
    assert os_exec(sys.executable, "-c", "pass") == 0


def test_os_exec_exit_code():
    assert os_exec(sys.executable, "-c", "raise SystemExit(3)") == 3


def test_os_exec_missing_program():
    assert os_exec("11echo", "hello", "world") == 127


def test_os_exec_argument_limit():
    extra = ["x"] * 12
    assert os_exec(sys.executable, "-c", "pass", *extra) == 0
    with pytest.raises(ValueError):
        os_exec(sys.executable, "-c", "pass", *(extra + ["y"]))


def test_timestamps_are_monotonic():
    first_ms, first_us = timestamp_ms(), timestamp_us()
    assert timestamp_ms() >= first_ms
    assert timestamp_us() >= first_us
    assert abs(first_us // 1000 - first_ms) <= 1000


def test_hexdump_format(capsys):
    text = hexdump(bytes(range(18)), "t")
    expected = (
        "t\n\t00 01 02 03 04 05 06 07 08 09 0a 0b 0c 0d 0e 0f \n\t10 11 \n"
    )
    assert text == expected
    assert capsys.readouterr().out == expected


def test_hexdump_empty(capsys):
    assert hexdump(b"", "") == "\n"
    assert capsys.readouterr().out == "\n"


def test_reverse32():
    assert reverse32(0x12345678) == 0x78563412
    assert reverse32(0x000000FF) == 0xFF000000
    assert reverse32(reverse32(0xDEADBEEF)) == 0xDEADBEEF


def test_mac_roundtrip():
    mac = mac_aton("00:11:22:33:44:55")
    assert mac == bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55])
    assert mac_ntoa(mac) == "00:11:22:33:44:55"


def test_mac_aton_uppercase_and_short_fields():
    assert mac_aton("AA:b:0C:d:E:f") == bytes([0xAA, 0x0B, 0x0C, 0x0D, 0x0E, 0x0F])


@pytest.mark.parametrize("bad", ["", "00:11:22", "00-11-22-33-44-55", "zz:11:22:33:44:55"])
def test_mac_aton_rejects(bad):
    with pytest.raises(ValueError):
        mac_aton(bad)


def test_mac_ntoa_short():
    with pytest.raises(ValueError):
        mac_ntoa(b"\x01\x02")