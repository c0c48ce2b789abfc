"""Small helpers: bit tricks, timestamps, hex dumps, MAC strings and process launching."""

from __future__ import annotations

import re
import subprocess
import sys
import time

_MAX_EXEC_ARGS = 15
_HEX_FIELD = re.compile(r"\s*(?:0[xX])?([0-9a-fA-F]+)")


def round_two(x: int) -> int:
    """Return the power of two that ``x`` rounds up to (0 -> 1, 1 -> 2)."""
    if x == 0:
        return 1
    if x == 1:
        return 2
    if x & (x - 1) == 0:
        return x
    return 1 << x.bit_length()


def os_exec(cmd: str, *args: str) -> int:
    """Run ``cmd`` (searched in PATH) with ``args`` and wait for it.

    Returns the exit code of the program, 127 if it could not be started,
    or the negated signal number if it was killed by a signal.
    """
    if len(args) >= _MAX_EXEC_ARGS:
        raise ValueError("too many arguments")
    try:
        completed = subprocess.run([cmd, *args], check=False)
    except OSError:
        return 127
    return completed.returncode


def timestamp_ms() -> int:
    """Monotonic timestamp in milliseconds."""
    return time.monotonic_ns() // 1_000_000


def timestamp_us() -> int:
    """Monotonic timestamp in microseconds."""
    return time.monotonic_ns() // 1_000


def hexdump(data: bytes, title: str = "") -> str:
    """Print ``data`` as hex, sixteen bytes per tab-indented line, and return the text."""
    parts = [title]
    for i, byte in enumerate(data):
        if i % 16 == 0:
            parts.append("\n\t")
        parts.append(f"{byte:02x} ")
    parts.append("\n")
    text = "".join(parts)
    sys.stdout.write(text)
    return text


def reverse32(x: int) -> int:
    """Reverse the byte order of a 32-bit value."""
    x &= 0xFFFFFFFF
    return (
        ((x << 24) & 0xFF000000)
        | ((x << 8) & 0x00FF0000)
        | ((x >> 8) & 0x0000FF00)
        | (x >> 24)
    )


def mac_aton(s: str) -> bytes:
    """Parse a colon separated MAC address into six bytes."""
    pos = 0
    octets = []
    for index in range(6):
        if index:
            if s[pos:pos + 1] != ":":
                raise ValueError(f"bad MAC address: {s!r}")
            pos += 1
        match = _HEX_FIELD.match(s, pos)
        if match is None:
            raise ValueError(f"bad MAC address: {s!r}")
        octets.append(int(match.group(1), 16) & 0xFF)
        pos = match.end()
    return bytes(octets)


def mac_ntoa(mac: bytes) -> str:
    """Format the first six bytes of ``mac`` as ``aa:bb:cc:dd:ee:ff``."""
    if len(mac) < 6:
        raise ValueError("a MAC address needs six bytes")
    return ":".join(f"{b:02x}" for b in mac[:6])


def start_with(s: str, prefix: str) -> bool:
    """True if ``s`` begins with ``prefix``."""
    return s.startswith(prefix)


def end_with(s: str, suffix: str) -> bool:
    """True if ``s`` ends with ``suffix``."""
    return s.endswith(suffix)