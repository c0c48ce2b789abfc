"""CRC-16 variants and the RFC 1071 internet checksum."""

from __future__ import annotations

import struct

_MODBUS_POLY = 0xA001
_CCITT_POLY = 0x1021


def crc16_modbus(data: bytes) -> int:
    """CRC-16/MODBUS: reflected polynomial 0x8005, initial value 0xFFFF."""
    crc = 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            crc = (crc >> 1) ^ _MODBUS_POLY if crc & 1 else crc >> 1
    return crc


def crc16_ccitt(data: bytes) -> int:
    """CRC-16/CCITT with polynomial 0x1021 and initial value 0 (XMODEM)."""
    crc = 0
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            crc = ((crc << 1) ^ _CCITT_POLY if crc & 0x8000 else crc << 1) & 0xFFFF
    return crc


def inet_checksum(data: bytes) -> int:
    """One's complement checksum over big-endian 16-bit words.

    A trailing odd byte is added as it is, into the low eight bits.
    """
    data = bytes(data)
    even = data[: len(data) & ~1]
    total = sum(word for (word,) in struct.iter_unpack("!H", even))
    if len(data) % 2:
        total += data[-1]
    while total >> 16:
        total = (total >> 16) + (total & 0xFFFF)
    return ~total & 0xFFFF