"""Ethernet, IPv4, 802.1Q, ARP and ICMP echo headers packed to wire bytes."""

from __future__ import annotations

import ipaddress
import os
import struct
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

from socketlab.checksum import inet_checksum

MAC_BYTE_LEN = 6
MAC_STR_LEN = 18
IPV4_BYTE_LEN = 4
IPV4_STR_LEN = 16
IPV6_BYTE_LEN = 16
IPV6_STR_LEN = 40

ETH_HEADER_LEN = 14
ETH_DATA_MIN_LEN = 46
ETH_DATA_MAX_LEN = 1500
ETH_FRAME_MIN_LEN = ETH_HEADER_LEN + ETH_DATA_MIN_LEN
ETH_FRAME_MAX_LEN = ETH_HEADER_LEN + ETH_DATA_MAX_LEN

ETH_TYPE_IPV4 = 0x0800
ETH_TYPE_ARP = 0x0806
ETH_TYPE_8021Q = 0x8100

BROADCAST_MAC = b"\xff" * MAC_BYTE_LEN

ARP_HW_ETHERNET = 1
ARP_REQUEST = 1
ARP_REPLY = 2

RF = 0x8000
DF = 0x4000
MF = 0x2000

ICMP_TYPE_ECHO_REPLY = 0
ICMP_TYPE_ECHO_REQUEST = 8

Address = Union[str, bytes, int, ipaddress.IPv4Address]


def _mac(value: bytes, name: str) -> bytes:
    value = bytes(value)
    if len(value) != MAC_BYTE_LEN:
        raise ValueError(f"{name} must be {MAC_BYTE_LEN} bytes, got {len(value)}")
    return value


def _ipv4(value: Address) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        value = bytes(value)
        if len(value) != IPV4_BYTE_LEN:
            raise ValueError(f"an IPv4 address needs {IPV4_BYTE_LEN} bytes")
    return ipaddress.IPv4Address(value).packed


def _check_range(value: int, bits: int, name: str) -> None:
    if not 0 <= value < (1 << bits):
        raise ValueError(f"{name} must fit in {bits} bits, got {value}")


def _need(data: bytes, size: int, what: str) -> None:
    if len(data) < size:
        raise ValueError(f"{what} needs {size} bytes, got {len(data)}")


@dataclass
class EtherHeader:
    """Ethernet II header: destination MAC, source MAC and EtherType."""

    dst_mac: bytes
    src_mac: bytes
    proto_type: int

    SIZE: ClassVar[int] = ETH_HEADER_LEN
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("!6s6sH")

    def __post_init__(self) -> None:
        self.dst_mac = _mac(self.dst_mac, "dst_mac")
        self.src_mac = _mac(self.src_mac, "src_mac")
        _check_range(self.proto_type, 16, "proto_type")

    def pack(self) -> bytes:
        return self._FORMAT.pack(self.dst_mac, self.src_mac, self.proto_type)

    @classmethod
    def unpack(cls, data: bytes) -> "EtherHeader":
        _need(data, cls.SIZE, "an Ethernet header")
        return cls(*cls._FORMAT.unpack_from(data))


def pack_ether_frame(dst_mac: bytes, src_mac: bytes, proto_type: int, data: bytes) -> bytes:
    """Ethernet header followed by ``data`` (at most 1500 bytes)."""
    if len(data) > ETH_DATA_MAX_LEN:
        raise ValueError(f"payload of {len(data)} bytes exceeds {ETH_DATA_MAX_LEN}")
    return EtherHeader(dst_mac, src_mac, proto_type).pack() + bytes(data)


@dataclass
class Ipv4Header:
    """IPv4 header without options; addresses are held as four bytes."""

    src_addr: bytes
    dst_addr: bytes
    protocol: int = 0
    tot_len: int = 20
    identification: int = 0
    frag: int = 0
    ttl: int = 64
    tos: int = 0
    checksum: int = 0
    version: int = 4
    ihl: int = 5

    SIZE: ClassVar[int] = 20
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("!BBHHHBBH4s4s")

    def __post_init__(self) -> None:
        self.src_addr = _ipv4(self.src_addr)
        self.dst_addr = _ipv4(self.dst_addr)
        _check_range(self.version, 4, "version")
        _check_range(self.ihl, 4, "ihl")
        for name in ("tos", "ttl", "protocol"):
            _check_range(getattr(self, name), 8, name)
        for name in ("tot_len", "identification", "frag", "checksum"):
            _check_range(getattr(self, name), 16, name)

    @property
    def dscp(self) -> int:
        return self.tos >> 2

    @property
    def ecn(self) -> int:
        return self.tos & 0x3

    @property
    def dont_fragment(self) -> bool:
        return bool(self.frag & DF)

    @property
    def more_fragments(self) -> bool:
        return bool(self.frag & MF)

    @property
    def fragment_offset(self) -> int:
        return self.frag & 0x1FFF

    @property
    def header_len(self) -> int:
        return self.ihl * 4

    def pack(self) -> bytes:
        return self._FORMAT.pack(
            (self.version << 4) | self.ihl,
            self.tos,
            self.tot_len,
            self.identification,
            self.frag,
            self.ttl,
            self.protocol,
            self.checksum,
            self.src_addr,
            self.dst_addr,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Ipv4Header":
        _need(data, cls.SIZE, "an IPv4 header")
        (ver_ihl, tos, tot_len, ident, frag, ttl, proto, checksum,
         src, dst) = cls._FORMAT.unpack_from(data)
        return cls(
            src_addr=src,
            dst_addr=dst,
            protocol=proto,
            tot_len=tot_len,
            identification=ident,
            frag=frag,
            ttl=ttl,
            tos=tos,
            checksum=checksum,
            version=ver_ihl >> 4,
            ihl=ver_ihl & 0xF,
        )


def make_ipv4_header(src: Address, dst: Address, protocol: int, data_len: int) -> Ipv4Header:
    """A DF-flagged, TTL 64 header for ``data_len`` payload bytes, checksum filled in."""
    total = Ipv4Header.SIZE + data_len
    if data_len < 0 or total > 0xFFFF:
        raise ValueError(f"invalid payload length: {data_len}")
    header = Ipv4Header(
        src_addr=src,
        dst_addr=dst,
        protocol=protocol,
        tot_len=total,
        identification=os.getpid() & 0xFFFF,
        frag=DF,
    )
    header.checksum = inet_checksum(header.pack())
    return header


@dataclass
class VlanHeader:
    """802.1Q tag: priority, drop-eligible bit, VLAN id and inner EtherType."""

    id: int
    proto_type: int
    dei: int = 0
    pri: int = 0

    SIZE: ClassVar[int] = 4
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("!HH")

    def __post_init__(self) -> None:
        _check_range(self.id, 12, "id")
        _check_range(self.dei, 1, "dei")
        _check_range(self.pri, 3, "pri")
        _check_range(self.proto_type, 16, "proto_type")

    @property
    def tci(self) -> int:
        return (self.pri << 13) | (self.dei << 12) | self.id

    def pack(self) -> bytes:
        return self._FORMAT.pack(self.tci, self.proto_type)

    @classmethod
    def unpack(cls, data: bytes) -> "VlanHeader":
        _need(data, cls.SIZE, "a VLAN header")
        tci, proto = cls._FORMAT.unpack_from(data)
        return cls(id=tci & 0x0FFF, proto_type=proto, dei=(tci >> 12) & 1, pri=tci >> 13)


@dataclass
class ArpMessage:
    """ARP message for Ethernet/IPv4, carried in an Ethernet frame padded to 60 bytes."""

    eth_hdr: EtherHeader
    opcode: int
    sender_mac: bytes
    sender_ip: bytes
    target_mac: bytes
    target_ip: bytes
    hardware_type: int = ARP_HW_ETHERNET
    protocol_type: int = ETH_TYPE_IPV4
    hardware_size: int = MAC_BYTE_LEN
    protocol_size: int = IPV4_BYTE_LEN

    PADDING: ClassVar[int] = 18
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("!HHBBH6s4s6s4s")
    SIZE: ClassVar[int] = ETH_HEADER_LEN + 28 + 18

    def __post_init__(self) -> None:
        self.sender_mac = _mac(self.sender_mac, "sender_mac")
        self.target_mac = _mac(self.target_mac, "target_mac")
        self.sender_ip = _ipv4(self.sender_ip)
        self.target_ip = _ipv4(self.target_ip)
        _check_range(self.opcode, 16, "opcode")

    def pack(self) -> bytes:
        body = self._FORMAT.pack(
            self.hardware_type,
            self.protocol_type,
            self.hardware_size,
            self.protocol_size,
            self.opcode,
            self.sender_mac,
            self.sender_ip,
            self.target_mac,
            self.target_ip,
        )
        return self.eth_hdr.pack() + body + bytes(self.PADDING)

    @classmethod
    def unpack(cls, data: bytes) -> "ArpMessage":
        _need(data, ETH_HEADER_LEN + cls._FORMAT.size, "an ARP message")
        eth = EtherHeader.unpack(data)
        (htype, ptype, hsize, psize, opcode, smac, sip,
         tmac, tip) = cls._FORMAT.unpack_from(data, ETH_HEADER_LEN)
        return cls(
            eth_hdr=eth,
            opcode=opcode,
            sender_mac=smac,
            sender_ip=sip,
            target_mac=tmac,
            target_ip=tip,
            hardware_type=htype,
            protocol_type=ptype,
            hardware_size=hsize,
            protocol_size=psize,
        )


def arp_request(sender_mac: bytes, sender_ip: Address, target_ip: Address) -> ArpMessage:
    """Broadcast ARP request asking who has ``target_ip``."""
    sender_mac = _mac(sender_mac, "sender_mac")
    return ArpMessage(
        eth_hdr=EtherHeader(BROADCAST_MAC, sender_mac, ETH_TYPE_ARP),
        opcode=ARP_REQUEST,
        sender_mac=sender_mac,
        sender_ip=sender_ip,
        target_mac=bytes(MAC_BYTE_LEN),
        target_ip=target_ip,
    )


@dataclass
class IcmpEcho:
    """ICMP echo request or reply; a checksum of None is computed on packing."""

    icmp_type: int
    code: int = 0
    identifier: int = 0
    sequence: int = 0
    data: bytes = field(default=b"")
    checksum: Optional[int] = None

    HEADER_SIZE: ClassVar[int] = 8
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("!BBHHH")

    def __post_init__(self) -> None:
        _check_range(self.icmp_type, 8, "icmp_type")
        _check_range(self.code, 8, "code")
        _check_range(self.identifier, 16, "identifier")
        _check_range(self.sequence, 16, "sequence")
        if self.checksum is not None:
            _check_range(self.checksum, 16, "checksum")
        self.data = bytes(self.data)

    def _raw(self, checksum: int) -> bytes:
        return self._FORMAT.pack(
            self.icmp_type, self.code, checksum, self.identifier, self.sequence
        ) + self.data

    def pack(self) -> bytes:
        checksum = self.checksum
        if checksum is None:
            checksum = inet_checksum(self._raw(0))
        return self._raw(checksum)

    @classmethod
    def unpack(cls, data: bytes) -> "IcmpEcho":
        _need(data, cls.HEADER_SIZE, "an ICMP echo message")
        icmp_type, code, checksum, ident, seq = cls._FORMAT.unpack_from(data)
        return cls(
            icmp_type=icmp_type,
            code=code,
            identifier=ident,
            sequence=seq,
            data=bytes(data[cls.HEADER_SIZE:]),
            checksum=checksum,
        )