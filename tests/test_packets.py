import os

import pytest

from socketlab.checksum import inet_checksum
from socketlab.packets import (
    ARP_REQUEST,
    BROADCAST_MAC,
    DF,
    ETH_DATA_MAX_LEN,
    ETH_FRAME_MIN_LEN,
    ETH_TYPE_8021Q,
    ETH_TYPE_ARP,
    ETH_TYPE_IPV4,
    ICMP_TYPE_ECHO_REQUEST,
    ArpMessage,
    EtherHeader,
    IcmpEcho,
    Ipv4Header,
    VlanHeader,
    arp_request,
    make_ipv4_header,
    pack_ether_frame,
)

SMAC = bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55])
DMAC = bytes([0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0xFF])


def test_ether_header_wire_bytes():
    packed = EtherHeader(DMAC, SMAC, ETH_TYPE_IPV4).pack()
    assert packed == DMAC + SMAC + b"\x08\x00"
    assert len(packed) == EtherHeader.SIZE


def test_ether_header_round_trip():
    header = EtherHeader(DMAC, SMAC, ETH_TYPE_8021Q)
    assert EtherHeader.unpack(header.pack()) == header


def test_ether_header_rejects_bad_mac():
    with pytest.raises(ValueError):
        EtherHeader(b"\x00" * 5, SMAC, ETH_TYPE_IPV4)


def test_ether_header_unpack_short():
    with pytest.raises(ValueError):
        EtherHeader.unpack(b"\x00" * 10)


def test_pack_ether_frame():
    frame = pack_ether_frame(DMAC, SMAC, 0x88B5, b"hello world")
    assert frame[14:] == b"hello world"
    assert EtherHeader.unpack(frame).proto_type == 0x88B5


def test_pack_ether_frame_too_long():
    with pytest.raises(ValueError):
        pack_ether_frame(DMAC, SMAC, ETH_TYPE_IPV4, bytes(ETH_DATA_MAX_LEN + 1))


def test_make_ipv4_header_fields():
    header = make_ipv4_header("192.168.5.2", "192.168.5.3", 40, 12)
    assert header.version == 4
    assert header.ihl == 5
    assert header.tot_len == 32
    assert header.ttl == 64
    assert header.protocol == 40
    assert header.frag == DF
    assert header.dont_fragment
    assert header.identification == os.getpid() & 0xFFFF
    assert header.src_addr == bytes([192, 168, 5, 2])


def test_make_ipv4_header_checksum_verifies():
    header = make_ipv4_header("10.0.0.1", "10.0.0.2", 17, 100)
    assert inet_checksum(header.pack()) == 0


def test_ipv4_first_byte_is_version_and_ihl():
    packed = make_ipv4_header("10.0.0.1", "10.0.0.2", 6, 0).pack()
    assert packed[0] == 0x45
    assert len(packed) == Ipv4Header.SIZE


def test_ipv4_round_trip():
    header = Ipv4Header("1.2.3.4", b"\x05\x06\x07\x08", protocol=1, tot_len=84,
                        identification=7, frag=DF | 3, tos=0xB9, checksum=0x1234)
    parsed = Ipv4Header.unpack(header.pack())
    assert parsed == header
    assert parsed.fragment_offset == 3
    assert parsed.dscp == 0xB9 >> 2
    assert parsed.ecn == 0xB9 & 3


def test_make_ipv4_header_rejects_oversize():
    with pytest.raises(ValueError):
        make_ipv4_header("10.0.0.1", "10.0.0.2", 6, 0xFFFF)


def test_vlan_header_wire_bytes():
    assert VlanHeader(100, ETH_TYPE_IPV4, dei=0, pri=7).pack() == b"\xe0\x64\x08\x00"


def test_vlan_round_trip():
    header = VlanHeader(4095, ETH_TYPE_ARP, dei=1, pri=3)
    assert VlanHeader.unpack(header.pack()) == header


def test_vlan_rejects_large_id():
    with pytest.raises(ValueError):
        VlanHeader(4096, ETH_TYPE_IPV4)


def test_arp_request_layout():
    msg = arp_request(SMAC, "192.168.5.4", "192.168.5.1")
    packed = msg.pack()
    assert len(packed) == ETH_FRAME_MIN_LEN
    assert packed[:6] == BROADCAST_MAC
    assert packed[6:12] == SMAC
    assert packed[12:14] == b"\x08\x06"
    assert packed[14:16] == b"\x00\x01"
    assert packed[16:18] == b"\x08\x00"
    assert packed[18:20] == b"\x06\x04"
    assert packed[20:22] == b"\x00\x01"
    assert packed[32:38] == bytes(6)
    assert packed[42:] == bytes(18)


def test_arp_round_trip():
    msg = arp_request(SMAC, "10.1.1.1", "10.1.1.2")
    parsed = ArpMessage.unpack(msg.pack())
    assert parsed == msg
    assert parsed.opcode == ARP_REQUEST
    assert parsed.target_ip == bytes([10, 1, 1, 2])


def test_arp_unpack_short():
    with pytest.raises(ValueError):
        ArpMessage.unpack(bytes(30))


def test_icmp_echo_checksum_verifies():
    packed = IcmpEcho(ICMP_TYPE_ECHO_REQUEST, identifier=0x1234, sequence=1,
                      data=b"0123456789abcdefAB").pack()
    assert inet_checksum(packed) == 0
    assert packed[0] == ICMP_TYPE_ECHO_REQUEST


def test_icmp_echo_round_trip():
    echo = IcmpEcho(ICMP_TYPE_ECHO_REQUEST, identifier=9, sequence=3, data=b"abc")
    parsed = IcmpEcho.unpack(echo.pack())
    assert parsed.identifier == 9
    assert parsed.sequence == 3
    assert parsed.data == b"abc"
    assert parsed.pack() == echo.pack()


def test_icmp_unpack_short():
    with pytest.raises(ValueError):
        IcmpEcho.unpack(b"\x00\x00\x00")