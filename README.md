# socketlab

A small toolkit for experimenting with sockets on Linux. It has TCP and UDP
echo servers and clients, an ICMP ping, an ARP subnet scanner, a simple file
transfer server and client, a calculator service, UDP broadcast sending and
listening, and helpers that build Ethernet, VLAN, IPv4, ARP and ICMP packets
byte by byte.

It runs on Python 3.10 or later and needs nothing outside the standard
library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Commands

| Command               | What it does                                                  |
|-----------------------|---------------------------------------------------------------|
| `socketlab-ping`      | Sends ICMP echo requests and prints RTT statistics            |
| `socketlab-arp-scan`  | Sends ARP requests to every host in a subnet, prints replies  |
| `socketlab-ft-server` | File transfer server (ls, pwd, cd, get, put), a thread per client |
| `socketlab-ft-client` | Interactive shell for the file transfer server                |
| `socketlab-echo`      | TCP and UDP echo servers and clients                          |
| `socketlab-opcalc`    | Server and client that compute `+`, `-` or `*` over integers  |
| `socketlab-broadcast` | Sends or listens for UDP broadcast messages on port 8888      |

`socketlab-ping` and `socketlab-arp-scan` open raw sockets, so they need
root or `CAP_NET_RAW`.

Ping a host four times, or as many times as you ask:

```
socketlab-ping 192.0.2.10
socketlab-ping 192.0.2.10 10
```

Scan a subnet through one interface:

```
socketlab-arp-scan eth0 192.0.2.4/24
```

Start a file transfer server, then connect to it:

```
socketlab-ft-server 9000
socketlab-ft-client localhost 9000
```

In the client, type `help` to list the commands: `open`, `ls`, `get`,
`put`, `help`, `pwd`, `cd` and `exit`. Each client has its own remote
working directory on the server.

Echo servers and clients are chosen by sub-command:

```
socketlab-echo server 9000            # five clients, one after another
socketlab-echo select 9000            # all clients from one thread
socketlab-echo thread 9000            # a thread per client
socketlab-echo fork 9000              # a process per client
socketlab-echo udp-server 9000
socketlab-echo client localhost 9000  # type lines, Q to quit
socketlab-echo udp-client 127.0.0.1 9000
```

The calculator and broadcast tools:

```
socketlab-opcalc server 9000
socketlab-opcalc client localhost 9000
socketlab-broadcast listen
socketlab-broadcast send hello
```

## Library

The modules can also be used directly.

```python
from socketlab import util, checksum, packets
from socketlab.packet_buff import PacketBuffer

util.round_two(5)                   # 8, the next power of two
util.start_with("/path/to/file", "/path")
mac = util.mac_aton("02:00:00:00:00:01")
util.mac_ntoa(mac)                  # "02:00:00:00:00:01"

checksum.crc16_modbus(b"A\x00B\x00C\x00\n\x00")
checksum.crc16_ccitt(b"A\x00B\x00C\x00\n\x00")

request = packets.arp_request(mac, bytes([192, 0, 2, 4]), bytes([192, 0, 2, 1]))
frame = request.pack()              # 60 bytes, padded Ethernet frame

buf = PacketBuffer(64)
header = buf.push(14)               # writable view with room for an Ethernet header
```

What each module covers:

- `socketlab.util` – power-of-two rounding, monotonic timestamps
  (`timestamp_ms`, `timestamp_us`), hex dumps, 32-bit byte reversal, MAC
  address parsing and formatting, prefix and suffix tests, and `os_exec`,
  which runs a program and returns its exit status (127 if it cannot start).
- `socketlab.simplelog` – a levelled logger (`SimpleLog`, `LogLevel`) that
  writes through a `LogSink` to a stream or a file; in messages `%m` becomes
  the OS error text of the exception being handled and `%%` a single `%`.
  It also writes hex dumps.
- `socketlab.checksum` – CRC-16/MODBUS, CRC-16/CCITT and the Internet
  (RFC 1071) checksum.
- `socketlab.packets` – `EtherHeader`, `VlanHeader`, `Ipv4Header`,
  `ArpMessage` and `IcmpEcho`, each with `pack()` and `unpack()`, plus
  `pack_ether_frame`, `make_ipv4_header` and `arp_request`.
- `socketlab.packet_buff` – `PacketBuffer`, a fixed-size buffer that hands
  out consecutive regions with `push()`, gives them back with `pop()` and
  empties with `reset()`.
- `socketlab.sockets` – address resolution, TCP server and client helpers,
  connection state, broadcast and timeout options.
- `socketlab.netif` – interface MAC, IPv4 address and netmask lookup,
  binding a packet socket to an interface, sending a raw frame, and listing
  interfaces with their addresses.
- `socketlab.tcpsocket` – `InetAddr` and `TcpSocket`, a small owning wrapper
  over a TCP socket that closes on context exit.
- `socketlab.minish` – `Minish`, a tiny line shell driven by a list of
  `Command` entries.
- `socketlab.ping`, `socketlab.arpscan`, `socketlab.ft_protocol`,
  `socketlab.ft_server`, `socketlab.ft_client`, `socketlab.echo`,
  `socketlab.opcalc`, `socketlab.broadcast` – the code behind the commands
  above.

## What it does not do

- Everything is IPv4 only; there is no IPv6 ping, scan or server.
- Interface lookups and raw frames use Linux ioctls and packet sockets, so
  `socketlab.netif`, `socketlab.arpscan` and `socketlab.ping` work on Linux
  only.
- The file transfer service has no authentication or encryption, and file
  sizes are limited to 4 GiB.