"""Socket and raw-packet toolkit: echo, ping, ARP scan, file transfer, packet builders and helpers."""

__version__ = "0.1.0"

__all__ = [
    "arpscan",
    "broadcast",
    "checksum",
    "echo",
    "ft_client",
    "ft_protocol",
    "ft_server",
    "minish",
    "netif",
    "opcalc",
    "packet_buff",
    "packets",
    "ping",
    "simplelog",
    "sockets",
    "tcpsocket",
    "util",
]