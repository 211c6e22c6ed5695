# aq_listener/transport.py
"""Multicast UDP source of raw datagrams broadcast by the sensor nodes."""
from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Optional

logger = logging.getLogger(__name__)


def membership_request(group: str, interface: str = "0.0.0.0") -> bytes:
    """Packed ip_mreq for IP_ADD_MEMBERSHIP: group address then interface address."""
    return ipaddress.IPv4Address(group).packed + ipaddress.IPv4Address(interface).packed


class MulticastReceiver:
    """Joins a multicast group and hands out datagrams one at a time."""

    def __init__(
        self,
        group: str = "224.0.0.1",
        port: int = 9000,
        bind_addr: str = "0.0.0.0",
        max_size: int = 2000,
        sock: Optional[socket.socket] = None,
    ):
        self.group = group
        self.port = port
        self.bind_addr = bind_addr
        self.max_size = max_size
        self._sock = sock if sock is not None else self._open()

    def _open(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(
                socket.IPPROTO_IP,
                socket.IP_ADD_MEMBERSHIP,
                membership_request(self.group, self.bind_addr),
            )
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 1)
            if hasattr(socket, "SO_REUSEPORT"):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            sock.bind((self.bind_addr, self.port))
        except OSError:
            sock.close()
            raise
        logger.info("Listening on %s:%s (group %s)", self.bind_addr, self.port, self.group)
        return sock

    def recv(self, timeout: Optional[float] = None) -> Optional[bytes]:
        """Next datagram, or None if nothing arrived within timeout seconds."""
        self._sock.settimeout(timeout)
        try:
            data, _ = self._sock.recvfrom(self.max_size)
            return data
        except socket.timeout:
            return None

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError:
            pass

    def __enter__(self) -> "MulticastReceiver":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
