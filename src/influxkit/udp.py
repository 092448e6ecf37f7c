"""Fire-and-forget line protocol over UDP."""

from __future__ import annotations

import logging
import socket

logger = logging.getLogger(__name__)


class UdpSender:
    """Sends line protocol to a UDP listener, packing lines into datagrams."""

    def __init__(self, host: str = "localhost", port: int = 8089, max_packet_size: int = 1400) -> None:
        self.host = host
        self.port = port
        self.max_packet_size = max_packet_size

    def packets(self, lines: list[str]) -> list[bytes]:
        """Group lines into payloads of at most max_packet_size bytes.

        A line longer than the limit is sent alone.
        """
        packets: list[bytes] = []
        current = b""
        for line in lines:
            encoded = line.encode("utf-8")
            if not encoded:
                continue
            candidate = current + b"\n" + encoded if current else encoded
            if current and len(candidate) > self.max_packet_size:
                packets.append(current)
                current = encoded
            else:
                current = candidate
        if current:
            packets.append(current)
        return packets

    def send(self, lines: list[str] | str) -> int:
        """Send lines and return the number of datagrams written."""
        if isinstance(lines, str):
            lines = lines.splitlines()
        packets = self.packets(lines)
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            for packet in packets:
                sock.sendto(packet, (self.host, self.port))
        logger.debug("Sent %d datagram(s) to %s:%d", len(packets), self.host, self.port)
        return len(packets)
