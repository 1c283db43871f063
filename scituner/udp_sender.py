"""UDP delivery of display frames.

Each frame from protocol.encode_frame goes out as one datagram. The
default destination is the broadcast address so any renderer on the
local network can pick up the stream.
"""

import socket

from .config import UDP_PORT

BROADCAST = "255.255.255.255"


class UDPSender:
    """Sends encoded display frames to a renderer.

    sent counts datagrams handed to the network since open().
    """

    def __init__(self, host=BROADCAST, port=UDP_PORT):
        self.address = (host, port)
        self.sent = 0
        self._sock = None

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self):
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        if self.address[0] == BROADCAST:
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        self.sent = 0
        print(f"[udp] Sending frames to {self.address[0]}:{self.address[1]}")

    def send(self, frame: bytes) -> bool:
        """Send one frame. Returns False if it was not sent."""
        if not self._sock:
            return False
        try:
            self._sock.sendto(frame, self.address)
        except OSError as e:
            print(f"[udp] Send error: {e}")
            return False
        self.sent += 1
        return True

    def send_frames(self, frames) -> int:
        """Send every frame of one display update; returns how many went out."""
        return sum(self.send(frame) for frame in frames)

    def close(self):
        if self._sock:
            self._sock.close()
            self._sock = None
            print(f"[udp] Closed after {self.sent} frames")
