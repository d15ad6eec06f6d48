"""Bidirectional byte relay between a SOCKS client and its target.

Once a CONNECT succeeds the proxy stops interpreting bytes and copies them in
both directions. Either side closing or failing ends the whole tunnel; there
is no half-closed state.
"""

import selectors
import socket
from dataclasses import dataclass
from typing import Final

from loguru import logger

BUFFER_SIZE: Final = 4096

CLIENT: Final = "client"
REMOTE: Final = "remote"


@dataclass
class TrafficCounters:
    """Bytes relayed for one connection.

    Attributes:
        upstream: Bytes sent from the client to the target
        downstream: Bytes sent from the target to the client
    """

    upstream: int = 0
    downstream: int = 0


class Relay:
    """Copy bytes between two connected sockets until one of them ends."""

    def __init__(self, client: socket.socket, remote: socket.socket, counters: TrafficCounters, log=logger) -> None:
        self.client = client
        self.remote = remote
        self.counters = counters
        self.log = log

    def _side(self, sock: socket.socket) -> str:
        return CLIENT if sock is self.client else REMOTE

    def _count(self, source: socket.socket, size: int) -> None:
        if source is self.client:
            self.counters.upstream += size
        else:
            self.counters.downstream += size

    def _pump(self, sock: socket.socket) -> str | None:
        """Move one chunk from ``sock`` to the other side.

        Returns the side that ended the tunnel, or None to keep going.
        """
        other = self.remote if sock is self.client else self.client
        try:
            data = sock.recv(BUFFER_SIZE)
        except OSError as e:
            self.log.warning(f"{self._side(sock).capitalize()} socket error: {e}")
            return self._side(sock)
        if not data:
            return self._side(sock)
        try:
            other.sendall(data)
        except OSError as e:
            self.log.warning(f"{self._side(other).capitalize()} socket error: {e}")
            return self._side(other)
        self._count(sock, len(data))
        return None

    def run(self) -> str:
        """Forward data until either socket closes or errors.

        Returns:
            str: ``"client"`` or ``"remote"``, the side that ended the tunnel
        """
        # DefaultSelector is epoll/kqueue where available, so descriptors above
        # FD_SETSIZE work
        with selectors.DefaultSelector() as selector:
            selector.register(self.client, selectors.EVENT_READ)
            selector.register(self.remote, selectors.EVENT_READ)
            while True:
                for key, _ in selector.select():
                    if (ended := self._pump(key.fileobj)) is not None:
                        return ended
