"""Per-connection SOCKS5 state machine.

Each accepted client socket gets one ``Socks5Connection``. The connection moves
strictly forward through its stages, and any stage may jump to ``CLOSED``:

    GREETING -> AUTHENTICATING -> AWAITING_REQUEST -> STREAMING -> CLOSED

Only username/password authentication (RFC 1929) and the CONNECT command are
supported. Inbound bytes are appended to a receive buffer and a stage only
consumes them once its whole message is buffered, so a client may send the
handshake in arbitrarily small pieces or pipeline several messages at once.

The connection is driven by a single thread: ``serve()`` reads from the client
and calls ``feed()`` until the tunnel is established, then hands both sockets
to the relay. Nothing here is shared with other connections.

Example:
    connection = Socks5Connection(client_socket, Credentials("user", "pass"))
    connection.serve()
"""

import contextlib
import socket
from collections.abc import Callable
from enum import Enum

from loguru import logger

from socks5_auth_proxy.core.config import Credentials
from socks5_auth_proxy.core.exceptions import DNSResolutionError, UnsupportedAddressType
from socks5_auth_proxy.core.utils.utils import format_bytes

from .address import TargetAddress, decode_request
from .dns_handler import DNSResolver
from .relay import BUFFER_SIZE, Relay, TrafficCounters
from .wire import (
    AUTH_VERSION,
    CONNECT_CMD,
    METHOD_NO_ACCEPTABLE,
    METHOD_USERPASS,
    SOCKS_VERSION,
    ReplyCode,
    encode_auth_status,
    encode_method_selection,
    encode_reply,
)


class Stage(Enum):
    """Protocol stage of a connection."""

    GREETING = "greeting"
    AUTHENTICATING = "authenticating"
    AWAITING_REQUEST = "awaiting_request"
    STREAMING = "streaming"
    CLOSED = "closed"


def reply_code_for(error: Exception) -> ReplyCode:
    """Map an outbound connect failure to a SOCKS5 reply code."""
    if isinstance(error, (socket.gaierror, DNSResolutionError)):
        return ReplyCode.HOST_UNREACHABLE
    if isinstance(error, ConnectionRefusedError):
        return ReplyCode.CONNECTION_REFUSED
    return ReplyCode.GENERAL_FAILURE


class Socks5Connection:
    """SOCKS5 handshake and tunnel for one client socket."""

    def __init__(
        self,
        sock: socket.socket,
        credentials: Credentials,
        log=logger,
        resolver: DNSResolver | None = None,
    ) -> None:
        """Initialize the connection in the greeting stage.

        Args:
            sock: Accepted client socket, owned by this connection from now on
            credentials: The username/password clients must present
            log: Loguru logger used for connection events
            resolver: Optional resolver for domain targets; system DNS if None
        """
        self.sock = sock
        self.credentials = credentials
        self.log = log
        self.resolver = resolver
        self.stage = Stage.GREETING
        self.buffer = bytearray()
        self.remote: socket.socket | None = None
        self.target: TargetAddress | None = None
        self.counters = TrafficCounters()
        self.closed = False
        self.ended_by: str | None = None

        self._handlers: dict[Stage, Callable[[], bool]] = {
            Stage.GREETING: self._handle_greeting,
            Stage.AUTHENTICATING: self._handle_auth,
            Stage.AWAITING_REQUEST: self._handle_request,
        }

    @property
    def bytes_upstream(self) -> int:
        return self.counters.upstream

    @property
    def bytes_downstream(self) -> int:
        return self.counters.downstream

    def _consume(self, size: int) -> bytes:
        unit = bytes(self.buffer[:size])
        del self.buffer[:size]
        return unit

    def _send(self, data: bytes) -> None:
        self.sock.sendall(data)

    def _forward_upstream(self, data: bytes) -> None:
        self.remote.sendall(data)
        self.counters.upstream += len(data)

    def feed(self, data: bytes) -> None:
        """Process a chunk of bytes read from the client.

        During the handshake the chunk is buffered and every complete message
        is handled in order. Once streaming, the chunk goes straight to the
        target.
        """
        if self.stage is Stage.CLOSED:
            return
        if self.stage is Stage.STREAMING:
            self._forward_upstream(data)
            return

        self.buffer += data
        while self.stage in self._handlers:
            if not self._handlers[self.stage]():
                break

    def _handle_greeting(self) -> bool:
        # VER NMETHODS METHODS
        if len(self.buffer) < 2:
            return False
        version, nmethods = self.buffer[0], self.buffer[1]
        if version != SOCKS_VERSION:
            self.log.warning(f"Invalid version {version}")
            self.close()
            return False
        if len(self.buffer) < 2 + nmethods:
            return False

        methods = self._consume(2 + nmethods)[2:]
        if METHOD_USERPASS not in methods:
            self._send(encode_method_selection(METHOD_NO_ACCEPTABLE))
            self.log.info("No acceptable auth methods from client")
            self.close()
            return False

        self._send(encode_method_selection(METHOD_USERPASS))
        self.stage = Stage.AUTHENTICATING
        return True

    def _handle_auth(self) -> bool:
        # VER ULEN UNAME PLEN PASSWD
        if len(self.buffer) < 2:
            return False
        version = self.buffer[0]
        if version != AUTH_VERSION:
            self.log.warning(f"Bad auth version {version}")
            self.close()
            return False
        ulen = self.buffer[1]
        if len(self.buffer) < 2 + ulen + 1:
            return False
        plen = self.buffer[2 + ulen]
        if len(self.buffer) < 3 + ulen + plen:
            return False

        unit = self._consume(3 + ulen + plen)
        username = unit[2 : 2 + ulen]
        password = unit[3 + ulen :]
        ok = self.credentials.matches(username, password)
        self._send(encode_auth_status(ok))

        display_name = username.decode("utf-8", errors="replace")
        if not ok:
            self.log.info(f"Auth failed for user {display_name}")
            self.close()
            return False

        self.log.info(f"Auth success user {display_name}")
        self.stage = Stage.AWAITING_REQUEST
        return True

    def _handle_request(self) -> bool:
        # VER CMD RSV ATYP DST.ADDR DST.PORT
        if len(self.buffer) < 4:
            return False
        version, command = self.buffer[0], self.buffer[1]
        if version != SOCKS_VERSION:
            self.log.warning(f"Invalid request version {version}")
            self.close()
            return False
        if command != CONNECT_CMD:
            self.log.info(f"Unsupported command {command}")
            self._consume(len(self.buffer))
            self._send(encode_reply(ReplyCode.COMMAND_NOT_SUPPORTED))
            self.close()
            return False

        try:
            decoded = decode_request(self.buffer)
        except UnsupportedAddressType as e:
            self.log.info(f"Address type not supported {e.atyp}")
            self._send(encode_reply(ReplyCode.ADDRESS_TYPE_NOT_SUPPORTED))
            self.close()
            return False
        if decoded is None:
            return False

        target, size = decoded
        self._consume(size)
        self.target = target
        self.log.info(f"CONNECT {target}")
        self._establish_remote(target)
        return True

    def _open_remote(self, target: TargetAddress) -> socket.socket:
        host = target.host
        if target.is_domain:
            if not host:
                raise DNSResolutionError("Empty domain name")
            if self.resolver is not None:
                host = self.resolver.resolve(host)
        return socket.create_connection((host, target.port))

    def _establish_remote(self, target: TargetAddress) -> None:
        try:
            remote = self._open_remote(target)
        except (OSError, TypeError, ValueError, DNSResolutionError) as e:
            self.log.warning(f"Remote connect to {target} failed: {e}")
            with contextlib.suppress(OSError):
                self._send(encode_reply(reply_code_for(e)))
            self.close()
            return

        self.remote = remote
        self.log.info(f"Connected to remote {target}")
        self._send(encode_reply(ReplyCode.SUCCEEDED, target.host, target.port))
        self.stage = Stage.STREAMING

        # Payload pipelined behind the request belongs to the tunnel
        if self.buffer:
            self._forward_upstream(self._consume(len(self.buffer)))

    def serve(self) -> None:
        """Run the handshake, then relay until either side closes.

        Blocks the calling thread for the lifetime of the connection and always
        leaves both sockets closed.
        """
        try:
            while self.stage not in (Stage.STREAMING, Stage.CLOSED):
                data = self.sock.recv(BUFFER_SIZE)
                if not data:
                    self.log.debug(f"Client disconnected during {self.stage.value}")
                    self.ended_by = "client"
                    break
                self.feed(data)

            if self.stage is Stage.STREAMING:
                self.ended_by = Relay(self.sock, self.remote, self.counters, log=self.log).run()
        except OSError as e:
            self.log.warning(f"Client socket error: {e}")
        finally:
            self.close()

    def close(self) -> None:
        """Release both sockets. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True

        if self.stage is Stage.STREAMING and self.target is not None:
            up, down = self.counters.upstream, self.counters.downstream
            self.log.info(
                f"Tunnel closed {self.target} up={up} ({format_bytes(up)}) "
                f"down={down} ({format_bytes(down)}) src={self.ended_by or 'proxy'}"
            )
        self.stage = Stage.CLOSED

        if self.remote is not None:
            with contextlib.suppress(OSError):
                self.remote.close()
        with contextlib.suppress(OSError):
            self.sock.close()
