import socket
import socketserver
import threading

import pytest
from loguru import logger

from socks5_auth_proxy.core.config import Credentials
from socks5_auth_proxy.core.lib.proxy_server import SocksProxy

SOCKET_TIMEOUT = 5


class EchoHandler(socketserver.BaseRequestHandler):
    def handle(self):
        while data := self.request.recv(4096):
            with self.server.lock:
                self.server.received.extend(data)
            self.request.sendall(data)


class EchoServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, host: str = "127.0.0.1"):
        self.received = bytearray()
        self.lock = threading.Lock()
        if ":" in host:
            self.address_family = socket.AF_INET6
        super().__init__((host, 0), EchoHandler)

    @property
    def port(self) -> int:
        return self.server_address[1]


@pytest.fixture
def credentials():
    return Credentials(username="alice", password="s3cret")


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="TRACE")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def socket_pair():
    """Return (client, server) ends of a connected socket pair."""
    client, server = socket.socketpair()
    client.settimeout(SOCKET_TIMEOUT)
    yield client, server
    client.close()
    server.close()


@pytest.fixture
def echo_server():
    yield from serve_echo(EchoServer())


@pytest.fixture
def ipv6_echo_server():
    if not socket.has_ipv6:
        pytest.skip("IPv6 not supported")
    try:
        server = EchoServer("::1")
    except OSError as e:
        pytest.skip(f"IPv6 loopback unavailable: {e}")
    yield from serve_echo(server)


def serve_echo(server):
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=SOCKET_TIMEOUT)


@pytest.fixture
def refused_port():
    """A loopback port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def proxy_server(credentials):
    server = SocksProxy(("127.0.0.1", 0), credentials)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=SOCKET_TIMEOUT)


@pytest.fixture
def proxy_client(proxy_server):
    """Open a new TCP connection to the running proxy."""
    opened = []

    def connect() -> socket.socket:
        sock = socket.create_connection(proxy_server.server_address[:2], timeout=SOCKET_TIMEOUT)
        opened.append(sock)
        return sock

    yield connect
    for sock in opened:
        sock.close()
