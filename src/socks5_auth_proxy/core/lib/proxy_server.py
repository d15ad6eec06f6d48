"""Threaded SOCKS5 proxy server.

This module provides the listening side of the proxy:
- A thread-per-connection TCP server carrying the accepted credentials
- Optional DNS resolver setup from configured nameservers
- Server lifecycle with clean shutdown on Ctrl+C

Every accepted client is handled on its own daemon thread by ``SocksHandler``.
An error in one connection is logged and never stops the server.

Example:
    # Create and start a proxy server from environment configuration
    run_server(load_config_from_env())
"""

import contextlib
import socket
import socketserver

from loguru import logger

from socks5_auth_proxy.core.config import Credentials, ProxyConfig

from .dns_handler import DNSResolver
from .socks_handler import SocksHandler


class SocksProxy(socketserver.ThreadingMixIn, socketserver.TCPServer):
    """SOCKS proxy server implementation."""

    allow_reuse_address = True
    daemon_threads = True
    request_queue_size = 100

    def __init__(
        self,
        server_address: tuple[str, int],
        credentials: Credentials,
        resolver: DNSResolver | None = None,
        handler_class: type[socketserver.BaseRequestHandler] = SocksHandler,
        bind_and_activate: bool = True,
    ) -> None:
        """Create the server and, by default, bind and listen.

        Args:
            server_address: Host and port to listen on; port 0 picks a free port
            credentials: Username and password every client must present
            resolver: Optional resolver for domain targets
            handler_class: Request handler run for each accepted socket
            bind_and_activate: Bind and listen immediately
        """
        self.credentials = credentials
        self.resolver = resolver
        if ":" in server_address[0]:
            self.address_family = socket.AF_INET6
        super().__init__(server_address, handler_class, bind_and_activate)

    def handle_error(self, request, client_address) -> None:
        """Log errors escaping a handler instead of printing them."""
        logger.exception(f"Unhandled error for connection from {client_address}")


def create_proxy_server(config: ProxyConfig) -> SocksProxy:
    """Create a bound SOCKS proxy server for the given configuration.

    Args:
        config: Validated proxy configuration

    Returns:
        SocksProxy: Listening server, not yet serving
    """
    resolver = DNSResolver(config.nameservers) if config.nameservers else None
    return SocksProxy((config.host, config.port), config.credentials, resolver=resolver)


def run_server(config: ProxyConfig) -> None:
    """Serve SOCKS5 connections until interrupted.

    Args:
        config: Validated proxy configuration

    Raises:
        OSError: If the listening socket cannot be bound
    """
    server: SocksProxy | None = None
    try:
        server = create_proxy_server(config)
        host, port = server.server_address[:2]
        logger.info(f"Listening on {host}:{port}")
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down proxy server")
    finally:
        if server:
            with contextlib.suppress(OSError):
                server.server_close()
                logger.info("Server closed")
