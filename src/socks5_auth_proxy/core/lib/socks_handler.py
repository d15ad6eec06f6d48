"""Request handler that runs one SOCKS5 connection per accepted socket.

The ``SocksProxy`` server calls ``handle`` on its own thread for every accepted
client. The handler only wires the server's credentials and resolver into a
``Socks5Connection`` and runs it to completion.

Example:
    # The handler is automatically used by the SocksProxy server class
    server = SocksProxy((host, port), credentials)
    server.serve_forever()
"""

import socketserver

from loguru import logger

from .connection import Socks5Connection


class SocksHandler(socketserver.BaseRequestHandler):
    """Handle incoming SOCKS5 connections."""

    def handle(self) -> None:
        """Handle incoming SOCKS5 connection."""
        host, port = self.client_address[:2]
        peer = f"{host}:{port}"
        logger.info(f"Incoming connection {peer}")

        connection = Socks5Connection(
            self.request,
            self.server.credentials,
            log=logger.bind(peer=peer),
            resolver=self.server.resolver,
        )
        connection.serve()
