"""Main entry point for the SOCKS5 proxy server.

This module exposes the pieces needed to start the proxy without reaching into
the library internals.

Example:
    from socks5_auth_proxy.core.proxy import run_server
    from socks5_auth_proxy.core.config import load_config_from_env

    # Start a SOCKS5 proxy configured from PROXY_* environment variables
    run_server(load_config_from_env())
"""

from .lib import create_proxy_server, run_server

__all__ = ["create_proxy_server", "run_server"]
