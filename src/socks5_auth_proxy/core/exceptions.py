"""Custom exceptions for the proxy server.

This module defines custom exceptions used throughout the proxy server implementation.
These exceptions provide more specific error handling for:
- Invalid startup configuration
- DNS resolution failures
- Unsupported SOCKS5 address types

Configuration errors are raised before the server starts and are reported by the
CLI. The remaining exceptions are caught by the connection state machine and
turned into SOCKS5 reply codes, so they never leave a single connection.

Example:
    try:
        config = load_config("99999", "user", "pass")
    except ConfigError as e:
        console.print(f"[red]{e}")
"""


class ProxyError(Exception):
    """Base exception for proxy errors."""


class ConfigError(ProxyError):
    """Raised when the startup configuration is invalid."""


class DNSResolutionError(ProxyError):
    """Raised when DNS resolution fails."""


class UnsupportedAddressType(ProxyError):
    """Raised when a request carries an unknown ATYP value."""

    def __init__(self, atyp: int) -> None:
        super().__init__(f"Address type not supported: {atyp:#04x}")
        self.atyp = atyp
