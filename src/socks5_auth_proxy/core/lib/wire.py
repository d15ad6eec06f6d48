"""SOCKS5 wire format constants and message encoders.

Only the messages the server sends are encoded here:
- method selection (RFC 1928 section 3)
- username/password auth status (RFC 1929)
- command replies (RFC 1928 section 6)

All functions are pure and return ``bytes``.
"""

from enum import IntEnum
from typing import Final

from .address import encode_bound_address

SOCKS_VERSION: Final = 0x05
AUTH_VERSION: Final = 0x01

METHOD_USERPASS: Final = 0x02
METHOD_NO_ACCEPTABLE: Final = 0xFF

CONNECT_CMD: Final = 0x01

AUTH_SUCCESS: Final = 0x00
AUTH_FAILURE: Final = 0x01

RESERVED: Final = 0x00


class ReplyCode(IntEnum):
    """Reply field values for command responses."""

    SUCCEEDED = 0x00
    GENERAL_FAILURE = 0x01
    CONNECTION_NOT_ALLOWED = 0x02
    NETWORK_UNREACHABLE = 0x03
    HOST_UNREACHABLE = 0x04
    CONNECTION_REFUSED = 0x05
    TTL_EXPIRED = 0x06
    COMMAND_NOT_SUPPORTED = 0x07
    ADDRESS_TYPE_NOT_SUPPORTED = 0x08


def encode_method_selection(method: int) -> bytes:
    """Encode the server's method selection message."""
    return bytes((SOCKS_VERSION, method))


def encode_auth_status(ok: bool) -> bytes:
    """Encode a username/password auth status message."""
    return bytes((AUTH_VERSION, AUTH_SUCCESS if ok else AUTH_FAILURE))


def encode_reply(code: int, bound_host: str = "0.0.0.0", bound_port: int = 0) -> bytes:
    """Encode a SOCKS5 reply.

    Args:
        code: Reply code, usually a ``ReplyCode`` member
        bound_host: Address placed in BND.ADDR. Anything that is not an IPv4
            or IPv6 literal is sent as ``0.0.0.0``.
        bound_port: Port placed in BND.PORT

    Returns:
        bytes: ``VER REP RSV ATYP BND.ADDR BND.PORT``
    """
    return bytes((SOCKS_VERSION, code, RESERVED)) + encode_bound_address(bound_host, bound_port)
