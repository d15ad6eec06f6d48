"""SOCKS5 address decoding and encoding.

A CONNECT request is ``VER CMD RSV ATYP DST.ADDR DST.PORT`` where the length of
DST.ADDR depends on ATYP:

- IPv4 (1): four bytes
- Domain (3): one length byte followed by that many bytes
- IPv6 (4): sixteen bytes

``decode_request`` only ever looks at a buffer and reports how many bytes the
request occupies. It returns ``None`` until the whole request is buffered, so
callers can keep appending reads and retry.
"""

import ipaddress
import struct
from dataclasses import dataclass
from typing import Final

from socks5_auth_proxy.core.exceptions import UnsupportedAddressType

ADDR_TYPE_IPV4: Final = 0x01
ADDR_TYPE_DOMAIN: Final = 0x03
ADDR_TYPE_IPV6: Final = 0x04

# VER CMD RSV ATYP
REQUEST_HEADER_LEN: Final = 4
PORT_LEN: Final = 2
IPV4_LEN: Final = 4
IPV6_LEN: Final = 16

ZERO_IPV4: Final = bytes(IPV4_LEN)
ZERO_IPV6: Final = bytes(IPV6_LEN)


@dataclass(frozen=True)
class TargetAddress:
    """Destination decoded from a CONNECT request.

    Attributes:
        atyp: Address type byte the client used
        host: Dotted quad, domain name or colon separated hextets
        port: Destination port
    """

    atyp: int
    host: str
    port: int

    @property
    def is_domain(self) -> bool:
        return self.atyp == ADDR_TYPE_DOMAIN

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def _format_ipv6(raw: bytes) -> str:
    # Eight hextets, no leading zeros, no "::" compression
    return ":".join(f"{hextet:x}" for hextet in struct.unpack("!8H", raw))


def decode_request(buffer: bytes | bytearray) -> tuple[TargetAddress, int] | None:
    """Decode the destination of a buffered CONNECT request.

    Args:
        buffer: Receive buffer starting at the request's VER byte

    Returns:
        tuple[TargetAddress, int] | None: The target and the total number of
            bytes the request occupies, or ``None`` if more bytes are needed.

    Raises:
        UnsupportedAddressType: If ATYP is not IPv4, domain or IPv6
    """
    if len(buffer) < REQUEST_HEADER_LEN:
        return None

    atyp = buffer[3]
    offset = REQUEST_HEADER_LEN

    if atyp == ADDR_TYPE_IPV4:
        total = offset + IPV4_LEN + PORT_LEN
        if len(buffer) < total:
            return None
        host = str(ipaddress.IPv4Address(bytes(buffer[offset : offset + IPV4_LEN])))
        offset += IPV4_LEN
    elif atyp == ADDR_TYPE_DOMAIN:
        # Length byte has to be there before the total is known
        if len(buffer) < offset + 1:
            return None
        domain_len = buffer[offset]
        total = offset + 1 + domain_len + PORT_LEN
        if len(buffer) < total:
            return None
        offset += 1
        host = bytes(buffer[offset : offset + domain_len]).decode("utf-8", errors="replace")
        offset += domain_len
    elif atyp == ADDR_TYPE_IPV6:
        total = offset + IPV6_LEN + PORT_LEN
        if len(buffer) < total:
            return None
        host = _format_ipv6(bytes(buffer[offset : offset + IPV6_LEN]))
        offset += IPV6_LEN
    else:
        raise UnsupportedAddressType(atyp)

    (port,) = struct.unpack_from("!H", buffer, offset)
    return TargetAddress(atyp=atyp, host=host, port=port), total


def _pack_ipv6_hextets(host: str) -> bytes:
    """Expand colon separated hextets into 16 bytes.

    Compressed (``::``) or otherwise irregular forms are sent as all zeros.
    """
    try:
        packed = b"".join(struct.pack("!H", int(part or "0", 16)) for part in host.split(":"))
    except (ValueError, struct.error):
        return ZERO_IPV6
    if len(packed) != IPV6_LEN:
        return ZERO_IPV6
    return packed


def encode_bound_address(host: str, port: int) -> bytes:
    """Encode ``ATYP BND.ADDR BND.PORT`` for a reply.

    Args:
        host: IPv4 or IPv6 literal; anything else becomes ``0.0.0.0``
        port: Bound port

    Returns:
        bytes: Address type, address and big-endian port
    """
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        ip = None

    if ip is None:
        atyp, addr_bytes = ADDR_TYPE_IPV4, ZERO_IPV4
    elif ip.version == 4:
        atyp, addr_bytes = ADDR_TYPE_IPV4, ip.packed
    else:
        atyp, addr_bytes = ADDR_TYPE_IPV6, _pack_ipv6_hextets(host)

    return bytes((atyp,)) + addr_bytes + struct.pack("!H", port)
