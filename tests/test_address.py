import socket
import struct

import pytest

from socks5_auth_proxy.core.exceptions import UnsupportedAddressType
from socks5_auth_proxy.core.lib.address import (
    ADDR_TYPE_DOMAIN,
    ADDR_TYPE_IPV4,
    ADDR_TYPE_IPV6,
    TargetAddress,
    decode_request,
    encode_bound_address,
)

IPV4_REQUEST = bytes([0x05, 0x01, 0x00, 0x01, 10, 0, 0, 1]) + struct.pack("!H", 80)
DOMAIN_REQUEST = bytes([0x05, 0x01, 0x00, 0x03, 11]) + b"example.org" + struct.pack("!H", 443)
IPV6_REQUEST = bytes([0x05, 0x01, 0x00, 0x04]) + socket.inet_pton(socket.AF_INET6, "2001:db8::1") + struct.pack("!H", 8080)


def test_decode_ipv4():
    assert decode_request(IPV4_REQUEST) == (TargetAddress(ADDR_TYPE_IPV4, "10.0.0.1", 80), 10)


def test_decode_domain():
    target, size = decode_request(DOMAIN_REQUEST)
    assert target == TargetAddress(ADDR_TYPE_DOMAIN, "example.org", 443)
    assert target.is_domain
    assert size == 4 + 1 + 11 + 2


def test_decode_ipv6_renders_uncompressed_hextets():
    target, size = decode_request(IPV6_REQUEST)
    assert target == TargetAddress(ADDR_TYPE_IPV6, "2001:db8:0:0:0:0:0:1", 8080)
    assert size == 22


def test_decode_utf8_domain():
    name = "bücher.de".encode()
    request = bytes([0x05, 0x01, 0x00, 0x03, len(name)]) + name + b"\x00\x50"
    target, _ = decode_request(request)
    assert target.host == "bücher.de"


@pytest.mark.parametrize("request_bytes", [IPV4_REQUEST, DOMAIN_REQUEST, IPV6_REQUEST])
def test_incomplete_request_is_not_decoded(request_bytes):
    for size in range(len(request_bytes)):
        assert decode_request(request_bytes[:size]) is None


def test_trailing_bytes_are_not_consumed():
    target, size = decode_request(bytearray(DOMAIN_REQUEST + b"GET / HTTP/1.1\r\n"))
    assert target.host == "example.org"
    assert size == len(DOMAIN_REQUEST)


def test_unknown_address_type():
    with pytest.raises(UnsupportedAddressType) as exc_info:
        decode_request(bytes([0x05, 0x01, 0x00, 0x05]))
    assert exc_info.value.atyp == 0x05


def test_unknown_address_type_needs_full_header():
    assert decode_request(bytes([0x05, 0x01, 0x00])) is None


def test_target_str():
    assert str(TargetAddress(ADDR_TYPE_DOMAIN, "example.org", 443)) == "example.org:443"


def test_encode_bound_address_ipv4():
    assert encode_bound_address("192.168.1.20", 1) == bytes([0x01, 192, 168, 1, 20, 0, 1])


def test_encode_bound_address_irregular_ipv6():
    # IPv4-mapped notation is valid IPv6 but not plain hextets
    encoded = encode_bound_address("::ffff:1.2.3.4", 0)
    assert encoded == bytes([0x04]) + bytes(16) + b"\x00\x00"
