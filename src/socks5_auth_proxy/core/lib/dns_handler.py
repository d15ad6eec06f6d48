"""DNS resolution for domain targets using dnspython.

Only used when the proxy is started with nameservers. Resolution tries, in order:

1. the system resolver
2. a dnspython resolver over all configured nameservers
3. each configured nameserver on its own

Every connection resolves independently; nothing is cached between them.
"""

import socket
from collections.abc import Sequence
from typing import NoReturn

import dns.exception
import dns.resolver
from loguru import logger

from socks5_auth_proxy.core.exceptions import DNSResolutionError

# DNS resolver constants
DEFAULT_TIMEOUT = 1.0  # seconds
DEFAULT_LIFETIME = 3.0  # seconds


class DNSResolver:
    """IPv4 resolver with a system DNS first, configured nameservers second."""

    def __init__(self, nameservers: Sequence[str]) -> None:
        """Initialize the DNS resolver.

        Args:
            nameservers: IP addresses of the DNS servers to query
        """
        self.nameservers = list(nameservers)

    def _make_resolver(self, nameservers: list[str]) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver(configure=False)
        resolver.timeout = DEFAULT_TIMEOUT
        resolver.lifetime = DEFAULT_LIFETIME
        resolver.nameservers = nameservers
        return resolver

    def _try_system_dns(self, domain: str) -> str | None:
        """Try resolving using system DNS."""
        try:
            return socket.gethostbyname(domain)
        except (socket.gaierror, TypeError, ValueError) as e:
            logger.debug(f"System DNS resolution failed for {domain}: {e}")
            return None

    def _query(self, nameservers: list[str], domain: str) -> str | None:
        try:
            answer = self._make_resolver(nameservers).resolve(domain, "A")
            return str(answer[0])
        except (dns.exception.DNSException, ValueError) as e:
            logger.debug(f"Nameservers {', '.join(nameservers)} failed for {domain}: {e}")
            return None

    def _try_configured_resolver(self, domain: str) -> str | None:
        """Try resolving using all configured nameservers."""
        if not self.nameservers:
            return None
        return self._query(self.nameservers, domain)

    def _try_alternative_nameservers(self, domain: str) -> str | None:
        """Try each configured nameserver on its own."""
        if len(self.nameservers) < 2:
            return None
        for nameserver in self.nameservers:
            if ip := self._query([nameserver], domain):
                return ip
        return None

    def _raise_dns_error(self, msg: str) -> NoReturn:
        raise DNSResolutionError(msg)

    def resolve(self, domain: str) -> str:
        """Resolve domain name to IP address.

        Args:
            domain: Domain name to resolve

        Returns:
            str: Resolved IPv4 address

        Raises:
            DNSResolutionError: If resolution fails
        """
        if ip := self._try_system_dns(domain):
            return ip

        if ip := self._try_configured_resolver(domain):
            return ip

        if ip := self._try_alternative_nameservers(domain):
            return ip

        error_msg = f"Could not resolve {domain} using any available method"
        logger.warning(error_msg)
        self._raise_dns_error(error_msg)
