"""Startup configuration for the proxy server.

The proxy is configured from the environment (or the equivalent CLI options):

- ``PROXY_PORT``: listening port, 1-65535 (default 1080)
- ``PROXY_USER`` / ``PROXY_PASS``: the single accepted username and password
- ``LOG_LEVEL``: error, warn, info, debug or trace (default info)
- ``PROXY_HOST``: listening address (default 0.0.0.0)
- ``PROXY_NAMESERVERS``: optional comma separated DNS servers for domain targets

Everything is validated once, before the server starts. A ``ConfigError`` here
is a startup failure and is never seen by a connection.

Example:
    config = load_config_from_env()
    run_server(config)
"""

import ipaddress
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from socks5_auth_proxy.core.exceptions import ConfigError

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = "1080"
DEFAULT_LOG_LEVEL = "INFO"

# Accepted LOG_LEVEL names mapped to loguru levels
LOG_LEVELS = {
    "error": "ERROR",
    "warn": "WARNING",
    "warning": "WARNING",
    "info": "INFO",
    "debug": "DEBUG",
    "trace": "TRACE",
}


@dataclass(frozen=True)
class Credentials:
    """The username/password pair clients must present.

    Attributes:
        username: Accepted username
        password: Accepted password
    """

    username: str
    password: str

    def matches(self, username: bytes, password: bytes) -> bool:
        """Compare submitted credentials byte for byte."""
        return username == self.username.encode() and password == self.password.encode()


@dataclass(frozen=True)
class ProxyConfig:
    """Validated proxy configuration.

    Attributes:
        credentials: Accepted username and password
        host: Address to listen on
        port: Port to listen on
        log_level: Loguru level name
        nameservers: DNS servers for domain targets; empty means system DNS only
    """

    credentials: Credentials
    host: str = DEFAULT_HOST
    port: int = int(DEFAULT_PORT)
    log_level: str = DEFAULT_LOG_LEVEL
    nameservers: tuple[str, ...] = field(default_factory=tuple)


def parse_port(raw: str) -> int:
    try:
        port = int(raw, 10)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid PROXY_PORT: {raw}") from None
    if port <= 0 or port > 65535:
        raise ConfigError(f"Invalid PROXY_PORT: {raw}")
    return port


def parse_log_level(raw: str | None) -> str:
    """Map a LOG_LEVEL value to a loguru level, falling back to INFO."""
    if not raw:
        return DEFAULT_LOG_LEVEL
    return LOG_LEVELS.get(raw.strip().lower(), DEFAULT_LOG_LEVEL)


def parse_nameservers(raw: Iterable[str]) -> tuple[str, ...]:
    nameservers = []
    for entry in raw:
        for item in entry.split(","):
            item = item.strip()
            if not item:
                continue
            try:
                ipaddress.ip_address(item)
            except ValueError:
                raise ConfigError(f"Invalid nameserver: {item}") from None
            nameservers.append(item)
    return tuple(nameservers)


def load_config(
    port: str | int | None,
    username: str | None,
    password: str | None,
    log_level: str | None = "info",
    host: str | None = DEFAULT_HOST,
    nameservers: Iterable[str] = (),
) -> ProxyConfig:
    """Validate raw configuration values.

    Args:
        port: Listening port as given by the user
        username: Accepted username
        password: Accepted password
        log_level: LOG_LEVEL style level name
        host: Listening address
        nameservers: DNS server addresses, each entry may be comma separated

    Returns:
        ProxyConfig: The validated configuration

    Raises:
        ConfigError: If the port is invalid, credentials are missing or a
            nameserver is not an IP address
    """
    parsed_port = parse_port(str(port if port not in (None, "") else DEFAULT_PORT))
    if not username or not password:
        raise ConfigError("PROXY_USER and PROXY_PASS must be set for username/password auth")

    return ProxyConfig(
        credentials=Credentials(username=username, password=password),
        host=host or DEFAULT_HOST,
        port=parsed_port,
        log_level=parse_log_level(log_level),
        nameservers=parse_nameservers(nameservers),
    )


def load_config_from_env(environ: Mapping[str, str] | None = None) -> ProxyConfig:
    """Build a ``ProxyConfig`` from environment variables.

    Empty variables count as unset.
    """
    env = os.environ if environ is None else environ

    def get_env(name: str, default: str | None = None) -> str | None:
        value = env.get(name)
        if value is None or value == "":
            return default
        return value

    raw_nameservers = get_env("PROXY_NAMESERVERS")
    return load_config(
        port=get_env("PROXY_PORT", DEFAULT_PORT),
        username=get_env("PROXY_USER"),
        password=get_env("PROXY_PASS"),
        log_level=get_env("LOG_LEVEL", "info"),
        host=get_env("PROXY_HOST", DEFAULT_HOST),
        nameservers=[raw_nameservers] if raw_nameservers else (),
    )
