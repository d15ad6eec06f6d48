"""Core proxy library components."""

from .connection import Socks5Connection, Stage
from .proxy_server import SocksProxy, create_proxy_server, run_server
from .relay import Relay, TrafficCounters
from .socks_handler import SocksHandler
from .wire import ReplyCode

__all__ = [
    "create_proxy_server",
    "Relay",
    "ReplyCode",
    "run_server",
    "Socks5Connection",
    "SocksHandler",
    "SocksProxy",
    "Stage",
    "TrafficCounters",
]
