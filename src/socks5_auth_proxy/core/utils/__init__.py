"""Utility functions and helpers."""

from socks5_auth_proxy.core.utils.log_config import LOG_DIR, configure_logging
from socks5_auth_proxy.core.utils.utils import format_bytes

__all__ = ["configure_logging", "format_bytes", "LOG_DIR"]
