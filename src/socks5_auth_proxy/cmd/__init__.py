"""Command line interface modules.

This package provides the command-line tools for:
- Starting the SOCKS5 proxy server
- Printing curl instructions for testing a running proxy

The command modules read configuration from options or PROXY_* environment
variables, validate it, and hand it to the core proxy server.
"""
