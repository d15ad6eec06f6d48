"""Core proxy server implementation.

This package contains the core components of the SOCKS5 proxy server:
- Wire and address codecs
- The per-connection protocol state machine
- The byte relay
- The threaded listener
- Configuration, logging and exception handling

The core package provides all the fundamental functionality needed
to run a SOCKS5 proxy server, while keeping the implementation details
separate from the command-line interface.
"""
