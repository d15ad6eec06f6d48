"""Allow ``python -m socks5_auth_proxy``."""

from socks5_auth_proxy.cmd.cli import app

app(prog_name="socks5-auth-proxy")
