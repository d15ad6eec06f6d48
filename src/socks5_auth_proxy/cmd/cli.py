"""Command-line interface for the SOCKS5 proxy server.

This module provides the main command-line interface for the proxy server, handling:
- Command-line and environment configuration
- Configuration validation
- Logging setup
- Server startup and shutdown
- Error reporting

The CLI is built using Typer. Every option of the ``proxy`` command can also be
given through the environment (PROXY_PORT, PROXY_USER, PROXY_PASS, LOG_LEVEL,
PROXY_HOST, PROXY_NAMESERVERS).

Example:
    # Run from command line:
    $ PROXY_USER=user PROXY_PASS=pass python -m socks5_auth_proxy proxy --port 1080
"""

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from socks5_auth_proxy import __version__
from socks5_auth_proxy.core.config import ProxyConfig, load_config
from socks5_auth_proxy.core.exceptions import ConfigError
from socks5_auth_proxy.core.proxy import run_server
from socks5_auth_proxy.core.utils.log_config import LOG_DIR, configure_logging

console = Console()
app = typer.Typer(help="SOCKS5 proxy with username/password authentication")


@app.callback(invoke_without_command=True)
def version_callback():
    """Show version information."""
    console.print(f"[cyan]SOCKS5 Auth Proxy v{__version__}[/cyan]")


def show_config(config: ProxyConfig) -> None:
    """Print a summary of the effective configuration."""
    table = Table(title="SOCKS5 Proxy Configuration")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Listen Address", f"{config.host}:{config.port}")
    table.add_row("Username", config.credentials.username)
    table.add_row("Log Level", config.log_level)
    table.add_row("Resolver", ", ".join(config.nameservers) or "system")

    console.print(table)


@app.command(name="proxy")
def start_proxy(
    host: str = typer.Option("0.0.0.0", "--host", envvar="PROXY_HOST", help="Address to listen on"),
    port: str = typer.Option("1080", "--port", "-p", envvar="PROXY_PORT", help="Port to listen on"),
    user: str | None = typer.Option(None, "--user", "-u", envvar="PROXY_USER", help="Accepted username"),
    password: str | None = typer.Option(None, "--password", envvar="PROXY_PASS", help="Accepted password"),
    log_level: str = typer.Option(
        "info", "--log-level", envvar="LOG_LEVEL", help="error, warn, info, debug or trace"
    ),
    nameservers: list[str] | None = typer.Option(
        None,
        "--nameserver",
        "-n",
        envvar="PROXY_NAMESERVERS",
        help="DNS server for domain targets (repeatable, comma separated)",
    ),
    log_file: bool = typer.Option(
        default=False,
        help=f"Also log to {LOG_DIR / 'proxy.log'}",
    ),
    debug: bool = typer.Option(
        default=False,
        help="Enable debug logging",
    ),
):
    """Start the SOCKS5 proxy server."""
    try:
        config = load_config(
            port=port,
            username=user,
            password=password,
            log_level="debug" if debug else log_level,
            host=host,
            nameservers=nameservers or (),
        )
    except ConfigError as e:
        console.print(f"[red]Error: {e}")
        raise typer.Exit(code=1) from None

    configure_logging(config.log_level, LOG_DIR / "proxy.log" if log_file else None)
    show_config(config)
    logger.info(f"Starting SOCKS5 proxy on port {config.port}")

    try:
        run_server(config)
    except OSError as e:
        logger.error(f"Could not start proxy server: {e}")
        console.print(f"[red]Error: {e}")
        raise typer.Exit(code=1) from None


@app.command(name="curl-example")
def curl_example(
    host: str = typer.Option("127.0.0.1", "--host", help="Address clients use to reach the proxy"),
    port: str = typer.Option("1080", "--port", "-p", envvar="PROXY_PORT", help="Proxy port"),
    user: str = typer.Option("user", "--user", "-u", envvar="PROXY_USER", help="Proxy username"),
    password: str = typer.Option("pass", "--password", envvar="PROXY_PASS", help="Proxy password"),
):
    """Print instructions for testing the proxy with curl."""
    console.print("Example test (requires curl built with SOCKS5 support):\n", highlight=False)
    console.print(f"   export PROXY_USER={user}", highlight=False)
    console.print(f"   export PROXY_PASS={password}", highlight=False)
    console.print(f"   export PROXY_PORT={port}", highlight=False)
    console.print("   python -m socks5_auth_proxy proxy\n", highlight=False)
    console.print("In another terminal:\n", highlight=False)
    console.print(
        f"   curl -v --socks5-hostname {user}:{password}@{host}:{port} https://ipinfo.io/ip\n",
        highlight=False,
        soft_wrap=True,
    )
    console.print("You should see your public IP response forwarded through the proxy.", highlight=False)


if __name__ == "__main__":
    app()
