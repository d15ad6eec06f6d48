import pytest
from typer.testing import CliRunner

from socks5_auth_proxy.cmd import cli

runner = CliRunner()

NO_ENV = {
    "PROXY_PORT": None,
    "PROXY_USER": None,
    "PROXY_PASS": None,
    "LOG_LEVEL": None,
    "PROXY_HOST": None,
    "PROXY_NAMESERVERS": None,
}


@pytest.fixture
def started(monkeypatch):
    configs = []
    monkeypatch.setattr(cli, "run_server", configs.append)
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)
    return configs


def test_missing_credentials(started):
    result = runner.invoke(cli.app, ["proxy"], env=NO_ENV)
    assert result.exit_code == 1
    assert "PROXY_USER and PROXY_PASS must be set" in result.output
    assert started == []


def test_invalid_port(started):
    result = runner.invoke(cli.app, ["proxy", "--port", "70000", "--user", "a", "--password", "b"], env=NO_ENV)
    assert result.exit_code == 1
    assert "Invalid PROXY_PORT: 70000" in result.output


def test_proxy_reads_environment(started):
    env = {
        **NO_ENV,
        "PROXY_PORT": "2080",
        "PROXY_USER": "alice",
        "PROXY_PASS": "s3cret",
        "LOG_LEVEL": "warn",
        "PROXY_NAMESERVERS": "1.1.1.1,8.8.8.8",
    }
    result = runner.invoke(cli.app, ["proxy"], env=env)
    assert result.exit_code == 0, result.output
    (config,) = started
    assert config.port == 2080
    assert config.credentials.username == "alice"
    assert config.log_level == "WARNING"
    assert config.nameservers == ("1.1.1.1", "8.8.8.8")
    assert "SOCKS5 Proxy Configuration" in result.output


def test_debug_overrides_log_level(started):
    result = runner.invoke(cli.app, ["proxy", "-u", "alice", "--password", "s3cret", "--debug"], env=NO_ENV)
    assert result.exit_code == 0, result.output
    assert started[0].log_level == "DEBUG"


def test_bind_failure_exits(monkeypatch):
    def fail(config):
        raise OSError("Address already in use")

    monkeypatch.setattr(cli, "run_server", fail)
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)
    result = runner.invoke(cli.app, ["proxy", "-u", "alice", "--password", "s3cret"], env=NO_ENV)
    assert result.exit_code == 1
    assert "Address already in use" in result.output


def test_curl_example():
    result = runner.invoke(
        cli.app, ["curl-example", "--user", "bob", "--password", "pw", "--port", "2080"], env=NO_ENV
    )
    assert result.exit_code == 0
    assert "curl -v --socks5-hostname bob:pw@127.0.0.1:2080 https://ipinfo.io/ip" in result.output
    assert "SOCKS5 Auth Proxy v" in result.output
