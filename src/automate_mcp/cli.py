"""Command-line interface for the ConnectWise Automate MCP server.

This module implements the CLI using Click, providing a command for running
the MCP server in different modes (stdio, SSE, streamable-http) and for
supplying the Automate connection settings through command-line options or
environment variables.
"""

from __future__ import annotations

import ipaddress
import logging
import os
import sys
from collections.abc import Callable, Mapping
from typing import Literal

import click
import uvicorn

from automate_mcp.config import (
    CLIENT_ID_ENV,
    PASSWORD_ENV,
    REQUIRED_ENV_VARS,
    SERVER_URL_ENV,
    TWO_FACTOR_PASSCODE_ENV,
    USERNAME_ENV,
    Settings,
)
from automate_mcp.observability import instrument_starlette_app

VALID_MODES: tuple[str, ...] = ("stdio", "sse", "streamable-http")

_OPTION_FOR_ENV: Mapping[str, str] = {
    SERVER_URL_ENV: "--server-url",
    USERNAME_ENV: "--username",
    PASSWORD_ENV: "--password",
    CLIENT_ID_ENV: "--client-id",
}


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def _is_loopback_host(host: str) -> bool:
    """Check if a host string represents a loopback address.

    Args:
        host: The host string to check (e.g., "localhost", "127.0.0.1", "::1")

    Returns:
        True if the host is a loopback address, False otherwise
    """
    if host.lower() in ("localhost", "localhost.localdomain"):
        return True

    try:
        ip = ipaddress.ip_address(host)
        return ip.is_loopback
    except ValueError:
        # Not an IP address, treat as non-loopback
        return False


def _setup_logging(verbose: bool) -> None:
    """Configure global logging.

    Args:
        verbose: If *True* enable *DEBUG* level logging, otherwise use *INFO*.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level)

    # Keep passwords and bearer tokens out of every log record
    from automate_mcp.logging_security import install_filter

    install_filter()


def _apply_environment_overrides(
    server_url: str | None,
    username: str | None,
    password: str | None,
    client_id: str | None,
    two_factor_passcode: str | None,
) -> None:
    """Copy CLI option values into the environment read by Settings.

    Options that were not given leave the corresponding variable untouched.
    """
    overrides = {
        SERVER_URL_ENV: server_url,
        USERNAME_ENV: username,
        PASSWORD_ENV: password,
        CLIENT_ID_ENV: client_id,
        TWO_FACTOR_PASSCODE_ENV: two_factor_passcode,
    }
    for env_var, value in overrides.items():
        if value:
            os.environ[env_var] = value


def _create_settings() -> Settings:
    """Return validated :class:`~automate_mcp.config.Settings` instance.

    Exits the program with status *1* if validation fails.
    """
    try:
        return Settings()
    except Exception as exc:  # pragma: no cover - exact validation exceptions vary
        click.echo(f"✗ Configuration error: {exc}", err=True)
        click.echo("\nRequired environment variables or CLI options:", err=True)
        for env_var in REQUIRED_ENV_VARS:
            click.echo(f"  {_OPTION_FOR_ENV[env_var]} or {env_var}", err=True)
        click.echo(
            f"\nOptional: --two-factor-passcode or {TWO_FACTOR_PASSCODE_ENV}", err=True
        )
        sys.exit(1)


def _validate_http_binding(host: str, allow_remote_access: bool) -> None:
    """Refuse to bind to a non-loopback interface without explicit consent.

    Raises:
        SystemExit: If binding to non-loopback without --allow-remote-access flag
    """
    if not _is_loopback_host(host) and not allow_remote_access:
        click.echo("", err=True)
        click.echo("✗ SECURITY ERROR: Refusing to bind to non-loopback interface", err=True)
        click.echo("", err=True)
        click.echo(
            f"  Binding to '{host}' would expose unauthenticated MCP tools to the network.",
            err=True,
        )
        click.echo(
            "  Anyone who can reach it could read your Automate inventory.",
            err=True,
        )
        click.echo("", err=True)
        click.echo("  Options:", err=True)
        click.echo("    1. Use --host localhost (recommended)", err=True)
        click.echo(
            "    2. Use --allow-remote-access flag if you understand the security risks",
            err=True,
        )
        click.echo("", err=True)
        sys.exit(1)


def _display_security_warning(host: str) -> None:
    """Display a prominent warning when binding to a non-loopback interface."""
    click.echo("", err=True)
    click.echo("=" * 80, err=True)
    click.echo("WARNING: RUNNING IN REMOTE ACCESS MODE", err=True)
    click.echo("=" * 80, err=True)
    click.echo("", err=True)
    click.echo(f"  Binding to: {host}", err=True)
    click.echo("", err=True)
    click.echo("  SECURITY RISKS:", err=True)
    click.echo("    - MCP server exposes unauthenticated HTTP/SSE interface", err=True)
    click.echo("    - All registered tools can be invoked remotely", err=True)
    click.echo("    - Tools run with the configured Automate credentials", err=True)
    click.echo("", err=True)
    click.echo("  RECOMMENDED PROTECTIONS:", err=True)
    click.echo("    - Use a firewall to restrict access to trusted IPs", err=True)
    click.echo("    - Run behind a reverse proxy with authentication", err=True)
    click.echo("", err=True)
    click.echo("=" * 80, err=True)
    click.echo("", err=True)


# ---------------------------------------------------------------------------
# Server runners
# ---------------------------------------------------------------------------


def _run_stdio(
    verbose: bool, no_banner: bool = False
) -> None:  # pragma: no cover - integration tested elsewhere
    """Run MCP in STDIO mode."""
    click.echo("Starting Automate MCP server in STDIO mode...", err=True)
    try:
        from automate_mcp.server import app

        app.run(transport="stdio", show_banner=not no_banner)
    except Exception as exc:
        click.echo(f"✗ Failed to start server: {exc}", err=True)
        sys.exit(1)


def _run_uvicorn(
    transport: Literal["http", "streamable-http", "sse"],
    *,
    host: str,
    port: int,
    verbose: bool,
    allow_remote_access: bool,
    stateless_http: bool = False,
) -> None:  # pragma: no cover - uvicorn is mocked in unit-tests
    """Run the HTTP/SSE transport using *uvicorn*."""
    _validate_http_binding(host, allow_remote_access)

    if not _is_loopback_host(host):
        _display_security_warning(host)

    click.echo(
        f"Starting Automate MCP server in {transport.upper()} mode on {host}:{port}...",
        err=True,
    )

    try:
        from automate_mcp.server import app

        http_app = app.http_app(transport=transport, stateless_http=stateless_http)
        instrument_starlette_app(http_app)

        uvicorn.run(
            http_app,
            host=host,
            port=port,
            log_level="info" if verbose else "warning",
        )
    except Exception as exc:
        click.echo(f"✗ Failed to start server: {exc}", err=True)
        sys.exit(1)


def _run_mode(
    mode: str,
    *,
    host: str,
    port: int,
    verbose: bool,
    no_banner: bool = False,
    allow_remote_access: bool = False,
    stateless_http: bool = False,
) -> None:
    """Dispatch to the appropriate server runner for *mode*."""
    mode_normalised = mode.lower()

    runners: Mapping[str, Callable[[], None]] = {
        "stdio": lambda: _run_stdio(verbose, no_banner),
        "sse": lambda: _run_uvicorn(
            "sse", host=host, port=port, verbose=verbose, allow_remote_access=allow_remote_access
        ),
        "streamable-http": lambda: _run_uvicorn(
            "streamable-http",
            host=host,
            port=port,
            verbose=verbose,
            allow_remote_access=allow_remote_access,
            stateless_http=stateless_http,
        ),
    }

    runner = runners[mode_normalised]
    runner()


@click.command()
@click.option(
    "--mode",
    "-m",
    type=click.Choice(VALID_MODES, case_sensitive=False),
    default="stdio",
    help="MCP transport mode to use",
)
@click.option(
    "--host",
    default="localhost",
    help="Host to bind to for SSE/HTTP modes (default: localhost)",
)
@click.option(
    "--port",
    default=8000,
    type=int,
    help="Port to bind to for SSE/HTTP modes (default: 8000)",
)
@click.option(
    "--server-url",
    envvar=SERVER_URL_ENV,
    help=f"Automate server URL, e.g. https://yourcompany.hostedrmm.com (env: {SERVER_URL_ENV})",
)
@click.option(
    "--username",
    envvar=USERNAME_ENV,
    help=f"Automate username (env: {USERNAME_ENV})",
)
@click.option(
    "--password",
    envvar=PASSWORD_ENV,
    help=f"Automate password (env: {PASSWORD_ENV})",
)
@click.option(
    "--client-id",
    envvar=CLIENT_ID_ENV,
    help=f"ConnectWise developer clientId (env: {CLIENT_ID_ENV})",
)
@click.option(
    "--two-factor-passcode",
    envvar=TWO_FACTOR_PASSCODE_ENV,
    help=f"Optional two-factor passcode (env: {TWO_FACTOR_PASSCODE_ENV})",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.option(
    "--banner/--no-banner",
    default=False,
    help="Show/hide server startup banner (default: hidden)",
)
@click.option(
    "--allow-remote-access",
    is_flag=True,
    help="Allow binding to non-loopback interfaces (SECURITY RISK: exposes unauthenticated tools)",
)
def main(
    mode: str,
    host: str,
    port: int,
    server_url: str | None,
    username: str | None,
    password: str | None,
    client_id: str | None,
    two_factor_passcode: str | None,
    verbose: bool,
    banner: bool,
    allow_remote_access: bool,
) -> None:
    """Automate MCP Server - read-only ConnectWise Automate inventory tools."""
    _setup_logging(verbose)

    _apply_environment_overrides(
        server_url=server_url,
        username=username,
        password=password,
        client_id=client_id,
        two_factor_passcode=two_factor_passcode,
    )

    settings = _create_settings()
    click.echo("✓ Configuration validated successfully", err=True)
    if verbose:
        click.echo(f"  Automate API URL: {settings.api_base_url}", err=True)
        click.echo(f"  Mode: {mode}", err=True)

    _run_mode(
        mode,
        host=host,
        port=port,
        verbose=verbose,
        no_banner=not banner,
        allow_remote_access=allow_remote_access,
        stateless_http=settings.stateless_http,
    )


if __name__ == "__main__":
    main()
