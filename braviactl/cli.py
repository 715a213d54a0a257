"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace

import typer

from braviactl.core.config import load_config
from braviactl.core.discovery import discover
from braviactl.core.errors import BraviactlError
from braviactl.core.model import SessionConfig
from braviactl.core.session import BraviaSession

app = typer.Typer(help="Discover and control Sony BRAVIA displays over IRCC and JSON-RPC")

HostOption = typer.Option(None, "--host", help="Device address (overrides --profile)")
ProfileOption = typer.Option(None, "--profile", help="Device profile from the config file")
PortOption = typer.Option(None, "--port", help="Device HTTP port")
PskOption = typer.Option(None, "--psk", help="Pre-shared key")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_session(
    profile: str | None,
    host: str | None,
    port: int | None,
    psk: str | None,
    delay: int | None = None,
) -> BraviaSession:
    loaded = load_config()
    for warning in loaded.warnings:
        typer.echo(f"Warning: {warning}", err=True)

    config = SessionConfig(host=host) if host else loaded.resolve_profile(profile)
    if port is not None:
        config = replace(config, port=port)
    if psk is not None:
        config = replace(config, psk=psk)
    if delay is not None:
        config = replace(config, inter_command_delay_ms=delay)
    return BraviaSession(config)


@app.command("discover")
def discover_devices(
    timeout: int | None = typer.Option(None, "--timeout", help="Discovery window in milliseconds"),
) -> None:
    """Search the local network for IRCC-capable devices."""
    try:
        window = timeout if timeout is not None else load_config().discovery_timeout_ms
        devices = asyncio.run(discover(window))
        if not devices:
            typer.echo("No devices found")
            return

        for device in devices:
            typer.echo(f"{device.host}:{device.port} {device.friendly_name} ({device.model_name}) {device.udn}")
    except BraviactlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("send")
def send_codes(
    codes: list[str] = typer.Argument(..., help="Code names or raw IRCC codes, sent in order"),
    profile: str | None = ProfileOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    psk: str | None = PskOption,
    delay: int | None = typer.Option(None, "--delay", help="Pause between codes in milliseconds"),
) -> None:
    """Send one or more remote-control codes."""
    try:
        session = _build_session(profile, host, port, psk, delay)
        result = asyncio.run(session.send(codes))
        typer.echo(f"Sent {len(result.codes)} code(s) to {session.config.host}")
    except BraviactlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("codes")
def list_codes(
    profile: str | None = ProfileOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    psk: str | None = PskOption,
) -> None:
    """List the remote-control codes the device reports."""
    try:
        session = _build_session(profile, host, port, psk)
        codes = asyncio.run(session.get_ircc_codes())
        for code in codes:
            typer.echo(f"{code.name}: {code.value}")
    except BraviactlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("versions")
def list_versions(
    namespace: str,
    profile: str | None = ProfileOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    psk: str | None = PskOption,
) -> None:
    """List the protocol versions a namespace supports."""
    try:
        session = _build_session(profile, host, port, psk)
        versions = asyncio.run(session.protocol(namespace).get_versions())
        typer.echo(", ".join(versions))
    except BraviactlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("methods")
def list_methods(
    namespace: str,
    version: str | None = typer.Option(None, "--version", help="Only show this protocol version"),
    profile: str | None = ProfileOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    psk: str | None = PskOption,
) -> None:
    """List the methods of a namespace grouped by protocol version."""
    try:
        session = _build_session(profile, host, port, psk)
        table = asyncio.run(session.protocol(namespace).get_method_types(version))
        for method_version, methods in table.items():
            typer.echo(f"{method_version}:")
            for method in methods:
                name = method[0] if isinstance(method, list) and method else method
                typer.echo(f"  {name}")
    except BraviactlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("invoke")
def invoke_method(
    namespace: str,
    method: str,
    version: str = typer.Option("1.0", "--version", help="Protocol version"),
    params: str | None = typer.Option(None, "--params", help="Parameter object as JSON"),
    profile: str | None = ProfileOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    psk: str | None = PskOption,
) -> None:
    """Call a JSON-RPC method and print the normalized result."""
    try:
        decoded = json.loads(params) if params is not None else None
    except ValueError as exc:
        typer.echo(f"Error: --params is not valid JSON: {exc}", err=True)
        raise typer.Exit(code=1) from None

    try:
        session = _build_session(profile, host, port, psk)
        result = asyncio.run(session.protocol(namespace).invoke(method, version, decoded))
        typer.echo(json.dumps(result, indent=2))
    except BraviactlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
