"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer

from wdhub.core.backend_loader import load_backends
from wdhub.core.broker import SessionBroker
from wdhub.core.caps import describe_rules, matching_descriptor, merge_capabilities
from wdhub.core.config import load_config
from wdhub.core.errors import HubError
from wdhub.core.model import BackendDescriptor
from wdhub.protocol.commands import COMMANDS, SESSION_COMMANDS

app = typer.Typer(help="WebDriver session broker with capability-based backend selection")


def _load_backends() -> tuple[BackendDescriptor, ...]:
    loaded = load_backends()
    for warning in loaded.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    return loaded.backends


def _parse_cap(raw: str) -> tuple[str, Any]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise typer.BadParameter(f"Capability '{raw}' must look like key=value")
    try:
        parsed: Any = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    return key.strip(), parsed


@app.command("backends")
def list_backends() -> None:
    """List backend descriptors in the order they are matched."""
    try:
        backends = _load_backends()
        if not backends:
            typer.echo("No backends registered")
            raise typer.Exit(code=1)

        for position, backend in enumerate(backends, start=1):
            typer.echo(f"{position}. {backend.id}: {backend.name}")
            typer.echo(f"   {describe_rules(backend.match)}")
    except HubError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("match")
def match(
    cap: list[str] = typer.Option([], "--cap", help="Desired capability as key=value (repeatable)"),
    config: Path | None = typer.Option(None, "--config", help="Broker config YAML"),
) -> None:
    """Show which backend would serve the given capabilities."""
    try:
        desired = dict(_parse_cap(raw) for raw in cap)
        hub_config = load_config(config)
        effective = merge_capabilities(hub_config.default_capabilities, desired)
        backend = matching_descriptor(effective, _load_backends())
        typer.echo(f"Backend: {backend.id} ({backend.name})")
        typer.echo(f"Capabilities: {json.dumps(effective, sort_keys=True)}")
    except HubError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("routes")
def list_routes() -> None:
    """Print the protocol routes the broker serves."""
    for spec in COMMANDS:
        kind = "session" if spec.command in SESSION_COMMANDS else "passthrough"
        typer.echo(f"{spec.method:<6} {spec.path} -> {spec.command} [{kind}]")


@app.command("status")
def status(
    config: Path | None = typer.Option(None, "--config", help="Broker config YAML"),
) -> None:
    """Report broker readiness and build information."""
    try:
        broker = SessionBroker(load_config(config), backends=_load_backends())
        hub_status = asyncio.run(broker.get_status())
        typer.echo(f"ready={str(hub_status.ready).lower()} version={hub_status.build.get('version')}")
        typer.echo(f"session_override={str(broker.config.session_override).lower()}")
    except HubError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
