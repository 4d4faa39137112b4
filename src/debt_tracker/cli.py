"""Command line access to the debt tracker API."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console

from .api.client import ApiClient
from .config import ClientSettings
from .models.outcome import Outcome
from .models.request import RequestSpec

app = typer.Typer(help="Talk to the debt tracker backend.")
console = Console()

_state: dict[str, Any] = {}


def get_client() -> ApiClient:
    return ApiClient(_state.get("settings") or ClientSettings())


def _run(coro) -> Any:
    return asyncio.run(coro)


async def _with_client(fn) -> Any:
    async with get_client() as client:
        return await fn(client)


SECRET_KEYS = frozenset({"access", "refresh", "token", "access_token", "refresh_token"})


def _redact(value: Any) -> Any:
    """Mask token values anywhere in a payload before it is printed."""
    if isinstance(value, dict):
        return {
            key: "***" if key in SECRET_KEYS and isinstance(item, str) else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_redact(item) for item in value]
    return value


def _print_outcome(outcome: Outcome) -> None:
    console.print_json(json.dumps(_redact(outcome.to_dict()), default=str))
    if not outcome.ok:
        raise typer.Exit(code=1)


@app.callback()
def main(
    base_url: Optional[str] = typer.Option(None, help="Backend base URL (overrides DEBT_TRACKER_BASE_URL)"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    logger.remove()
    logger.add(lambda msg: sys.stderr.write(msg), level="DEBUG" if debug else "WARNING")
    overrides = {"base_url": base_url} if base_url else {}
    _state["settings"] = ClientSettings(**overrides)


@app.command()
def ping():
    """Check that the backend health endpoint answers."""
    ok = _run(_with_client(lambda client: client.test_connection()))
    if ok:
        console.print("[green]Backend reachable[/green]")
    else:
        console.print("[red]Backend unreachable[/red]")
        raise typer.Exit(code=1)


@app.command()
def status():
    """Show whether credentials are stored."""
    client = get_client()
    try:
        if client.is_authenticated:
            console.print("Authenticated")
        else:
            console.print("Not authenticated")
    finally:
        _run(client.aclose())


@app.command()
def login(
    email: str,
    password: str = typer.Option(..., prompt=True, hide_input=True),
):
    """Log in and store the returned tokens."""
    outcome = _run(_with_client(lambda client: client.login(email, password)))
    if outcome.ok:
        console.print("[green]Logged in[/green]")
        return
    console.print(f"[red]Login failed:[/red] {outcome.message}")
    raise typer.Exit(code=1)


@app.command()
def logout():
    """Forget stored credentials."""
    client = get_client()
    try:
        client.logout()
    finally:
        _run(client.aclose())
    console.print("Logged out")


@app.command()
def request(
    method: str = typer.Argument(..., help="HTTP method, e.g. GET or POST"),
    path: str = typer.Argument(..., help="Path relative to the base URL"),
    data: Optional[str] = typer.Option(None, help="JSON request body"),
    no_auth: bool = typer.Option(False, "--no-auth", help="Send without a token"),
):
    """Send one request and print the outcome as JSON."""
    body = None
    if data is not None:
        try:
            body = json.loads(data)
        except json.JSONDecodeError as exc:
            typer.echo(f"Invalid JSON body: {exc}")
            raise typer.Exit(code=2)

    spec = RequestSpec(method, path, body, requires_auth=not no_auth)
    _print_outcome(_run(_with_client(lambda client: client.call(spec))))


if __name__ == "__main__":
    app()
