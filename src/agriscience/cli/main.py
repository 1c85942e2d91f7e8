"""AgriScience CLI — run the server and poke at a running instance.

Usage:
    agriscience serve                              # Run the API (uvicorn)
    agriscience health                             # Server health
    agriscience login farmer@example.com           # Print a bearer token
    agriscience crops                              # Crop catalog
    agriscience alerts --unread                    # Your alerts (needs AGRISCIENCE_TOKEN)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from agriscience import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("AGRISCIENCE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the AgriScience backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, headers=headers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop — normal CLI invocation
        return asyncio.run(coro)
    else:
        # Already inside an event loop (e.g. test runner) — run in a thread
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _token_from_env() -> str:
    token = os.environ.get("AGRISCIENCE_TOKEN")
    if not token:
        click.secho(
            "Error: set AGRISCIENCE_TOKEN (see `agriscience login`)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return token


def _fail(response: httpx.Response) -> None:
    """Print the API's {"message"} and exit non-zero."""
    try:
        message = response.json().get("message", response.text)
    except ValueError:
        message = response.text
    click.secho(f"Error {response.status_code}: {message}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _severity_color(severity: str) -> str:
    colors = {
        "low": "white",
        "medium": "yellow",
        "high": "red",
        "critical": "magenta",
    }
    return colors.get(severity, "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="agriscience")
def main():
    """AgriScience — crop management and real-time field monitoring."""


# ---------------------------------------------------------------------------
# agriscience serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: AGRISCIENCE_HOST)")
@click.option("--port", "-p", default=None, type=int, help="Port (default: AGRISCIENCE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from agriscience.config import settings

    uvicorn.run(
        "agriscience.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        ws_ping_interval=settings.ws_ping_interval_seconds,
    )


# ---------------------------------------------------------------------------
# agriscience health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Show server health."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        r = await c.get("/health")
        data = r.json()
        color = "green" if r.status_code == 200 else "red"
        click.secho(f"Status: {data.get('status')}", fg=color, bold=True)
        click.echo(_pretty_json(data))
        if r.status_code != 200:
            sys.exit(1)


# ---------------------------------------------------------------------------
# agriscience login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and print a bearer token (export it as AGRISCIENCE_TOKEN)."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        r = await c.post("/api/auth/login", json={"email": email, "password": password})
        if r.status_code != 200:
            _fail(r)
        data = r.json()
        user = data["user"]
        click.secho(f"Logged in as {user['username']} ({user['role']})", fg="green", err=True)
        click.echo(data["token"])


# ---------------------------------------------------------------------------
# agriscience crops
# ---------------------------------------------------------------------------


@main.command()
def crops():
    """List the crop catalog."""
    _run(_crops_impl())


async def _crops_impl():
    async with _client() as c:
        r = await c.get("/api/crops")
        if r.status_code != 200:
            _fail(r)
        items = r.json()

        if not items:
            click.echo("No crops found.")
            return

        click.secho(f"Crops ({len(items)}):", bold=True)
        click.echo()
        for crop in items:
            click.echo(
                f"  {crop['id'][:8]}  {crop['name']:20s}  "
                f"ibge={crop.get('ibgeCode') or '—'}  {crop.get('scientificName') or ''}"
            )


# ---------------------------------------------------------------------------
# agriscience alerts
# ---------------------------------------------------------------------------


@main.command()
@click.option("--unread", is_flag=True, help="Only unread alerts")
def alerts(unread: bool):
    """List your alerts, newest first."""
    _run(_alerts_impl(unread))


async def _alerts_impl(unread: bool):
    async with _client(_token_from_env()) as c:
        params = {"unread": "true"} if unread else {}
        r = await c.get("/api/monitoring/alerts", params=params)
        if r.status_code != 200:
            _fail(r)
        items = r.json()

        if not items:
            click.echo("No alerts.")
            return

        click.secho(f"Alerts ({len(items)}):", bold=True)
        click.echo()
        for a in items:
            severity = click.style(f"{a['severity']:8s}", fg=_severity_color(a["severity"]))
            flags = ("" if a["isRead"] else "*") + (" resolved" if a["isResolved"] else "")
            click.echo(f"  {a['id'][:8]}  {severity}  {a['type']:11s}  {a['title'][:60]}{flags}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
