"""RecordGate CLI — register, log in, submit and list records from a terminal.

Usage:
    recordgate register alice alice@example.com -p secret     # New submitter account
    recordgate register mum mum@example.com -p secret --role guardian
    recordgate login alice -p secret                          # Prints a session token
    export RECORDGATE_TOKEN=...                               # Use it for the rest
    recordgate submit "Essay" "It was a dark and stormy night"
    recordgate records                                        # Role-scoped listing
    recordgate bind alice                                     # Guardian → submitter link
    recordgate links                                          # Guardian's linked submitters
    recordgate whoami
    recordgate init-db                                        # Create tables (dev only)
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

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("RECORDGATE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the RecordGate API."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. under an
    async test runner).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _token(token: Optional[str]) -> str:
    """Resolve the session token from --token or RECORDGATE_TOKEN."""
    tok = token or os.environ.get("RECORDGATE_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set RECORDGATE_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _auth(token: Optional[str]) -> dict:
    return {"Authorization": f"Bearer {_token(token)}"}


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _check(resp: httpx.Response) -> dict | list:
    """Return the JSON body, or print the API error and exit 1."""
    try:
        body = resp.json()
    except ValueError:
        body = {"kind": "http_error", "message": resp.text}
    if resp.status_code >= 400:
        kind = body.get("kind", "error") if isinstance(body, dict) else "error"
        message = body.get("message", "") if isinstance(body, dict) else str(body)
        click.secho(f"Error ({resp.status_code} {kind}): {message}", fg="red", err=True)
        sys.exit(1)
    return body


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


async def _request(method: str, path: str, **kwargs) -> httpx.Response:
    async with _client() as client:
        return await client.request(method, f"/api/v1{path}", **kwargs)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="recordgate")
def main():
    """RecordGate — role-scoped record submission."""


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.argument("email")
@click.option("--password", "-p", prompt=True, hide_input=True,
              confirmation_prompt=True, help="Account password")
@click.option("--role", "-r", type=click.Choice(["submitter", "reviewer", "guardian"]),
              default="submitter", show_default=True)
def register(username: str, email: str, password: str, role: str):
    """Create an account and print its session token."""
    body = _check(_run(_request(
        "POST", "/auth/register",
        json={"username": username, "email": email, "password": password, "role": role},
    )))
    user = body["user"]
    click.secho(f"Registered {user['username']} ({user['role']})", fg="green")
    click.echo(body["token"])


@main.command()
@click.argument("username")
@click.option("--password", "-p", prompt=True, hide_input=True, help="Account password")
def login(username: str, password: str):
    """Log in with a username or email and print the session token."""
    body = _check(_run(_request(
        "POST", "/auth/login", json={"username": username, "password": password},
    )))
    user = body["user"]
    click.secho(f"Logged in as {user['username']} ({user['role']})", fg="green", err=True)
    click.echo(body["token"])


@main.command()
@click.option("--token", "-t", help="Session token (or set RECORDGATE_TOKEN)")
def whoami(token: Optional[str]):
    """Show the identity behind the session token."""
    body = _check(_run(_request("GET", "/auth/me", headers=_auth(token))))
    click.echo(_pretty_json(body))


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@main.command()
@click.argument("title")
@click.argument("content")
@click.option("--token", "-t", help="Session token (or set RECORDGATE_TOKEN)")
def submit(title: str, content: str, token: Optional[str]):
    """Submit a record (submitters only)."""
    body = _check(_run(_request(
        "POST", "/records", json={"title": title, "content": content},
        headers=_auth(token),
    )))
    click.secho(f"Submitted {body['id']} — {body['status']}", fg="green")


@main.command()
@click.option("--token", "-t", help="Session token (or set RECORDGATE_TOKEN)")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def records(token: Optional[str], as_json: bool):
    """List the records your role can see, newest first."""
    rows = _check(_run(_request("GET", "/records", headers=_auth(token))))
    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No records.")
        return
    _print_table(rows, [
        ("CREATED", "created_at", 19),
        ("OWNER", "owner_name", 16),
        ("STATUS", "status", 9),
        ("TITLE", "title", 40),
    ])


# ---------------------------------------------------------------------------
# Guardian links
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.option("--token", "-t", help="Session token (or set RECORDGATE_TOKEN)")
def bind(username: str, token: Optional[str]):
    """Link yourself (a guardian) to a submitter."""
    body = _check(_run(_request(
        "POST", "/links", json={"username": username}, headers=_auth(token),
    )))
    click.secho(body["message"], fg="green")


@main.command()
@click.option("--token", "-t", help="Session token (or set RECORDGATE_TOKEN)")
def links(token: Optional[str]):
    """List the submitters linked to you (guardians only)."""
    rows = _check(_run(_request("GET", "/links", headers=_auth(token))))
    if not rows:
        click.echo("No linked submitters.")
        return
    _print_table(rows, [("USERNAME", "username", 20), ("ID", "id", 36)])


# ---------------------------------------------------------------------------
# Dev bootstrap
# ---------------------------------------------------------------------------


@main.command("init-db")
def init_db():
    """Create any missing tables in RECORDGATE_DATABASE_URL (dev only)."""
    from recordgate.db.engine import create_schema, engine

    async def _init():
        try:
            await create_schema()
        finally:
            await engine.dispose()

    _run(_init())
    click.secho("Tables created.", fg="green")


if __name__ == "__main__":
    main()
