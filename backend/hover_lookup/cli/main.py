"""CLI entrypoint for Hover Lookup."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

import requests
import typer

app = typer.Typer(name="hoverlookup", help="Hover Lookup command-line interface")
cache_app = typer.Typer(name="cache", help="Remote result cache")
app.add_typer(cache_app, name="cache")

DEFAULT_HOST = "http://127.0.0.1:5183"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("HOVERLOOKUP_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except Exception:  # noqa: BLE001
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _coerce_token(raw: str) -> object:
    """Numbers typed on the command line are looked up as numbers."""
    try:
        return json.loads(raw) if raw.lstrip("-").replace(".", "", 1).isdigit() else raw
    except ValueError:
        return raw


@app.command()
def lookup(
    token: str = typer.Argument(..., help="Token to resolve"),
    sync: bool = typer.Option(False, "--sync", help="Local index and cache only"),
    markdown: bool = typer.Option(False, "--markdown", help="Print the rendered hover instead of JSON"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Resolve a token against the configured sources."""
    payload = {"token": _coerce_token(token), "sync": sync, "render": "markdown" if markdown else "none"}
    resp = _request("POST", "/lookup", host=host, json=payload)
    body = resp.json()
    if not body["found"]:
        typer.echo(f"No match for {token!r}", err=True)
        raise typer.Exit(code=1)
    if markdown:
        typer.echo(body["rendered"])
    else:
        typer.echo(json.dumps(body, indent=2))


@app.command()
def sources(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show local index, remote and cache status."""
    resp = _request("GET", "/sources", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def reload(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Reload local sources from disk."""
    resp = _request("POST", "/sources/reload", host=host)
    report = resp.json()
    typer.echo(json.dumps(report, indent=2))
    if not report["success"]:
        raise typer.Exit(code=1)


@app.command()
def reindex(
    fields: Optional[List[str]] = typer.Argument(None, help="Id field(s) in priority order; none restores per-file idField"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Re-key the loaded local sources by different id field(s)."""
    resp = _request("POST", "/sources/reindex", host=host, json={"id_field": fields or None})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def init(
    path: Optional[Path] = typer.Argument(None, help="Target file; defaults to the first configured source"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing file"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Write an example lookup database and load it."""
    payload: dict[str, object] = {"overwrite": overwrite}
    if path:
        payload["path"] = str(path.expanduser())
    resp = _request("POST", "/sources/init", host=host, json=payload)
    typer.echo(resp.json()["detail"])


@app.command()
def reconnect(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Drop and re-open the MongoDB connection."""
    resp = _request("POST", "/remote/reconnect", host=host)
    body = resp.json()
    typer.echo(body["detail"])
    if not body["ok"]:
        raise typer.Exit(code=1)


@cache_app.command("show")
def show_cache(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show remote result cache status."""
    resp = _request("GET", "/cache", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@cache_app.command("clear")
def clear_cache(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Clear the remote result cache."""
    _request("DELETE", "/cache", host=host)
    typer.echo(json.dumps({"status": "ok"}))


if __name__ == "__main__":
    app()
