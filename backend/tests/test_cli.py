"""CLI tests against a stubbed HTTP layer."""

from __future__ import annotations

from typing import Any

import pytest
import requests
from typer.testing import CliRunner

from hover_lookup.cli import main as cli

runner = CliRunner()


class StubResponse:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        return self._payload


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    recorded: list[dict[str, Any]] = []
    responses: dict[tuple[str, str], StubResponse] = {
        ("POST", "/lookup"): StubResponse(200, {"found": True, "rendered": "**hover**", "provenance": "db.users"}),
        ("POST", "/sources/reload"): StubResponse(200, {"success": False, "loaded": [], "invalid": ["x.json"]}),
        ("POST", "/remote/reconnect"): StubResponse(503, {"detail": "MongoDB unreachable"}),
        ("DELETE", "/cache"): StubResponse(200, {"ok": True}),
        ("POST", "/sources/reindex"): StubResponse(200, {"success": True}),
    }

    def fake_request(method: str, url: str, timeout: int, **kwargs: Any) -> StubResponse:
        path = url.split("5183", 1)[-1] if "5183" in url else url.split("example.test", 1)[-1]
        recorded.append({"method": method, "url": url, "path": path, **kwargs})
        return responses[(method, path)]

    monkeypatch.delenv("HOVERLOOKUP_HOST", raising=False)
    monkeypatch.setattr(requests, "request", fake_request)
    return recorded


def test_lookup_sends_numeric_tokens_as_numbers(calls) -> None:
    result = runner.invoke(cli.app, ["lookup", "42", "--sync", "--markdown"])
    assert result.exit_code == 0
    assert "**hover**" in result.stdout
    assert calls[0]["url"] == "http://127.0.0.1:5183/lookup"
    assert calls[0]["json"] == {"token": 42, "sync": True, "render": "markdown"}


def test_lookup_keeps_text_tokens(calls, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOVERLOOKUP_HOST", "http://example.test/")
    result = runner.invoke(cli.app, ["lookup", "ORD-1"])
    assert result.exit_code == 0
    assert calls[0]["url"] == "http://example.test/lookup"
    assert calls[0]["json"]["token"] == "ORD-1"


def test_failed_reload_exits_nonzero(calls) -> None:
    result = runner.invoke(cli.app, ["reload"])
    assert result.exit_code == 1
    assert "x.json" in result.stdout


def test_http_error_is_reported(calls) -> None:
    result = runner.invoke(cli.app, ["reconnect"])
    assert result.exit_code == 1
    assert calls[0]["path"] == "/remote/reconnect"


def test_reindex_and_cache_clear(calls) -> None:
    assert runner.invoke(cli.app, ["reindex", "email", "code"]).exit_code == 0
    assert calls[0]["json"] == {"id_field": ["email", "code"]}
    assert runner.invoke(cli.app, ["reindex"]).exit_code == 0
    assert calls[1]["json"] == {"id_field": None}
    result = runner.invoke(cli.app, ["cache", "clear"])
    assert result.exit_code == 0
    assert calls[2]["method"] == "DELETE"
