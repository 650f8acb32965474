"""
Tests for the command-line interface.
"""

import uuid

import httpx
import pytest
from typer.testing import CliRunner

import cli
from shared.security.auth import resolve_actor_id

runner = CliRunner()


@pytest.fixture
def mock_api(monkeypatch):
    """Route the CLI's HTTP calls to a handler instead of the network."""

    def install(handler):
        monkeypatch.setattr(
            cli,
            "_http_client",
            lambda timeout: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return install


def test_token():
    actor_id = uuid.uuid4()
    result = runner.invoke(cli.app, ["token", str(actor_id)])
    assert result.exit_code == 0
    assert resolve_actor_id(result.stdout.strip()) == actor_id


def test_token_rejects_non_uuid():
    result = runner.invoke(cli.app, ["token", "admin"])
    assert result.exit_code == 1


def test_resources():
    result = runner.invoke(cli.app, ["resources"])
    assert result.exit_code == 0
    assert "companies" in result.stdout
    assert "users" in result.stdout


def test_db_init(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    result = runner.invoke(cli.app, ["db-init", "--database-url", url])
    assert result.exit_code == 0
    assert "tables ready" in result.stdout
    assert (tmp_path / "cli.db").exists()


def test_browse(mock_api):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(
            200,
            json={"totalItems": 1, "items": [{"id": "1", "name": "Acme", "tags": []}]},
        )

    mock_api(handler)
    result = runner.invoke(cli.app, ["browse", "companies", "--search", "acme", "--sort-by", "name"])

    assert result.exit_code == 0
    assert "Acme" in result.stdout
    assert seen["url"].path == "/companies"
    assert seen["url"].params["search"] == "acme"
    assert seen["url"].params["sortBy"] == "name"


def test_browse_failure_shows_no_items(mock_api):
    mock_api(lambda request: httpx.Response(500, json={"detail": "boom"}))
    result = runner.invoke(cli.app, ["browse", "companies"])
    assert result.exit_code == 0
    assert "No items" in result.stdout


def test_health_degraded(mock_api):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/detailed"):
            return httpx.Response(503, json={"status": "degraded"})
        return httpx.Response(200, json={"status": "healthy"})

    mock_api(handler)
    result = runner.invoke(cli.app, ["health"])
    assert result.exit_code == 1
